"""Input checks shared by the service layer.

Ids arrive from JSON bodies as arbitrary values; they are checked here before
they reach a lookup so a malformed id is a ValidationError, not a driver error.
"""

from maturity_tracker.core.exceptions import ValidationError


def require_id(field: str, value) -> int:
    """Return value if it is an integer id; bool and every other type is rejected.

    Raises:
        ValidationError: value is not an int.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{field} must be an integer", details={field: "must be an integer"},
        )
    return value
