"""initial_maturity_tracker_schema

Creates the full schema:
  - users
  - teams, services
  - maturity_models, measurement_categories, measurements, maturity_level_rules
  - campaigns, campaign_participants
  - measurement_evaluations, evaluation_history

Tables created conditionally (IF NOT EXISTS semantics) so the migration is
idempotent against databases that already received these tables via
db.create_all() in a development environment.

Revision ID: 7c1e4a9b2d10
Revises:
Create Date: 2026-10-18 09:12:44.218305
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '7c1e4a9b2d10'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated=True):
    cols = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False))
    return cols


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── Identity ──────────────────────────────────────────────────────────
    if "users" not in existing:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("username", sa.String(length=150), nullable=False),
            sa.Column("password_hash", sa.String(length=256), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False,
                      comment="admin | team_owner | team_member"),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_users_username", "users", ["username"], unique=True)
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── Roster ────────────────────────────────────────────────────────────
    if "teams" not in existing:
        op.create_table(
            "teams",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("owner_id", sa.Integer(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )
        op.create_index("ix_teams_owner_id", "teams", ["owner_id"])

    if "services" not in existing:
        op.create_table(
            "services",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("owner_id", sa.Integer(), nullable=False),
            sa.Column("team_id", sa.Integer(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("service_type", sa.String(length=30), nullable=False,
                      comment="API Service | UI Application | Workflow | Application Module"),
            sa.Column("resource_location", sa.String(length=500), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
            sa.ForeignKeyConstraint(["team_id"], ["teams.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_services_owner_id", "services", ["owner_id"])
        op.create_index("ix_services_team_id", "services", ["team_id"])

    # ── Model catalog ─────────────────────────────────────────────────────
    if "maturity_models" not in existing:
        op.create_table(
            "maturity_models",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("owner_id", sa.Integer(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )
        op.create_index("ix_maturity_models_owner_id", "maturity_models", ["owner_id"])

    if "measurement_categories" not in existing:
        op.create_table(
            "measurement_categories",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )

    if "measurements" not in existing:
        op.create_table(
            "measurements",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=300), nullable=False),
            sa.Column("maturity_model_id", sa.Integer(), nullable=False),
            sa.Column("category_id", sa.Integer(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("evidence_type", sa.String(length=20), nullable=False,
                      comment="URL | Document | Image | Text"),
            sa.Column("sample_evidence", sa.Text(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["maturity_model_id"], ["maturity_models.id"]),
            sa.ForeignKeyConstraint(["category_id"], ["measurement_categories.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_measurements_maturity_model_id", "measurements", ["maturity_model_id"])
        op.create_index("ix_measurements_category_id", "measurements", ["category_id"])

    if "maturity_level_rules" not in existing:
        op.create_table(
            "maturity_level_rules",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("maturity_model_id", sa.Integer(), nullable=False),
            sa.Column("level", sa.Integer(), nullable=False),
            sa.Column("min_percentage", sa.Float(), nullable=False),
            sa.Column("max_percentage", sa.Float(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(["maturity_model_id"], ["maturity_models.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_maturity_level_rules_maturity_model_id", "maturity_level_rules",
            ["maturity_model_id"],
        )

    # ── Campaigns ─────────────────────────────────────────────────────────
    if "campaigns" not in existing:
        op.create_table(
            "campaigns",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("maturity_model_id", sa.Integer(), nullable=False),
            sa.Column("start_date", sa.Date(), nullable=True),
            sa.Column("end_date", sa.Date(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False,
                      comment="draft | active | completed | cancelled"),
            sa.Column("created_by", sa.Integer(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(["maturity_model_id"], ["maturity_models.id"]),
            sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_campaigns_maturity_model_id", "campaigns", ["maturity_model_id"])
        op.create_index("ix_campaigns_status", "campaigns", ["status"])
        op.create_index("ix_campaigns_created_by", "campaigns", ["created_by"])

    if "campaign_participants" not in existing:
        op.create_table(
            "campaign_participants",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("campaign_id", sa.Integer(), nullable=False),
            sa.Column("service_id", sa.Integer(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"]),
            sa.ForeignKeyConstraint(["service_id"], ["services.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("campaign_id", "service_id", name="uq_participant_campaign_service"),
        )
        op.create_index(
            "ix_campaign_participants_campaign_id", "campaign_participants", ["campaign_id"],
        )
        op.create_index(
            "ix_campaign_participants_service_id", "campaign_participants", ["service_id"],
        )

    # ── Evaluations ───────────────────────────────────────────────────────
    if "measurement_evaluations" not in existing:
        op.create_table(
            "measurement_evaluations",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("campaign_id", sa.Integer(), nullable=False),
            sa.Column("service_id", sa.Integer(), nullable=False),
            sa.Column("measurement_id", sa.Integer(), nullable=False),
            sa.Column("status", sa.String(length=30), nullable=False),
            sa.Column("evidence_location", sa.Text(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("evaluated_by", sa.Integer(), nullable=True),
            sa.Column("evaluated_at", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"]),
            sa.ForeignKeyConstraint(["service_id"], ["services.id"]),
            sa.ForeignKeyConstraint(["measurement_id"], ["measurements.id"]),
            sa.ForeignKeyConstraint(["evaluated_by"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(
                "campaign_id", "service_id", "measurement_id",
                name="uq_evaluation_campaign_service_measurement",
            ),
        )
        op.create_index(
            "idx_evaluation_campaign_service", "measurement_evaluations",
            ["campaign_id", "service_id"],
        )
        op.create_index(
            "ix_measurement_evaluations_measurement_id", "measurement_evaluations",
            ["measurement_id"],
        )
        op.create_index(
            "ix_measurement_evaluations_status", "measurement_evaluations", ["status"],
        )

    if "evaluation_history" not in existing:
        op.create_table(
            "evaluation_history",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("evaluation_id", sa.Integer(), nullable=False),
            sa.Column("previous_status", sa.String(length=30), nullable=False),
            sa.Column("new_status", sa.String(length=30), nullable=False),
            sa.Column("changed_by", sa.Integer(), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(updated=False),
            sa.ForeignKeyConstraint(["evaluation_id"], ["measurement_evaluations.id"]),
            sa.ForeignKeyConstraint(["changed_by"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_evaluation_history_evaluation_id", "evaluation_history", ["evaluation_id"],
        )


def downgrade():
    for table in (
        "evaluation_history",
        "measurement_evaluations",
        "campaign_participants",
        "campaigns",
        "maturity_level_rules",
        "measurements",
        "measurement_categories",
        "maturity_models",
        "services",
        "teams",
        "users",
    ):
        op.drop_table(table)
