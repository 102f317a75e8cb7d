"""create lead scoring schema

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-12 09:00:00.000000

Creates ``lead_source_detailed``, ``leads``, ``lead_scoring_master`` and
``automation_log`` with their indexes and check constraints, plus the
``Uncategorized Source`` row the UTM matcher falls back to.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "1a2b3c4d5e6f"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "lead_source_detailed",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("source_name", sa.String(length=255), nullable=False),
        sa.Column("utm_source", sa.String(length=255), server_default=""),
        sa.Column("utm_medium", sa.String(length=255), server_default=""),
        sa.Column("utm_campaign", sa.String(length=255), server_default=""),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="Active"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
        ),
    )

    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=False),
        sa.Column("number_of_travelers", sa.Integer()),
        sa.Column("travel_dates", sa.String(length=255)),
        sa.Column("travel_date", sa.Date()),
        sa.Column("source", sa.String(length=100)),
        sa.Column("destination", sa.String(length=255)),
        sa.Column("custom_notes", sa.Text()),
        sa.Column("utm_source", sa.String(length=255), server_default=""),
        sa.Column("utm_medium", sa.String(length=255), server_default=""),
        sa.Column("utm_campaign", sa.String(length=255), server_default=""),
        sa.Column(
            "lead_source_id",
            sa.Integer(),
            sa.ForeignKey("lead_source_detailed.id", ondelete="SET NULL"),
        ),
        sa.Column("lead_type", sa.String(length=50)),
        sa.Column("budget", sa.Numeric(precision=12, scale=2)),
        sa.Column("budget_per_person", sa.Numeric(precision=12, scale=2)),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="New"),
        sa.Column("assigned_employee_id", sa.String(length=100)),
        sa.Column("assigned_employee_name", sa.String(length=255)),
        sa.Column("response_time_hours", sa.Integer()),
        sa.Column("itinerary_created_hours", sa.Integer()),
        sa.Column("lead_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "lead_priority", sa.String(length=20), nullable=False, server_default="Cold"
        ),
        sa.Column("last_score_calculated", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.CheckConstraint(
            "lead_priority IN ('Hot', 'Warm', 'Cold')", name="ck_lead_priority"
        ),
    )
    op.create_index(
        "idx_leads_score_priority",
        "leads",
        [sa.text("lead_score DESC"), "lead_priority"],
    )
    op.create_index("idx_leads_created_at", "leads", ["created_at"])

    op.create_table(
        "lead_scoring_master",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("scoring_criteria_name", sa.String(length=255), nullable=False),
        sa.Column("field_checked", sa.String(length=100), nullable=False),
        sa.Column("condition_type", sa.String(length=50), nullable=False),
        sa.Column("condition_value", sa.String(length=255), server_default=""),
        sa.Column("score_value", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("lead_type", sa.String(length=50), server_default=""),
        sa.Column(
            "automation_trigger",
            sa.String(length=50),
            nullable=False,
            server_default="On Lead Create",
        ),
        sa.Column("priority_range_hot", sa.Integer(), server_default=sa.text("40")),
        sa.Column("priority_range_warm_min", sa.Integer(), server_default=sa.text("25")),
        sa.Column("priority_range_warm_max", sa.Integer(), server_default=sa.text("39")),
        sa.Column("priority_range_cold_max", sa.Integer(), server_default=sa.text("24")),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="Active"),
        sa.Column("notes", sa.Text(), server_default=""),
        sa.Column("created_by", sa.String(length=255)),
        *_timestamps(),
        sa.CheckConstraint(
            "automation_trigger IN ('On Lead Create', 'On Lead Update', 'Both')",
            name="ck_scoring_rule_trigger",
        ),
        sa.CheckConstraint(
            "status IN ('Active', 'Inactive')", name="ck_scoring_rule_status"
        ),
    )
    op.create_index(
        "idx_scoring_rules_active", "lead_scoring_master", ["status", "lead_type"]
    )

    op.create_table(
        "automation_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "lead_id",
            sa.Integer(),
            sa.ForeignKey("leads.id", ondelete="CASCADE"),
        ),
        sa.Column("action_type", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("message", sa.Text()),
        sa.Column("priority", sa.String(length=20), server_default="medium"),
        sa.Column("metadata", postgresql.JSONB()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
        ),
    )
    op.create_index(
        "idx_automation_log_lead",
        "automation_log",
        ["lead_id", sa.text("created_at DESC")],
    )

    op.execute(
        "INSERT INTO lead_source_detailed (source_name, status) "
        "VALUES ('Uncategorized Source', 'Active')"
    )


def downgrade() -> None:
    op.drop_index("idx_automation_log_lead", table_name="automation_log")
    op.drop_table("automation_log")
    op.drop_index("idx_scoring_rules_active", table_name="lead_scoring_master")
    op.drop_table("lead_scoring_master")
    op.drop_index("idx_leads_created_at", table_name="leads")
    op.drop_index("idx_leads_score_priority", table_name="leads")
    op.drop_table("leads")
    op.drop_table("lead_source_detailed")
