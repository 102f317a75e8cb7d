"""seed default scoring rules

Revision ID: 2b3c4d5e6f7a
Revises: 1a2b3c4d5e6f
Create Date: 2026-10-12 09:30:00.000000

Inserts the default Group, FIT and Corporate rules into
``lead_scoring_master``.  Each insert is guarded by NOT EXISTS on the
rule name so the migration is idempotent.

The rule values are derived from ``app.core.default_scoring_rules``.
Do NOT edit values here directly; update DEFAULT_SCORING_RULES in
that module.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "2b3c4d5e6f7a"
down_revision: Union[str, None] = "1a2b3c4d5e6f"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

from app.core.default_scoring_rules import DEFAULT_SCORING_RULES  # noqa: E402

_INSERT = sa.text(
    """
    INSERT INTO lead_scoring_master (
        scoring_criteria_name, field_checked, condition_type, condition_value,
        score_value, lead_type, automation_trigger, status, notes, created_by
    )
    SELECT :scoring_criteria_name, :field_checked, :condition_type,
           :condition_value, :score_value, :lead_type, :automation_trigger,
           :status, :notes, :created_by
    WHERE NOT EXISTS (
        SELECT 1 FROM lead_scoring_master
        WHERE scoring_criteria_name = :scoring_criteria_name
    )
    """
)


def upgrade() -> None:
    connection = op.get_bind()
    for rule in DEFAULT_SCORING_RULES:
        connection.execute(_INSERT, rule)


def downgrade() -> None:
    connection = op.get_bind()
    for rule in DEFAULT_SCORING_RULES:
        connection.execute(
            sa.text(
                "DELETE FROM lead_scoring_master "
                "WHERE scoring_criteria_name = :name AND created_by = 'System'"
            ),
            {"name": rule["scoring_criteria_name"]},
        )
