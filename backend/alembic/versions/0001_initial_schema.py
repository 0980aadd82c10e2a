"""0001 – Initial schema: employees, accrual ledger, consumptions, adjustments.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00
"""

import sqlalchemy as sa
from alembic import op

# Revision identifiers
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "employee",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("employee_code", sa.String(length=50), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hire_date", sa.Date(), nullable=False),
        sa.Column("termination_date", sa.Date(), nullable=True),
        sa.Column("cost_center", sa.String(length=100), nullable=False),
        sa.Column("supervisor_name", sa.String(length=255), nullable=False),
        sa.Column("supervisor_email", sa.String(length=255), nullable=False),
    )
    op.create_index("ix_employee_employee_code", "employee", ["employee_code"], unique=True)
    op.create_index("ix_employee_supervisor_email", "employee", ["supervisor_email"])

    op.create_table(
        "vacation_accrual",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False),
        sa.Column("accrual_year", sa.Integer(), nullable=False),
        sa.Column("accrual_start_date", sa.Date(), nullable=False),
        sa.Column("accrual_end_date", sa.Date(), nullable=False),
        sa.Column("monthly_rate", sa.Float(), nullable=False),
        sa.Column("months_accrued", sa.Integer(), nullable=False),
        sa.Column("total_days_accrued", sa.Float(), nullable=False),
        sa.Column("total_days_consumed", sa.Float(), nullable=False),
        sa.Column("remaining_balance", sa.Float(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("employee_id", "accrual_year", name="uq_accrual_employee_year"),
    )
    op.create_index("ix_accrual_employee_year", "vacation_accrual", ["employee_id", "accrual_year"])

    op.create_table(
        "vacation_consumption",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "accrual_id",
            sa.Uuid(),
            sa.ForeignKey("vacation_accrual.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("origin_kind", sa.String(length=20), nullable=False),
        sa.Column("request_id", sa.Uuid(), nullable=False),
        sa.Column("days_consumed", sa.Float(), nullable=False),
        sa.Column("consumed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_vacation_consumption_accrual_id", "vacation_consumption", ["accrual_id"])
    op.create_index("ix_vacation_consumption_request_id", "vacation_consumption", ["request_id"])
    op.create_index("ix_vacation_consumption_consumed_at", "vacation_consumption", ["consumed_at"])
    op.create_index("ix_consumption_origin", "vacation_consumption", ["origin_kind", "request_id"])

    op.create_table(
        "balance_adjustment",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("employee_id", sa.Uuid(), sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False),
        sa.Column("accrual_year", sa.Integer(), nullable=False),
        sa.Column("adjustment_type", sa.String(length=50), nullable=False),
        sa.Column("previous_value", sa.Float(), nullable=False),
        sa.Column("new_value", sa.Float(), nullable=False),
        sa.Column("days_delta", sa.Float(), nullable=False),
        sa.Column("reason", sa.String(), nullable=False),
        sa.Column("adjusted_by", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_adjustment_employee_year", "balance_adjustment", ["employee_id", "accrual_year"])
    op.create_index("ix_balance_adjustment_created_at", "balance_adjustment", ["created_at"])


def downgrade() -> None:
    op.drop_table("balance_adjustment")
    op.drop_table("vacation_consumption")
    op.drop_table("vacation_accrual")
    op.drop_table("employee")
