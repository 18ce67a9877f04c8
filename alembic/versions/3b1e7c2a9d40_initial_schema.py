"""initial schema

Revision ID: 3b1e7c2a9d40
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1e7c2a9d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "sessions_report_session",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column(
            "status",
            sa.Enum("OPEN", "EXPORTED", name="reportsessionstatus", native_enum=False),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_sessions_report_session_status", "sessions_report_session", ["status"], unique=False
    )

    op.create_table(
        "sessions_upload",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("session_id", sa.Uuid(), nullable=False),
        sa.Column("storage_key", sa.String(length=1024), nullable=False),
        sa.Column("original_name", sa.String(length=512), nullable=False),
        sa.Column("byte_size", sa.Integer(), nullable=False),
        sa.Column("sha256", sa.String(length=64), nullable=False),
        sa.Column(
            "status",
            sa.Enum("UPLOADED", "PROCESSED", "FAILED", name="uploadstatus", native_enum=False),
            nullable=False,
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["session_id"], ["sessions_report_session.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("storage_key"),
    )
    op.create_index("ix_sessions_upload_session_id", "sessions_upload", ["session_id"])
    op.create_index("ix_sessions_upload_sha256", "sessions_upload", ["sha256"])
    op.create_index("ix_sessions_upload_status", "sessions_upload", ["status"])

    op.create_table(
        "expenses_expense",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("session_id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("merchant", sa.String(length=300), nullable=False),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("tax", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("gl_code", sa.String(length=20), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("location", sa.String(length=300), nullable=True),
        sa.Column("kilometers", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("from_location", sa.String(length=300), nullable=True),
        sa.Column("to_location", sa.String(length=300), nullable=True),
        sa.Column("trip_purpose", sa.String(length=40), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["session_id"], ["sessions_report_session.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_expenses_expense_session_id", "expenses_expense", ["session_id"])
    op.create_index("ix_expenses_expense_date", "expenses_expense", ["date"])
    op.create_index("ix_expenses_expense_gl_code", "expenses_expense", ["gl_code"])

    op.create_table(
        "expenses_expense_split",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("expense_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("gl_code", sa.String(length=20), nullable=False),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("percentage", sa.Numeric(precision=6, scale=3), nullable=False),
        sa.ForeignKeyConstraint(["expense_id"], ["expenses_expense.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("expense_id", "position", name="uq_split_position"),
    )
    op.create_index(
        "ix_expenses_expense_split_expense_id", "expenses_expense_split", ["expense_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_expenses_expense_split_expense_id", table_name="expenses_expense_split")
    op.drop_table("expenses_expense_split")
    op.drop_index("ix_expenses_expense_gl_code", table_name="expenses_expense")
    op.drop_index("ix_expenses_expense_date", table_name="expenses_expense")
    op.drop_index("ix_expenses_expense_session_id", table_name="expenses_expense")
    op.drop_table("expenses_expense")
    op.drop_index("ix_sessions_upload_status", table_name="sessions_upload")
    op.drop_index("ix_sessions_upload_sha256", table_name="sessions_upload")
    op.drop_index("ix_sessions_upload_session_id", table_name="sessions_upload")
    op.drop_table("sessions_upload")
    op.drop_index("ix_sessions_report_session_status", table_name="sessions_report_session")
    op.drop_table("sessions_report_session")
