"""
Create users, parties, expenses and their association tables.

Revision ID: 5c1e9a7d2b40
Revises:
Create Date: 2026-10-19 09:41:27.512304
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c1e9a7d2b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("clock_timestamp()"),
        nullable=False,
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column(
            "external_id",
            sa.String(length=255),
            nullable=True,
            comment="Identity provider 'sub' claim for users provisioned on login",
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "parties",
        sa.Column("party_id", sa.Uuid(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("party_id"),
    )
    op.create_index(op.f("ix_parties_owner_id"), "parties", ["owner_id"])

    op.create_table(
        "expenses",
        sa.Column("expense_id", sa.Uuid(), nullable=False),
        sa.Column("party_id", sa.Uuid(), nullable=False),
        sa.Column("payer_id", sa.Uuid(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["party_id"], ["parties.party_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["payer_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("expense_id"),
    )
    op.create_index(op.f("ix_expenses_party_id"), "expenses", ["party_id"])
    op.create_index(op.f("ix_expenses_payer_id"), "expenses", ["payer_id"])

    op.create_table(
        "party_contributors",
        sa.Column("party_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["party_id"], ["parties.party_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("party_id", "user_id"),
    )

    op.create_table(
        "expense_participants",
        sa.Column("expense_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("share", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.ForeignKeyConstraint(["expense_id"], ["expenses.expense_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("expense_id", "user_id"),
    )

    op.create_table(
        "party_bills_images",
        sa.Column("bill_id", sa.Uuid(), nullable=False),
        sa.Column("bill_file_title", sa.String(length=255), nullable=False),
        sa.Column("party_id", sa.Uuid(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["party_id"], ["parties.party_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("bill_id"),
    )
    op.create_index(op.f("ix_party_bills_images_party_id"), "party_bills_images", ["party_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_party_bills_images_party_id"), table_name="party_bills_images")
    op.drop_table("party_bills_images")
    op.drop_table("expense_participants")
    op.drop_table("party_contributors")
    op.drop_index(op.f("ix_expenses_payer_id"), table_name="expenses")
    op.drop_index(op.f("ix_expenses_party_id"), table_name="expenses")
    op.drop_table("expenses")
    op.drop_index(op.f("ix_parties_owner_id"), table_name="parties")
    op.drop_table("parties")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
