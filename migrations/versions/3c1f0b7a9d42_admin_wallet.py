"""admin wallet allow-list

Revision ID: 3c1f0b7a9d42
Revises:
Create Date: 2025-11-03 09:12:44.310521

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f0b7a9d42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the persisted admin allow-list."""
    op.create_table(
        "admin_wallet",
        sa.Column("address", sa.String(length=42), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("address"),
    )


def downgrade() -> None:
    """Drop the persisted admin allow-list."""
    op.drop_table("admin_wallet")
