"""message client id

Revision ID: 8d3f42b61e07
Revises: 5c1e0a9d7b21
Create Date: 2026-10-19 14:03:51.772140

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8d3f42b61e07"
down_revision: Union[str, Sequence[str], None] = "5c1e0a9d7b21"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Store the sender's correlation id so repeated sends collapse."""
    with op.batch_alter_table("message") as batch_op:
        batch_op.add_column(sa.Column("client_message_id", sa.String(length=128), nullable=True))
        batch_op.create_unique_constraint(
            "uq_message_client_id", ["conversation_id", "sender_id", "client_message_id"]
        )


def downgrade() -> None:
    """Drop the correlation id column."""
    with op.batch_alter_table("message") as batch_op:
        batch_op.drop_constraint("uq_message_client_id", type_="unique")
        batch_op.drop_column("client_message_id")
