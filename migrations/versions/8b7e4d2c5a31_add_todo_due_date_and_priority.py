"""Add due_date and priority to todo items

Revision ID: 8b7e4d2c5a31
Revises: 3f1c2a9d7e10
Create Date: 2026-10-05 18:40:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import text


# revision identifiers, used by Alembic.
revision = "8b7e4d2c5a31"
down_revision = "3f1c2a9d7e10"
branch_labels = None
depends_on = None


def upgrade():
    # Add as nullable first so existing rows survive the ALTER
    with op.batch_alter_table("todo_items") as batch_op:
        batch_op.add_column(sa.Column("due_date", sa.Date(), nullable=True))
        batch_op.add_column(sa.Column("priority", sa.String(length=10), nullable=True))

    # Backfill once: rows created before these fields existed are due on the
    # day they were created, with the default priority
    op.execute(
        text(
            """
        UPDATE todo_items
        SET due_date = CAST(created_at AS DATE)
        WHERE due_date IS NULL
    """
        )
    )
    op.execute(
        text(
            """
        UPDATE todo_items
        SET priority = 'MEDIUM'
        WHERE priority IS NULL
    """
        )
    )

    with op.batch_alter_table("todo_items") as batch_op:
        batch_op.alter_column("due_date", existing_type=sa.Date(), nullable=False)
        batch_op.alter_column(
            "priority", existing_type=sa.String(length=10), nullable=False
        )


def downgrade():
    with op.batch_alter_table("todo_items") as batch_op:
        batch_op.drop_column("priority")
        batch_op.drop_column("due_date")
