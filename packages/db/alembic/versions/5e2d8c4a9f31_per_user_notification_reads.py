# This project was developed with assistance from AI tools.
"""track notification read state per user

Role-addressed notifications are shared by every holder of the role, so a
single is_read flag hid them from the whole role once anyone opened them.

- notification_reads: one row per (notification, user) that has read it
- notifications.is_read: dropped; existing flags on user-addressed rows are
  carried over to notification_reads

Revision ID: 5e2d8c4a9f31
Revises: 3c1f9a2b7d10
Create Date: 2026-10-19 10:42:07.551902

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "5e2d8c4a9f31"
down_revision = "3c1f9a2b7d10"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "notification_reads",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("notification_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column(
            "read_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
        ),
        sa.ForeignKeyConstraint(["notification_id"], ["notifications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("notification_id", "user_id", name="uq_notification_read_user"),
    )
    op.create_index("ix_notification_reads_user_id", "notification_reads", ["user_id"])

    op.execute(
        """
        INSERT INTO notification_reads (notification_id, user_id)
        SELECT id, recipient_id FROM notifications
        WHERE is_read AND recipient_id IS NOT NULL
        """
    )
    op.drop_column("notifications", "is_read")


def downgrade() -> None:
    op.add_column(
        "notifications",
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.execute(
        """
        UPDATE notifications SET is_read = true
        WHERE id IN (SELECT notification_id FROM notification_reads)
        """
    )
    op.drop_index("ix_notification_reads_user_id", table_name="notification_reads")
    op.drop_table("notification_reads")
