"""Initial schema – users, sessions and reset_tickets

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17

Uniqueness is enforced here rather than by check-then-insert in the service:
one account per email (compared case-sensitively, binary collation on
MySQL), one session per user, one session per refresh token, one row per
reset ticket.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import mysql

# Alembic revision identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # -- users ----------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "email",
            sa.String(255).with_variant(mysql.VARCHAR(255, collation="utf8mb4_bin"), "mysql"),
            nullable=False,
        ),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("activation_link", sa.String(64), nullable=True),
        sa.Column("is_activated", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_activation_link", "users", ["activation_link"], unique=True)

    # -- sessions -------------------------------------------------------
    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("refresh_token", sa.String(512), nullable=False),
    )
    op.create_index("ix_sessions_refresh_token", "sessions", ["refresh_token"], unique=True)

    # -- reset_tickets --------------------------------------------------
    op.create_table(
        "reset_tickets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("ticket", sa.String(128), nullable=False, unique=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_reset_tickets_user_id", "reset_tickets", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_reset_tickets_user_id", table_name="reset_tickets")
    op.drop_table("reset_tickets")
    op.drop_index("ix_sessions_refresh_token", table_name="sessions")
    op.drop_table("sessions")
    op.drop_index("ix_users_activation_link", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
