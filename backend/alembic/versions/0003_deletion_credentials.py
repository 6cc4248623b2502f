"""deletion password store and reset tokens

Revision ID: 0003_deletion_credentials
Revises: 0002_leaderboard_views
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


revision = "0003_deletion_credentials"
down_revision = "0002_leaderboard_views"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "deletion_credentials",
        sa.Column("id", sa.SmallInteger(), primary_key=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("id = 1", name="ck_deletion_credentials_singleton"),
    )

    op.create_table(
        "deletion_reset_tokens",
        sa.Column("token_hash", sa.Text(), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_deletion_reset_tokens_expires", "deletion_reset_tokens", ["expires_at"])


def downgrade():
    op.drop_index("ix_deletion_reset_tokens_expires", table_name="deletion_reset_tokens")
    op.drop_table("deletion_reset_tokens")
    op.drop_table("deletion_credentials")
