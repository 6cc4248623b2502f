import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base

class DeletionCredential(Base):
    __tablename__ = "deletion_credentials"

    # Single-row table, id is always 1
    id: Mapped[int] = mapped_column(sa.SmallInteger, primary_key=True)
    password_hash: Mapped[str] = mapped_column(sa.Text, nullable=False)
    updated_at: Mapped[sa.DateTime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))

    __table_args__ = (
        sa.CheckConstraint("id = 1", name="ck_deletion_credentials_singleton"),
    )

class DeletionResetToken(Base):
    __tablename__ = "deletion_reset_tokens"

    token_hash: Mapped[str] = mapped_column(sa.Text, primary_key=True)
    email: Mapped[str] = mapped_column(sa.Text, nullable=False)
    expires_at: Mapped[sa.DateTime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    consumed_at: Mapped[sa.DateTime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    created_at: Mapped[sa.DateTime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))

    __table_args__ = (
        sa.Index("ix_deletion_reset_tokens_expires", "expires_at"),
    )
