"""Verification token SQLAlchemy model."""

from datetime import datetime

from sqlalchemy import DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.mixins import TimestampMixin


class VerificationToken(TimestampMixin, Base):
    """Single-use token for non-OAuth verification flows.

    Looked up by the (identifier, token) pair; not used by the OAuth
    providers.
    """

    __tablename__ = "verification_tokens"
    __table_args__ = (
        UniqueConstraint(
            "identifier",
            "token",
            name="uq_verification_tokens_identifier_token",
        ),
    )

    identifier: Mapped[str] = mapped_column(String(255), primary_key=True)
    token: Mapped[str] = mapped_column(String(255), primary_key=True, unique=True)
    expires: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<VerificationToken {self.identifier}>"
