"""SQLAlchemy models.

All models should be imported here for Alembic to detect them.
"""

from app.core.database import Base
from app.models.account import Account
from app.models.bookmark import Bookmark
from app.models.session import UserSession
from app.models.user import User
from app.models.verification_token import VerificationToken

__all__ = ["Base", "User", "Account", "UserSession", "VerificationToken", "Bookmark"]
