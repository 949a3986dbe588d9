"""User and account service for database operations."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AccountNotLinkedError
from app.models.account import Account
from app.models.user import User
from app.schemas.user import OAuthProfile, OAuthTokens, UserCreate


async def get_user_by_id(session: AsyncSession, user_id: UUID) -> User | None:
    """Get a user by their ID."""
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Get a user by their email address."""
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_account_for_user(
    session: AsyncSession,
    user_id: UUID,
    provider: str,
) -> Account | None:
    """Get the account a user has bound for a provider, if any."""
    result = await session.execute(
        select(Account)
        .where(
            Account.user_id == user_id,
            Account.provider == provider,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_account_by_provider_id(
    session: AsyncSession,
    provider: str,
    provider_account_id: str,
) -> Account | None:
    """Get an account by its OAuth provider and provider-issued ID."""
    result = await session.execute(
        select(Account).where(
            Account.provider == provider,
            Account.provider_account_id == provider_account_id,
        )
    )
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, user_data: UserCreate) -> User:
    """Create a new user."""
    user = User(
        email=user_data.email,
        name=user_data.name,
        image=user_data.image,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


async def create_account(
    session: AsyncSession,
    user: User,
    profile: OAuthProfile,
) -> Account:
    """Bind a provider account to a user."""
    account = Account(
        user_id=user.id,
        type="oauth",
        provider=profile.provider,
        provider_account_id=profile.provider_account_id,
        **profile.tokens.model_dump(),
    )
    session.add(account)
    await session.flush()
    await session.refresh(account)
    return account


async def update_account_tokens(
    session: AsyncSession,
    account: Account,
    tokens: OAuthTokens,
) -> Account:
    """Refresh the token fields of an account; nothing else is mutable."""
    for field, value in tokens.model_dump(exclude_none=True).items():
        setattr(account, field, value)
    await session.flush()
    return account


async def link_oauth_identity(
    session: AsyncSession,
    profile: OAuthProfile,
) -> tuple[User, bool]:
    """Persist the identity behind an accepted sign-in.

    Creates the User and Account on the first sign-in with an email, and
    refreshes token material for a returning account.

    Raises AccountNotLinkedError if the email's user already has a
    different account with the same provider.

    Returns:
        Tuple of (user, created) where created is True if new user was created
    """
    account = await get_account_by_provider_id(
        session,
        profile.provider,
        profile.provider_account_id,
    )
    if account:
        await update_account_tokens(session, account, profile.tokens)
        user = await get_user_by_id(session, account.user_id)
        if user is None:
            raise ValueError(f"Account {account.id} references a missing user")
        return user, False

    created = False
    user = await get_user_by_email(session, profile.email)
    if user is None:
        user = await create_user(
            session,
            UserCreate(email=profile.email, name=profile.name, image=profile.image),
        )
        created = True
    elif await get_account_for_user(session, user.id, profile.provider) is not None:
        # Same provider, different provider account: never bound silently
        raise AccountNotLinkedError(profile.provider)

    await create_account(session, user, profile)
    return user, created
