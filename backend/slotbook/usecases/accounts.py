from datetime import timedelta

from ..domain.errors import EmailTakenError, InvalidCredentialsError
from ..domain.repositories import UserRepository
from ..models import User
from ..utils.auth import create_access_token, hash_password, verify_password


async def register_user(user_repo: UserRepository, *, email: str, password: str) -> User:
    if await user_repo.find_by_email(email) is not None:
        raise EmailTakenError("email already registered")
    return await user_repo.create(email=email, password_hash=hash_password(password))


async def login(
    user_repo: UserRepository,
    *,
    email: str,
    password: str,
    secret: str,
    algorithm: str,
    expires_delta: timedelta,
) -> str:
    user = await user_repo.find_by_email(email)
    # Same error for unknown email and wrong password.
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentialsError("invalid email or password")
    return create_access_token(
        user_id=user.id,
        email=user.email,
        secret=secret,
        algorithm=algorithm,
        expires_delta=expires_delta,
    )
