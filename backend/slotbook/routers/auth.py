import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_session
from ..domain.errors import EmailTakenError, InvalidCredentialsError
from ..infrastructure.repositories import SqlAlchemyUserRepository
from ..schemas import Credentials, Message, TokenResponse
from ..usecases import accounts as account_usecase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: Credentials,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    settings = get_settings()
    user_repo = SqlAlchemyUserRepository(session)
    try:
        token = await account_usecase.login(
            user_repo,
            email=payload.email,
            password=payload.password,
            secret=settings.auth_secret,
            algorithm=settings.auth_algorithm,
            expires_delta=timedelta(minutes=settings.access_token_minutes),
        )
    except InvalidCredentialsError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid email or password")
    return TokenResponse(token=token)


@router.post("/register", response_model=Message, status_code=status.HTTP_201_CREATED)
async def register(
    payload: Credentials,
    session: AsyncSession = Depends(get_session),
) -> Message:
    user_repo = SqlAlchemyUserRepository(session)
    async with session.begin():
        try:
            user = await account_usecase.register_user(user_repo, email=payload.email, password=payload.password)
        except EmailTakenError:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="email already registered")
    logger.info("registered user id=%s", user.id)
    return Message(message="user registered")
