import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import get_settings
from .database import close_db, init_db
from .routers import auth, blocked_days, bookings, services, slots
from .utils.request_id import request_id_middleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    if get_settings().create_tables:
        await init_db()
    yield
    await close_db()


app = FastAPI(title="Slot Booking API", lifespan=lifespan)
app.middleware("http")(request_id_middleware)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(SQLAlchemyError)
@app.exception_handler(TimeoutError)
async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("store call failed on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "store unavailable"})


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "slot booking backend"}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(auth.router)
app.include_router(services.router)
app.include_router(slots.router)
app.include_router(bookings.router)
app.include_router(blocked_days.router)
