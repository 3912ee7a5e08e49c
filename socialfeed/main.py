from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from socialfeed.config import settings
from socialfeed.database import init_db
from socialfeed.errors import sqlalchemy_exception_handler, validation_exception_handler
from socialfeed.routers import auth, health, users

LOGGER = logging.getLogger(__name__)


def configure_logging(level: str = settings.log_level) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    if not settings.jwt_secret:
        LOGGER.warning("JWT_SECRET is not set; logins will fail")
    LOGGER.info("Passcode delivery backend: %s", settings.passcode_delivery)
    yield


app = FastAPI(title="socialfeed", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)

app.include_router(health.router, prefix="/api")
app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(auth.router)  # Compatibility for clients calling /auth/* without /api.


@app.get("/")
def root():
    return {"status": "Backend running"}
