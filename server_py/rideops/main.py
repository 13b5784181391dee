import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from rideops.core.config import settings
from rideops.core.database import engine
from rideops.core.init_db import init_db
from rideops.api.v1.api import api_router
from rideops.services.identity import check_identity_config
from rideops.websockets.chat_ws import router as chat_ws_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Без учетных данных провайдера запускаться нет смысла
    check_identity_config()
    if not settings.RESEND_API_KEY or not settings.EMAIL_FROM:
        logger.warning("Email is not configured, credentials will only be logged")

    app.state.capabilities = await init_db(engine)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# Настройка CORS
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Роутеры API v1
app.include_router(api_router, prefix=settings.API_V1_STR)

# Вебсокеты для переписки с администратором
app.include_router(chat_ws_router)
