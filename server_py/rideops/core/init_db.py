import logging
from dataclasses import dataclass

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

from rideops.core.config import settings
from rideops.core.database import Base
from rideops.core.exceptions import ConfigurationError

# Импортируем модели чтобы они попали в metadata перед созданием таблиц
from rideops.models import contact_request  # noqa: F401
from rideops.models import customer  # noqa: F401
from rideops.models import driver  # noqa: F401
from rideops.models import identity  # noqa: F401
from rideops.models import message  # noqa: F401
from rideops.models import ride  # noqa: F401
from rideops.models import user  # noqa: F401

logger = logging.getLogger(__name__)

# table -> columns that must exist
REQUIRED_SCHEMA = {
    "contact_requests": {"id", "email", "status", "admin_notes", "updated_at"},
    "customers": {"id", "user_id", "rating", "total_rides"},
    "drivers": {"id", "user_id", "rating", "total_rides"},
    "rides": {"id", "customer_id", "driver_id", "status"},
}
IDENTITY_TABLE = "auth_identities"
ROLE_FLAG_TABLE = "users"


@dataclass(frozen=True)
class SchemaCapabilities:
    """Какие необязательные таблицы есть в подключенной БД."""
    role_flags: bool = True


def inspect_schema(sync_conn, identity_backend: str = "database") -> SchemaCapabilities:
    """Проверяет схему БД при старте.

    Отсутствие обязательных таблиц/колонок - ошибка конфигурации, а не
    повод гадать по тексту ошибок во время запроса.
    """
    inspector = inspect(sync_conn)
    tables = set(inspector.get_table_names())

    required = dict(REQUIRED_SCHEMA)
    if identity_backend == "database":
        required[IDENTITY_TABLE] = {"id", "email", "hashed_password"}

    problems = []
    for table, columns in required.items():
        if table not in tables:
            problems.append(f"missing table '{table}'")
            continue
        present = {col["name"] for col in inspector.get_columns(table)}
        for column in sorted(columns - present):
            problems.append(f"missing column '{table}.{column}'")

    if problems:
        raise ConfigurationError("Database schema is incomplete: " + "; ".join(problems))

    role_flags = ROLE_FLAG_TABLE in tables
    if not role_flags:
        logger.warning("Table '%s' not found, role flags will not be written", ROLE_FLAG_TABLE)
    return SchemaCapabilities(role_flags=role_flags)


async def init_db(engine: AsyncEngine) -> SchemaCapabilities:
    """Создает таблицы (если включено) и возвращает возможности схемы."""
    if settings.DATABASE_URL.startswith("sqlite"):
        # Гарантируем наличие директории для файла базы данных
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)

    async with engine.begin() as conn:
        if settings.AUTO_CREATE_TABLES:
            await conn.run_sync(Base.metadata.create_all)
        capabilities = await conn.run_sync(inspect_schema, settings.IDENTITY_BACKEND)

    logger.info("Schema check passed (role_flags=%s)", capabilities.role_flags)
    return capabilities
