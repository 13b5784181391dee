import sys
from pathlib import Path

# Добавляем корневую директорию проекта в PYTHONPATH
sys.path.append(str(Path(__file__).resolve().parent))

import asyncio
import platform

import uvicorn
from rideops.core.config import settings

# Для Windows: используем SelectorEventLoop вместо ProactorEventLoop
if platform.system() == 'Windows':
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

if __name__ == "__main__":
    # Таблицы создаются и проверяются при старте приложения (lifespan)
    uvicorn.run(
        "rideops.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=False
    )
