"""Создает администратора: учетную запись и флаг роли admin.

    python scripts/create_admin.py admin@example.com 'S3cret-pass'
"""
import asyncio
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from rideops.core.database import AsyncSessionLocal, engine
from rideops.core.init_db import init_db
from rideops.models.user import User
from rideops.services.identity import get_identity_provider


async def create_admin(email: str, password: str) -> None:
    await init_db(engine)
    async with AsyncSessionLocal() as session:
        identity = get_identity_provider(session)
        existing = await identity.find_by_email(email)
        if existing is None:
            existing = await identity.create_identity(
                email=email,
                password=password,
                metadata={"name": "Administrator", "user_type": "admin"},
                email_confirm=True,
            )
            print(f"Created identity {existing.id}")
        else:
            print(f"Identity {existing.id} already exists, granting admin role")

        role_flag = await session.get(User, existing.id)
        if role_flag is None:
            session.add(User(id=existing.id, email=email, role="admin"))
        else:
            role_flag.role = "admin"
        await session.commit()
    await engine.dispose()
    print(f"{email} is now an admin")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        raise SystemExit("usage: create_admin.py <email> <password>")
    asyncio.run(create_admin(sys.argv[1], sys.argv[2]))
