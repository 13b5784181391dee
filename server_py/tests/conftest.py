import uuid
from datetime import date, time
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rideops.core.database import Base
from rideops.core.exceptions import IdentityProviderError
from rideops.core.init_db import SchemaCapabilities  # noqa: F401  (registers models)
from rideops.models.contact_request import ContactRequest
from rideops.models.customer import Customer
from rideops.models.driver import Driver
from rideops.models.ride import Ride
from rideops.services.email import EmailResult
from rideops.services.identity import Identity, IdentityProvider


class InMemoryIdentityProvider(IdentityProvider):
    """Identity provider double that records every mutating call."""

    def __init__(self) -> None:
        self.identities: Dict[str, Identity] = {}
        self.passwords: Dict[str, str] = {}
        self.mutations: List[tuple] = []
        self.fail_create: Optional[str] = None
        self.fail_delete: Optional[str] = None

    def add(self, email: str, password: str = "secret-pass", **metadata) -> Identity:
        identity = Identity(id=str(uuid.uuid4()), email=email, metadata=metadata, email_confirmed=True)
        self.identities[identity.id] = identity
        self.passwords[identity.id] = password
        return identity

    async def find_by_email(self, email):
        for identity in self.identities.values():
            if identity.email.lower() == email.lower():
                return identity
        return None

    async def create_identity(self, email, password, metadata, email_confirm=True):
        self.mutations.append(("create", email))
        if self.fail_create:
            raise IdentityProviderError(self.fail_create)
        identity = Identity(id=str(uuid.uuid4()), email=email, metadata=dict(metadata), email_confirmed=email_confirm)
        self.identities[identity.id] = identity
        self.passwords[identity.id] = password
        return identity

    async def delete_identity(self, identity_id):
        self.mutations.append(("delete", identity_id))
        if self.fail_delete:
            raise IdentityProviderError(self.fail_delete)
        self.identities.pop(identity_id, None)
        self.passwords.pop(identity_id, None)

    async def authenticate(self, email, password):
        identity = await self.find_by_email(email)
        if identity and self.passwords.get(identity.id) == password:
            return identity
        return None

    async def list_identities(self):
        return list(self.identities.values())


class RecordingEmailSender:
    def __init__(self, error: Optional[str] = None) -> None:
        self.error = error
        self.sent: List[dict] = []

    async def send_credentials(self, email, name, password, role):
        self.sent.append({"email": email, "name": name, "password": password, "role": role})
        return EmailResult(
            id=None if self.error else f"email-{len(self.sent)}",
            from_address="RideOps <noreply@example.com>",
            to=email,
            error=self.error,
        )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def identity():
    return InMemoryIdentityProvider()


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest_asyncio.fixture
async def contact_request(db):
    request = ContactRequest(
        name="Dana Driver",
        email="dana@example.com",
        phone="+15550100",
        requested_role="driver",
        message="I have a minivan",
        status="Pending",
    )
    db.add(request)
    await db.commit()
    await db.refresh(request)
    return request


@pytest_asyncio.fixture
async def customer(db):
    profile = Customer(user_id=str(uuid.uuid4()), name="Carl Customer", email="carl@example.com", phone="+15550101")
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


@pytest_asyncio.fixture
async def other_customer(db):
    profile = Customer(user_id=str(uuid.uuid4()), name="Olga Other", email="olga@example.com", phone="+15550102")
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


@pytest_asyncio.fixture
async def driver(db):
    profile = Driver(user_id=str(uuid.uuid4()), name="Dmitry Driver", email="dmitry@example.com", phone="+15550103")
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


@pytest.fixture
def make_ride(db, customer, driver):
    async def factory(status="Confirmed", customer_id=None, driver_id=None, unassigned=False, **fields):
        ride = Ride(
            customer_id=customer_id or customer.id,
            driver_id=None if unassigned else (driver_id or driver.id),
            pickup_location="Airport T1",
            dropoff_location="Central Station",
            pickup_date=date(2026, 11, 2),
            pickup_time=time(9, 30),
            status=status,
            trip_type="one-way",
            vehicle_type="sedan",
            passengers=2,
            price=45.0,
            payment_status="Pending",
            **fields,
        )
        db.add(ride)
        await db.commit()
        await db.refresh(ride)
        return ride

    return factory


@pytest.fixture
def failing_email_sender():
    return RecordingEmailSender(error="Email is not configured (RESEND_API_KEY / EMAIL_FROM)")
