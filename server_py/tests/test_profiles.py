import pytest
from sqlalchemy import select

from rideops.core.exceptions import InvalidRequestError, NotFoundError
from rideops.models.driver import Driver
from rideops.models.user import User
from rideops.services.profiles import ProfileService


async def test_delete_driver_removes_role_flag_and_identity(db, identity):
    account = identity.add("pavel@example.com", user_type="driver")
    driver = Driver(user_id=account.id, name="Pavel", email=account.email, phone="+15550111")
    db.add_all([driver, User(id=account.id, email=account.email, role="driver")])
    await db.commit()

    await ProfileService(db, "driver").delete(driver.id, identity)

    assert (await db.execute(select(Driver))).first() is None
    assert await db.get(User, account.id) is None
    assert ("delete", account.id) in identity.mutations


async def test_profile_with_rides_cannot_be_deleted(db, identity, customer, make_ride):
    await make_ride()

    with pytest.raises(InvalidRequestError, match="has rides"):
        await ProfileService(db, "customer").delete(customer.id, identity)
    assert identity.mutations == []


async def test_update_and_lookup_by_user(db, driver):
    service = ProfileService(db, "driver")

    updated = await service.update(driver.id, {"vehicle_model": "Vito", "license_number": "LN-42"})
    assert updated.vehicle_model == "Vito"
    assert (await service.get_by_user(driver.user_id)).license_number == "LN-42"

    with pytest.raises(NotFoundError):
        await service.update(999, {"vehicle_model": "x"})


def test_unknown_profile_role():
    with pytest.raises(InvalidRequestError):
        ProfileService(None, "admin")

