from fastapi import APIRouter
from rideops.api.v1.endpoints import (
    auth,
    contact_requests,
    customer_rides,
    customers,
    driver_rides,
    drivers,
    messages,
    rides,
)

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(contact_requests.router, prefix="/contact-requests", tags=["contact-requests"])
api_router.include_router(contact_requests.admin_router, prefix="/admin/contact-requests", tags=["admin"])
api_router.include_router(drivers.admin_router, prefix="/admin/drivers", tags=["admin"])
api_router.include_router(customers.admin_router, prefix="/admin/customers", tags=["admin"])
api_router.include_router(rides.router, prefix="/admin/rides", tags=["admin"])
api_router.include_router(drivers.router, prefix="/drivers", tags=["drivers"])
api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
api_router.include_router(driver_rides.router, prefix="/driver/rides", tags=["driver"])
api_router.include_router(customer_rides.router, prefix="/customer/rides", tags=["customer"])
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
