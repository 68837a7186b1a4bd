"""API v1 router configuration."""

from fastapi import APIRouter

from ezhealth.api.v1.endpoints import appointments, doctors, health, payments, users

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(appointments.router, prefix="/appointment", tags=["Appointments"])
api_router.include_router(payments.router, prefix="/payment", tags=["Payments"])
api_router.include_router(doctors.router, prefix="/doctor", tags=["Doctors"])
api_router.include_router(users.router, prefix="/user", tags=["Patients"])
