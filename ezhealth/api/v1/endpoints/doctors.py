"""Doctor endpoints: directory, admin verification and prescriptions."""

from uuid import UUID

from fastapi import APIRouter, status

from ezhealth.dependencies import (
    AdminPrincipal,
    CacheManagerDep,
    DatabaseSession,
    DoctorPrincipal,
)
from ezhealth.schemas.doctors import DoctorListResponse, DoctorVerifyResponse
from ezhealth.schemas.prescriptions import PrescriptionCreate, PrescriptionEnvelope
from ezhealth.services.doctor_service import DoctorService
from ezhealth.services.prescription_service import PrescriptionService

router = APIRouter()


@router.get(
    "/all",
    response_model=DoctorListResponse,
    status_code=status.HTTP_200_OK,
    summary="List verified doctors",
)
async def list_doctors(
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> DoctorListResponse:
    """
    Public directory of verified doctors.

    Args:
        db: Database session
        cache_manager: Cache manager

    Returns:
        Verified doctors and their count
    """
    doctor_list = await DoctorService(db, cache_manager).list_verified_doctors()
    return DoctorListResponse(total_doctors=len(doctor_list), doctors=doctor_list)


@router.put(
    "/admin/verify-doctor/{doctor_id}",
    response_model=DoctorVerifyResponse,
    status_code=status.HTTP_200_OK,
    summary="Verify a doctor account (admin only)",
)
async def verify_doctor(
    doctor_id: UUID,
    principal: AdminPrincipal,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> DoctorVerifyResponse:
    """
    Verify a doctor so they appear in the directory and can be booked.

    Args:
        doctor_id: Doctor ID
        principal: Authenticated admin
        db: Database session
        cache_manager: Cache manager

    Returns:
        Verified doctor
    """
    doctor = await DoctorService(db, cache_manager).verify_doctor(doctor_id)
    return DoctorVerifyResponse(message="Doctor verified", doctor=doctor)


@router.post(
    "/upload-prescription",
    response_model=PrescriptionEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a prescription for an appointment",
)
async def upload_prescription(
    data: PrescriptionCreate,
    principal: DoctorPrincipal,
    db: DatabaseSession,
) -> PrescriptionEnvelope:
    """
    Record a prescription whose document is hosted on the media service.

    Args:
        data: Appointment, medications, notes and document URL
        principal: Authenticated doctor
        db: Database session

    Returns:
        Created prescription
    """
    prescription = await PrescriptionService(db).create(principal.id, data)
    return PrescriptionEnvelope(
        message="Prescription uploaded successfully",
        prescription=prescription,
    )
