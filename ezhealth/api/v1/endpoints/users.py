"""Patient endpoints."""

from fastapi import APIRouter

from ezhealth.dependencies import DatabaseSession, PatientPrincipal
from ezhealth.schemas.prescriptions import PrescriptionListResponse
from ezhealth.services.prescription_service import PrescriptionService

router = APIRouter()


@router.get("/patient/prescriptions", response_model=PrescriptionListResponse)
async def list_my_prescriptions(
    principal: PatientPrincipal,
    db: DatabaseSession,
) -> PrescriptionListResponse:
    """Prescriptions issued to the authenticated patient."""
    items = await PrescriptionService(db).list_for_patient(principal.id)
    return PrescriptionListResponse(total=len(items), prescriptions=items)
