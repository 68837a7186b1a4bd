"""Doctor service for business logic."""

from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ezhealth.core.exceptions import NotFoundException
from ezhealth.core.redis_client import CacheManager
from ezhealth.models.doctors import doctors
from ezhealth.schemas.doctors import DoctorResponse

logger = structlog.get_logger(__name__)


class DoctorService:
    """Service for the doctor directory and admin verification."""

    # Cache TTL in seconds
    DOCTOR_LIST_CACHE_TTL = 300  # 5 minutes for lists
    VERIFIED_LIST_KEY = "doctor:list:verified"

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize service with database session and optional cache manager."""
        self.db = db
        self.cache = cache_manager

    async def list_verified_doctors(self) -> list[DoctorResponse]:
        """Verified doctors ordered by name, served from cache when warm."""
        if self.cache:
            cached = self.cache.get_json(self.VERIFIED_LIST_KEY)
            if cached is not None:
                return [DoctorResponse.model_validate(item) for item in cached]

        stmt = (
            select(doctors)
            .where(doctors.c.is_verified.is_(True))
            .order_by(doctors.c.first_name, doctors.c.last_name)
        )
        result = await self.db.execute(stmt)
        doctor_list = [DoctorResponse.model_validate(dict(row)) for row in result.mappings().all()]

        if self.cache:
            self.cache.set_json(
                self.VERIFIED_LIST_KEY,
                [doctor.model_dump(mode="json", exclude={"name"}) for doctor in doctor_list],
                ttl=self.DOCTOR_LIST_CACHE_TTL,
            )

        return doctor_list

    async def verify_doctor(self, doctor_id: UUID) -> DoctorResponse:
        """
        Mark a doctor as verified.

        Raises:
            NotFoundException: If doctor not found
        """
        stmt = (
            update(doctors)
            .where(doctors.c.id == doctor_id)
            .values(is_verified=True, verified_at=datetime.now(UTC))
            .returning(doctors)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        if row is None:
            await self.db.rollback()
            raise NotFoundException("Doctor not found")
        await self.db.commit()

        if self.cache:
            self.cache.delete_pattern("doctor:list:*")

        logger.info("doctor_verified", doctor_id=str(doctor_id))
        return DoctorResponse.model_validate(dict(row))
