from datetime import date
from typing import Optional

from loguru import logger

from . import crud, models
from .database import Database
from .events import EventPublisher
from .exceptions import NotFoundError, ValidationError


def _require_text(value, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} must be a non-empty string")
    return value.strip()


class MaintenanceService:
    """Repair log entries by technicians and maintenance requests by pilots."""

    def __init__(self, db: Database, publisher: Optional[EventPublisher] = None):
        self.db = db
        self.publisher = publisher or EventPublisher()

    async def record_repair(self, technician_id: str, plane_id: str, repair_code: str,
                            repair_date: Optional[date] = None) -> models.Repair:
        """Insert the repair and move ``Plane.last_repair_date`` in the same transaction."""
        technician_id = _require_text(technician_id, "technician_id")
        plane_id = _require_text(plane_id, "plane_id")
        repair_code = _require_text(repair_code, "repair_code")
        repair_date = repair_date or date.today()

        async with self.db.transaction() as session:
            if await crud.get_plane(session, plane_id) is None:
                raise NotFoundError(f"Plane {plane_id} not found")
            if await crud.get_technician(session, technician_id) is None:
                raise NotFoundError(f"Technician {technician_id} not found")
            repair = await crud.add_repair(session, plane_id, repair_code, repair_date, technician_id)
            await crud.set_last_repair_date(session, plane_id, repair_date)

        logger.info(f"🔧 [MAINTENANCE] repair={repair.id} plane={plane_id} code={repair_code} by {technician_id}")
        await self.publisher.publish({
            "type": "repair_recorded",
            "repair_id": repair.id,
            "plane_id": plane_id,
            "repair_date": repair_date.isoformat(),
        })
        return repair

    async def submit_request(self, pilot_id: str, plane_id: str, repair_code: str) -> models.MaintenanceRequest:
        pilot_id = _require_text(pilot_id, "pilot_id")
        plane_id = _require_text(plane_id, "plane_id")
        repair_code = _require_text(repair_code, "repair_code")

        async with self.db.transaction() as session:
            if await crud.get_plane(session, plane_id) is None:
                raise NotFoundError(f"Plane {plane_id} not found")
            if await crud.get_pilot(session, pilot_id) is None:
                raise NotFoundError(f"Pilot {pilot_id} not found")
            request = await crud.add_maintenance_request(session, plane_id, repair_code, date.today(), pilot_id)

        logger.info(f"📝 [MAINTENANCE] request={request.id} plane={plane_id} code={repair_code} by {pilot_id}")
        await self.publisher.publish({
            "type": "maintenance_requested",
            "request_id": request.id,
            "plane_id": plane_id,
        })
        return request
