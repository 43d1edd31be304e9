"""
Seat allocation for flight instances.

``reserve`` runs one transaction per request:
1. Lock the flight instance row (``FOR UPDATE``; SQLite serializes at ``BEGIN IMMEDIATE``)
2. available = seats_total - seats_sold
3. available > 0  -> insert a ``reserved`` row and bump seats_sold
   otherwise      -> insert a ``waitlist`` row, seats_sold untouched
4. Commit; any failure rolls back both writes

Concurrent callers on the same flight instance queue on step 1, so two of them
can never both see the last free seat.
"""

import enum
from dataclasses import dataclass
from typing import Optional

import uuid_utils
from loguru import logger

from . import crud
from .database import Database
from .events import EventPublisher
from .exceptions import ConflictError, NotFoundError, ValidationError
from .models import ReservationStatus


class AllocationStatus(str, enum.Enum):
    RESERVED = "RESERVED"
    WAITLISTED = "WAITLISTED"


@dataclass(frozen=True)
class ReservationOutcome:
    status: AllocationStatus
    reservation_id: str
    flight_instance_id: int
    customer_id: int


def new_reservation_id() -> str:
    return str(uuid_utils.uuid7())


def _require_positive_id(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{name} must be a positive integer, got {value!r}")
    return value


class SeatAllocator:
    def __init__(self, db: Database, publisher: Optional[EventPublisher] = None):
        self.db = db
        self.publisher = publisher or EventPublisher()

    async def reserve(self, flight_instance_id: int, customer_id: int) -> ReservationOutcome:
        _require_positive_id(flight_instance_id, "flight_instance_id")
        _require_positive_id(customer_id, "customer_id")

        async with self.db.transaction() as session:
            instance = await crud.lock_flight_instance(session, flight_instance_id)
            if instance is None:
                raise NotFoundError(f"Flight instance {flight_instance_id} not found")
            if await crud.get_customer(session, customer_id) is None:
                raise NotFoundError(f"Customer {customer_id} not found")

            available = instance.seats_total - instance.seats_sold
            if available < 0:
                raise ConflictError(
                    f"Flight instance {flight_instance_id} is oversold "
                    f"({instance.seats_sold}/{instance.seats_total})"
                )

            reservation_id = new_reservation_id()
            if available > 0:
                await crud.add_reservation(
                    session, reservation_id, customer_id, flight_instance_id, ReservationStatus.RESERVED
                )
                await crud.increment_seats_sold(session, flight_instance_id)
                status = AllocationStatus.RESERVED
            else:
                await crud.add_reservation(
                    session, reservation_id, customer_id, flight_instance_id, ReservationStatus.WAITLIST
                )
                status = AllocationStatus.WAITLISTED

        outcome = ReservationOutcome(status, reservation_id, flight_instance_id, customer_id)
        logger.info(
            f"🎫 [ALLOCATOR] {status.value} reservation={reservation_id} "
            f"flight_instance={flight_instance_id} customer={customer_id} available_before={available}"
        )
        await self.publisher.publish({
            "type": "reservation_created",
            "status": status.value,
            "reservation_id": reservation_id,
            "flight_instance_id": flight_instance_id,
        })
        return outcome
