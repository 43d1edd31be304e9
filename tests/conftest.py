"""
Shared fixtures: a SQLite database file per test with reference rows seeded.

SQLite stands in for PostgreSQL here; the store handle serializes writers with
BEGIN IMMEDIATE, which gives the allocator the same one-at-a-time guarantee the
row lock gives on PostgreSQL.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from airline_ams import models
from airline_ams.database import Database
from airline_ams.models import ReservationStatus


CUSTOMER_COUNT = 20
PLANE_ID = 'PL001'
TECHNICIAN_ID = 'T001'
PILOT_ID = 'P001'
FLIGHT_NUMBER = 'AA100'


async def seed_reference_rows(db: Database) -> None:
    async with db.transaction() as session:
        session.add_all(
            [
                models.Customer(id=i, first_name=f'First{i}', last_name=f'Last{i}')
                for i in range(1, CUSTOMER_COUNT + 1)
            ]
        )
        session.add_all(
            [
                models.Plane(id=PLANE_ID, make='Airbus', model='A320', year=2015),
                models.Technician(id=TECHNICIAN_ID, full_name='Grace Hopper'),
                models.Pilot(id=PILOT_ID, full_name='Amelia Earhart'),
            ]
        )
        await session.flush()
        session.add(
            models.Flight(
                flight_number=FLIGHT_NUMBER,
                plane_id=PLANE_ID,
                departure_city='Los Angeles',
                arrival_city='New York',
            )
        )


@pytest.fixture
def db_url(tmp_path) -> str:
    return f'sqlite+aiosqlite:///{tmp_path / "ams.db"}'


@pytest.fixture
async def db(db_url: str) -> AsyncGenerator[Database, None]:
    database = Database(db_url, lock_timeout=10.0)
    await database.create_all()
    await seed_reference_rows(database)
    yield database
    await database.dispose()


@pytest.fixture
def create_flight_instance(db: Database) -> Callable[..., Awaitable[int]]:
    """Factory: flight instance with ``seats_sold`` matching reserved rows (customer 1 holds them)."""

    async def _create(seats_total: int, seats_sold: int = 0) -> int:
        async with db.transaction() as session:
            instance = models.FlightInstance(
                flight_number=FLIGHT_NUMBER,
                flight_date=date(2025, 7, 1),
                seats_total=seats_total,
                seats_sold=seats_sold,
                ticket_cost=Decimal('199.00'),
            )
            session.add(instance)
            await session.flush()
            for n in range(seats_sold):
                session.add(
                    models.Reservation(
                        id=f'SEED-{instance.id}-{n}',
                        customer_id=1,
                        flight_instance_id=instance.id,
                        status=ReservationStatus.RESERVED,
                    )
                )
            return instance.id

    return _create


async def read_seat_counts(db: Database, flight_instance_id: int) -> tuple[int, int]:
    async with db.transaction() as session:
        instance = await session.get(models.FlightInstance, flight_instance_id)
        return instance.seats_total, instance.seats_sold


async def count_reservations(
    db: Database, flight_instance_id: int, status: ReservationStatus | None = None
) -> int:
    q = select(func.count()).select_from(models.Reservation).where(
        models.Reservation.flight_instance_id == flight_instance_id
    )
    if status is not None:
        q = q.where(models.Reservation.status == status)
    async with db.transaction() as session:
        return (await session.execute(q)).scalar_one()


@pytest.fixture
def seat_counts(db: Database) -> Callable[[int], Awaitable[tuple[int, int]]]:
    async def _read(flight_instance_id: int) -> tuple[int, int]:
        return await read_seat_counts(db, flight_instance_id)

    return _read


@pytest.fixture
def reservation_count(db: Database) -> Callable[..., Awaitable[int]]:
    async def _count(flight_instance_id: int, status: ReservationStatus | None = None) -> int:
        return await count_reservations(db, flight_instance_id, status)

    return _count
