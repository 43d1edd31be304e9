from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from . import models


def lock_flight_instance_query(flight_instance_id: int) -> Select:
    return (
        select(models.FlightInstance)
        .where(models.FlightInstance.id == flight_instance_id)
        .with_for_update()
    )

# lock the flight instance row (FOR UPDATE) for the rest of the transaction
async def lock_flight_instance(session: AsyncSession, flight_instance_id: int) -> Optional[models.FlightInstance]:
    res = await session.execute(lock_flight_instance_query(flight_instance_id))
    return res.scalars().first()

async def get_customer(session: AsyncSession, customer_id: int) -> Optional[models.Customer]:
    return await session.get(models.Customer, customer_id)

async def get_plane(session: AsyncSession, plane_id: str) -> Optional[models.Plane]:
    return await session.get(models.Plane, plane_id)

async def get_pilot(session: AsyncSession, pilot_id: str) -> Optional[models.Pilot]:
    return await session.get(models.Pilot, pilot_id)

async def get_technician(session: AsyncSession, technician_id: str) -> Optional[models.Technician]:
    return await session.get(models.Technician, technician_id)

async def add_reservation(session: AsyncSession, reservation_id: str, customer_id: int,
                          flight_instance_id: int, status: models.ReservationStatus) -> models.Reservation:
    reservation = models.Reservation(id=reservation_id, customer_id=customer_id,
                                     flight_instance_id=flight_instance_id, status=status)
    session.add(reservation)
    await session.flush()
    return reservation

# seats_sold + 1 is evaluated by the database, never read-modify-write in Python
async def increment_seats_sold(session: AsyncSession, flight_instance_id: int) -> None:
    q = (
        update(models.FlightInstance)
        .where(models.FlightInstance.id == flight_instance_id)
        .values(seats_sold=models.FlightInstance.seats_sold + 1)
        .execution_options(synchronize_session=False)
    )
    await session.execute(q)

async def add_repair(session: AsyncSession, plane_id: str, repair_code: str,
                     repair_date: date, technician_id: str) -> models.Repair:
    repair = models.Repair(plane_id=plane_id, repair_code=repair_code,
                           repair_date=repair_date, technician_id=technician_id)
    session.add(repair)
    await session.flush()  # get repair.id
    return repair

async def set_last_repair_date(session: AsyncSession, plane_id: str, repair_date: date) -> None:
    q = (
        update(models.Plane)
        .where(models.Plane.id == plane_id)
        .values(last_repair_date=repair_date)
        .execution_options(synchronize_session=False)
    )
    await session.execute(q)

async def add_maintenance_request(session: AsyncSession, plane_id: str, repair_code: str,
                                  request_date: date, pilot_id: str) -> models.MaintenanceRequest:
    request = models.MaintenanceRequest(plane_id=plane_id, repair_code=repair_code,
                                        request_date=request_date, pilot_id=pilot_id)
    session.add(request)
    await session.flush()
    return request

# helper to create initial demo data
async def create_demo_data(session: AsyncSession) -> models.FlightInstance:
    existing = await session.execute(select(models.Flight).where(models.Flight.flight_number == "F100"))
    if existing.scalars().first():
        q = select(models.FlightInstance).where(models.FlightInstance.flight_number == "F100")
        return (await session.execute(q)).scalars().first()
    plane = models.Plane(id="PL001", make="Boeing", model="737-800", year=2012)
    session.add_all([
        plane,
        models.Customer(id=1, first_name="Ada", last_name="Lovelace", gender="F"),
        models.Customer(id=2, first_name="Alan", last_name="Turing", gender="M"),
        models.Pilot(id="P001", full_name="Amelia Earhart", nationality="US"),
        models.Technician(id="T001", full_name="Grace Hopper"),
    ])
    await session.flush()
    session.add(models.Flight(flight_number="F100", plane_id=plane.id,
                              departure_city="DEL", arrival_city="AKL"))
    await session.flush()
    instance = models.FlightInstance(flight_number="F100", flight_date=date.today() + timedelta(days=1),
                                     seats_total=20, seats_sold=0, num_of_stops=1,
                                     ticket_cost=Decimal("450.00"))
    session.add(instance)
    await session.flush()
    return instance
