import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ReservationStatus(str, enum.Enum):
    RESERVED = "reserved"
    WAITLIST = "waitlist"
    FLOWN = "flown"


class Customer(Base):
    __tablename__ = "customers"
    id = Column(Integer, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    gender = Column(String(1))
    dob = Column(Date)
    address = Column(String)
    phone = Column(String)
    zip = Column(String)


class Pilot(Base):
    __tablename__ = "pilots"
    id = Column(String, primary_key=True)
    full_name = Column(String, nullable=False)
    nationality = Column(String)


class Technician(Base):
    __tablename__ = "technicians"
    id = Column(String, primary_key=True)
    full_name = Column(String, nullable=False)


class Plane(Base):
    __tablename__ = "planes"
    id = Column(String, primary_key=True)
    make = Column(String, nullable=False)
    model = Column(String, nullable=False)
    year = Column(Integer)
    last_repair_date = Column(Date, nullable=True)


class Flight(Base):
    __tablename__ = "flights"
    flight_number = Column(String, primary_key=True)
    plane_id = Column(String, ForeignKey("planes.id"))
    departure_city = Column(String, nullable=False)
    arrival_city = Column(String, nullable=False)


class FlightInstance(Base):
    __tablename__ = "flight_instances"
    id = Column(Integer, primary_key=True)
    flight_number = Column(String, ForeignKey("flights.flight_number"), nullable=False)
    flight_date = Column(Date, nullable=False)
    departed_on_time = Column(Boolean)
    arrived_on_time = Column(Boolean)
    seats_total = Column(Integer, nullable=False)
    seats_sold = Column(Integer, nullable=False, default=0)
    num_of_stops = Column(Integer, nullable=False, default=0)
    ticket_cost = Column(Numeric(10, 2))
    __table_args__ = (
        CheckConstraint("seats_sold >= 0", name="ck_seats_sold_non_negative"),
        CheckConstraint("seats_sold <= seats_total", name="ck_seats_sold_within_total"),
    )


class Reservation(Base):
    __tablename__ = "reservations"
    id = Column(String(40), primary_key=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    flight_instance_id = Column(Integer, ForeignKey("flight_instances.id"), nullable=False, index=True)
    status = Column(
        Enum(ReservationStatus, name="reservation_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    created_at = Column(DateTime, server_default=func.now())


class Repair(Base):
    __tablename__ = "repairs"
    id = Column(Integer, primary_key=True)
    plane_id = Column(String, ForeignKey("planes.id"), nullable=False)
    repair_code = Column(String, nullable=False)
    repair_date = Column(Date, nullable=False)
    technician_id = Column(String, ForeignKey("technicians.id"), nullable=False)


class MaintenanceRequest(Base):
    __tablename__ = "maintenance_requests"
    id = Column(Integer, primary_key=True)
    plane_id = Column(String, ForeignKey("planes.id"), nullable=False)
    repair_code = Column(String, nullable=False)
    request_date = Column(Date, nullable=False)
    pilot_id = Column(String, ForeignKey("pilots.id"), nullable=False)
