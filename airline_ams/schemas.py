from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .allocator import AllocationStatus


class ReservationIn(BaseModel):
    customer_id: int = Field(gt=0)


class ReservationOut(BaseModel):
    status: AllocationStatus
    reservation_id: str
    flight_instance_id: int
    customer_id: int


class RepairIn(BaseModel):
    technician_id: str = Field(min_length=1)
    repair_code: str = Field(min_length=1)
    repair_date: Optional[date] = None


class RepairOut(BaseModel):
    id: int
    plane_id: str
    repair_code: str
    repair_date: date
    technician_id: str

    model_config = ConfigDict(from_attributes=True)


class MaintenanceRequestIn(BaseModel):
    pilot_id: str = Field(min_length=1)
    repair_code: str = Field(min_length=1)


class MaintenanceRequestOut(BaseModel):
    id: int
    plane_id: str
    repair_code: str
    request_date: date
    pilot_id: str

    model_config = ConfigDict(from_attributes=True)
