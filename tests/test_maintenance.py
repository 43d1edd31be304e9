from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from airline_ams import crud, models
from airline_ams.exceptions import NotFoundError, StorageError, ValidationError
from airline_ams.maintenance import MaintenanceService

from conftest import PILOT_ID, PLANE_ID, TECHNICIAN_ID


@pytest.fixture
def service(db) -> MaintenanceService:
    return MaintenanceService(db)


async def _count(db, model) -> int:
    async with db.transaction() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def _last_repair_date(db, plane_id: str):
    async with db.transaction() as session:
        return (await session.get(models.Plane, plane_id)).last_repair_date


@pytest.mark.integration
class TestRecordRepair:
    @pytest.mark.asyncio
    async def test_inserts_repair_and_updates_plane(self, db, service):
        repair = await service.record_repair(TECHNICIAN_ID, PLANE_ID, 'ENG-7', date(2025, 3, 14))

        assert repair.id is not None
        assert repair.repair_date == date(2025, 3, 14)
        assert await _count(db, models.Repair) == 1
        assert await _last_repair_date(db, PLANE_ID) == date(2025, 3, 14)

    @pytest.mark.asyncio
    async def test_repair_date_defaults_to_today(self, db, service):
        repair = await service.record_repair(TECHNICIAN_ID, PLANE_ID, 'HYD-2')

        assert repair.repair_date == date.today()
        assert await _last_repair_date(db, PLANE_ID) == date.today()

    @pytest.mark.asyncio
    async def test_unknown_plane(self, db, service):
        with pytest.raises(NotFoundError):
            await service.record_repair(TECHNICIAN_ID, 'NOPE', 'ENG-7')

        assert await _count(db, models.Repair) == 0

    @pytest.mark.asyncio
    async def test_unknown_technician(self, db, service):
        with pytest.raises(NotFoundError):
            await service.record_repair('T999', PLANE_ID, 'ENG-7')

        assert await _count(db, models.Repair) == 0
        assert await _last_repair_date(db, PLANE_ID) is None

    @pytest.mark.asyncio
    async def test_failed_plane_update_discards_repair_row(self, db, service, monkeypatch):
        async def failing_update(session, plane_id, repair_date):
            raise OperationalError('UPDATE planes', {}, Exception('connection reset'))

        monkeypatch.setattr(crud, 'set_last_repair_date', failing_update)

        with pytest.raises(StorageError):
            await service.record_repair(TECHNICIAN_ID, PLANE_ID, 'ENG-7', date(2025, 3, 14))

        assert await _count(db, models.Repair) == 0
        assert await _last_repair_date(db, PLANE_ID) is None

    @pytest.mark.asyncio
    async def test_blank_repair_code_rejected(self, service):
        with pytest.raises(ValidationError):
            await service.record_repair(TECHNICIAN_ID, PLANE_ID, '   ')


@pytest.mark.integration
class TestSubmitRequest:
    @pytest.mark.asyncio
    async def test_inserts_request_dated_today(self, db, service):
        request = await service.submit_request(PILOT_ID, PLANE_ID, 'AVI-1')

        assert request.request_date == date.today()
        assert request.pilot_id == PILOT_ID
        assert await _count(db, models.MaintenanceRequest) == 1

    @pytest.mark.asyncio
    async def test_unknown_pilot(self, db, service):
        with pytest.raises(NotFoundError):
            await service.submit_request('P404', PLANE_ID, 'AVI-1')

        assert await _count(db, models.MaintenanceRequest) == 0
