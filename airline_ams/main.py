import asyncio
from typing import Optional

from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from . import crud
from .allocator import SeatAllocator
from .config import Settings, settings as default_settings
from .database import Database
from .events import EventPublisher, WSManager, forward_events
from .exceptions import CustomBaseError
from .logger import configure_logging
from .maintenance import MaintenanceService
from .roles import Capability, require
from .schemas import (
    MaintenanceRequestIn,
    MaintenanceRequestOut,
    RepairIn,
    RepairOut,
    ReservationIn,
    ReservationOut,
)


async def custom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, CustomBaseError) else CustomBaseError(str(exc))
    if error.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {error.message}")
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, RequestValidationError) else RequestValidationError([])
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": error.errors()})


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"💥 Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        content={"detail": "Internal server error"})


def get_allocator(request: Request) -> SeatAllocator:
    return request.app.state.allocator


def get_maintenance(request: Request) -> MaintenanceService:
    return request.app.state.maintenance


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None,
               publisher: Optional[EventPublisher] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.DEBUG)
    db = db or Database.from_settings(settings)
    publisher = publisher or EventPublisher.from_url(settings.REDIS_URL, settings.EVENTS_CHANNEL)
    ws_manager = WSManager()

    app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)
    app.state.settings = settings
    app.state.db = db
    app.state.publisher = publisher
    app.state.ws_manager = ws_manager
    app.state.allocator = SeatAllocator(db, publisher)
    app.state.maintenance = MaintenanceService(db, publisher)
    app.state.listener = None

    app.add_exception_handler(CustomBaseError, custom_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_500_exception_handler)

    # Startup: create tables and demo data, start redis subscriber bridge
    @app.on_event("startup")
    async def startup():
        if settings.CREATE_TABLES:
            await db.create_all()
        if settings.SEED_DEMO_DATA:
            async with db.transaction() as session:
                instance = await crud.create_demo_data(session)
            logger.info(f"🌱 Demo flight instance {instance.id} ready")
        if publisher.redis_client is not None:
            app.state.listener = asyncio.create_task(forward_events(publisher, ws_manager))

    @app.on_event("shutdown")
    async def shutdown():
        try:
            if app.state.listener is not None:
                app.state.listener.cancel()
                try:
                    await app.state.listener
                except asyncio.CancelledError:
                    pass
                except Exception:
                    logger.opt(exception=True).warning("📡 [EVENTS] Event listener had stopped with an error")
            await publisher.close()
        finally:
            await db.dispose()

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/flight-instances/{flight_instance_id}/reservations",
              response_model=ReservationOut, status_code=status.HTTP_201_CREATED,
              dependencies=[Depends(require(Capability.RESERVE_SEAT))])
    async def reserve_seat(flight_instance_id: int, body: ReservationIn,
                           allocator: SeatAllocator = Depends(get_allocator)):
        outcome = await allocator.reserve(flight_instance_id, body.customer_id)
        return ReservationOut(status=outcome.status, reservation_id=outcome.reservation_id,
                              flight_instance_id=outcome.flight_instance_id,
                              customer_id=outcome.customer_id)

    @app.post("/planes/{plane_id}/repairs", response_model=RepairOut,
              status_code=status.HTTP_201_CREATED,
              dependencies=[Depends(require(Capability.RECORD_REPAIR))])
    async def record_repair(plane_id: str, body: RepairIn,
                            maintenance: MaintenanceService = Depends(get_maintenance)):
        return await maintenance.record_repair(body.technician_id, plane_id, body.repair_code, body.repair_date)

    @app.post("/planes/{plane_id}/maintenance-requests", response_model=MaintenanceRequestOut,
              status_code=status.HTTP_201_CREATED,
              dependencies=[Depends(require(Capability.REQUEST_MAINTENANCE))])
    async def submit_maintenance_request(plane_id: str, body: MaintenanceRequestIn,
                                         maintenance: MaintenanceService = Depends(get_maintenance)):
        return await maintenance.submit_request(body.pilot_id, plane_id, body.repair_code)

    # WebSocket endpoint
    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket):
        await ws_manager.connect(ws)
        try:
            while True:
                # inbound frames are ignored; the socket only receives events
                await ws.receive_text()
        except WebSocketDisconnect:
            ws_manager.disconnect(ws)

    return app
