import logging
from datetime import datetime
from typing import AsyncIterator, List, Optional, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_session_factory
from repos.schedule_repository import ScheduleRepository
from schemas.response import ResponseModel
from schemas.schedule import Schedule, ScheduleCreate, ScheduleUpdate
from services.result import Found, Invalid, NotFound, Result
from services.schedule_service import ScheduleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/schedules", tags=["schedules"])

T = TypeVar("T")

async def get_db_session() -> AsyncIterator[AsyncSession]:
    session_factory = get_session_factory()
    async with session_factory() as session:
        yield session

def get_service(session: AsyncSession = Depends(get_db_session)) -> ScheduleService:
    repository = ScheduleRepository(session)
    return ScheduleService(repository)


def _strip(value: Optional[str]) -> Optional[str]:
    # stored places are stripped on write
    if value is None:
        return None
    return value.strip() or None


def _unwrap(result: Result[T]) -> T:
    if isinstance(result, Found):
        return result.value
    if isinstance(result, NotFound):
        logger.warning(result.message)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.message)
    if isinstance(result, Invalid):
        logger.warning(result.message)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    logger.error(result.message)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)


@router.post("/", response_model=ResponseModel[Schedule])
async def create_schedule(
    payload: ScheduleCreate, service: ScheduleService = Depends(get_service)
) -> ResponseModel[Schedule]:
    logger.info("Creating travel schedule from %s to %s", payload.source, payload.destination)
    created = _unwrap(await service.create_schedule(payload))
    logger.info("Created travel schedule with id=%s", created.id)
    return ResponseModel.success(created)


@router.get("/", response_model=ResponseModel[List[Schedule]])
async def list_schedules(service: ScheduleService = Depends(get_service)) -> ResponseModel[List[Schedule]]:
    logger.info("Getting all travel schedules")
    return ResponseModel.success(await service.list_schedules())


@router.get("/travel-schedules", response_model=ResponseModel[List[Schedule]])
async def search_schedules(
    source: Optional[str] = Query(None),
    destination: Optional[str] = Query(None),
    bus_id: Optional[int] = Query(None, alias="busId"),
    driver_id: Optional[int] = Query(None, alias="driverId"),
    arrival_start: Optional[datetime] = Query(None, alias="estimatedArrivalTimeStart"),
    arrival_end: Optional[datetime] = Query(None, alias="estimatedArrivalTimeEnd"),
    departure_start: Optional[datetime] = Query(None, alias="estimatedDepartureTimeStart"),
    departure_end: Optional[datetime] = Query(None, alias="estimatedDepartureTimeEnd"),
    service: ScheduleService = Depends(get_service),
) -> ResponseModel[List[Schedule]]:
    logger.info("Searching travel schedules")
    result = await service.search_schedules(
        source=_strip(source),
        destination=_strip(destination),
        bus_id=bus_id,
        driver_id=driver_id,
        arrival_start=arrival_start,
        arrival_end=arrival_end,
        departure_start=departure_start,
        departure_end=departure_end,
    )
    return ResponseModel.success(_unwrap(result))


@router.get("/travel", response_model=ResponseModel[List[Schedule]])
async def find_direct_routes(
    source: str = Query(..., min_length=1),
    destination: str = Query(..., min_length=1),
    service: ScheduleService = Depends(get_service),
) -> ResponseModel[List[Schedule]]:
    source, destination = _strip(source), _strip(destination)
    if source is None or destination is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="source and destination must not be blank")
    logger.info("Finding direct travel schedules from %s to %s", source, destination)
    return ResponseModel.success(await service.find_direct_routes(source, destination))


@router.get("/{schedule_id}", response_model=ResponseModel[Schedule])
async def get_schedule(
    schedule_id: int, service: ScheduleService = Depends(get_service)
) -> ResponseModel[Schedule]:
    logger.info("Fetching travel schedule with id=%s", schedule_id)
    return ResponseModel.success(_unwrap(await service.get_schedule(schedule_id)))


@router.put("/{schedule_id}", response_model=ResponseModel[Schedule])
async def update_schedule(
    schedule_id: int,
    payload: ScheduleUpdate,
    service: ScheduleService = Depends(get_service),
) -> ResponseModel[Schedule]:
    logger.info("Updating travel schedule with id=%s", schedule_id)
    updated = _unwrap(await service.update_schedule(schedule_id, payload))
    logger.info("Updated travel schedule with id=%s", schedule_id)
    return ResponseModel.success(updated)


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_schedule(schedule_id: int, service: ScheduleService = Depends(get_service)) -> Response:
    logger.info("Deleting travel schedule with id=%s", schedule_id)
    _unwrap(await service.delete_schedule(schedule_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
