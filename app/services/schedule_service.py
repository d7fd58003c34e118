import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from repos.schedule_filter import InvalidRangeError, ScheduleFilter
from repos.schedule_repository import ScheduleRepository
from schemas.schedule import Schedule, ScheduleCreate, ScheduleUpdate, check_times
from services.result import Failure, Found, Invalid, NotFound, Result

logger = logging.getLogger(__name__)


def _not_found(schedule_id: int) -> NotFound:
    return NotFound(f"Travel schedule not found with id={schedule_id}")


class ScheduleService:
    def __init__(self, repository: ScheduleRepository):
        self._repository = repository

    async def list_schedules(self) -> List[Schedule]:
        return await self._repository.get_all_async()

    async def get_schedule(self, schedule_id: int) -> Result[Schedule]:
        schedule = await self._repository.get_by_id_async(schedule_id)
        if schedule is None:
            return _not_found(schedule_id)
        return Found(schedule)

    async def search_schedules(
        self,
        source: Optional[str] = None,
        destination: Optional[str] = None,
        bus_id: Optional[int] = None,
        driver_id: Optional[int] = None,
        arrival_start: Optional[datetime] = None,
        arrival_end: Optional[datetime] = None,
        departure_start: Optional[datetime] = None,
        departure_end: Optional[datetime] = None,
    ) -> Result[List[Schedule]]:
        try:
            schedule_filter = ScheduleFilter.from_query(
                source=source,
                destination=destination,
                bus_id=bus_id,
                driver_id=driver_id,
                arrival_start=arrival_start,
                arrival_end=arrival_end,
                departure_start=departure_start,
                departure_end=departure_end,
            )
        except InvalidRangeError as exc:
            return Invalid(str(exc))
        logger.debug("Searching schedules with %r", schedule_filter)
        return Found(await self._repository.get_all_async(schedule_filter))

    async def find_direct_routes(self, source: str, destination: str) -> List[Schedule]:
        schedule_filter = (
            ScheduleFilter()
            .equals("source", source)
            .equals("destination", destination)
            .without_stops()
        )
        return await self._repository.get_all_async(schedule_filter)

    async def create_schedule(self, payload: ScheduleCreate) -> Result[Schedule]:
        problem = await self._check_references(payload.bus_id, payload.driver_id)
        if problem is not None:
            return problem
        try:
            created = await self._repository.insert_async(payload)
        except SQLAlchemyError:
            logger.exception("Failed to persist travel schedule")
            await self._repository.rollback()
            return Failure("Failed to create travel schedule")
        return Found(created)

    async def update_schedule(self, schedule_id: int, payload: ScheduleUpdate) -> Result[Schedule]:
        current = await self._repository.get_by_id_async(schedule_id)
        if current is None:
            return _not_found(schedule_id)

        changes = payload.model_dump(exclude_unset=True, exclude={"stops"})
        try:
            check_times(
                changes.get("estimated_departure_time", current.estimated_departure_time),
                changes.get("estimated_arrival_time", current.estimated_arrival_time),
            )
        except ValueError as exc:
            return Invalid(str(exc))

        problem = await self._check_references(changes.get("bus_id"), changes.get("driver_id"))
        if problem is not None:
            return problem

        try:
            updated = await self._repository.update_async(schedule_id, changes, payload.stops)
        except SQLAlchemyError:
            logger.exception("Failed to update travel schedule with id=%s", schedule_id)
            await self._repository.rollback()
            return Failure("Failed to update travel schedule")
        if updated is None:
            return _not_found(schedule_id)
        return Found(updated)

    async def delete_schedule(self, schedule_id: int) -> Result[None]:
        if not await self._repository.delete_async(schedule_id):
            return _not_found(schedule_id)
        return Found(None)

    async def _check_references(
        self, bus_id: Optional[int], driver_id: Optional[int]
    ) -> Optional[Invalid]:
        if bus_id is not None and not await self._repository.bus_exists(bus_id):
            return Invalid(f"Bus not found with id={bus_id}")
        if driver_id is not None and not await self._repository.driver_exists(driver_id):
            return Invalid(f"Driver not found with id={driver_id}")
        return None
