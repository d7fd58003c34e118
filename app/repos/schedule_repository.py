from typing import Any, Dict, List, Optional

from sqlalchemy import Select, delete, insert, select, text, update
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.ext.asyncio import AsyncSession

from db.tables import buses, drivers, metadata, schedules, stops
from repos.schedule_filter import ScheduleFilter
from schemas.schedule import Schedule, ScheduleCreate, Stop, StopIn


DEFAULT_BUSES: Dict[int, str] = {
    1: "WB-1001",
    2: "WB-1002",
    3: "WB-1003",
}

DEFAULT_DRIVERS: Dict[int, str] = {
    1: "Arjun Mehta",
    2: "Kavya Rao",
    3: "Sam Fernandes",
}

def stops_statement(clause: Optional[ColumnElement[bool]] = None) -> Select:
    """Stops of every schedule matching ``clause``, selected through a subquery.

    The parent ids never travel as bind parameters, so the statement size does
    not grow with the number of schedules.
    """
    schedule_ids = select(schedules.c.id)
    if clause is not None:
        schedule_ids = schedule_ids.where(clause)
    return (
        select(stops)
        .where(stops.c.schedule_id.in_(schedule_ids))
        .order_by(stops.c.schedule_id, stops.c.sequence)
    )


class ScheduleRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def init_table(self) -> None:
        connection = await self._session.connection()
        await connection.run_sync(metadata.create_all)
        await self._session.commit()

    async def seed_default_async(self) -> None:
        for bus_id, plate_number in DEFAULT_BUSES.items():
            await self._session.execute(
                text(
                    """
                    INSERT INTO buses (id, plate_number)
                    VALUES (:id, :plate_number)
                    ON CONFLICT (id) DO NOTHING
                    """
                ),
                {"id": bus_id, "plate_number": plate_number},
            )
        for driver_id, name in DEFAULT_DRIVERS.items():
            await self._session.execute(
                text(
                    """
                    INSERT INTO drivers (id, name)
                    VALUES (:id, :name)
                    ON CONFLICT (id) DO NOTHING
                    """
                ),
                {"id": driver_id, "name": name},
            )
        await self._session.commit()

    async def get_all_async(self, schedule_filter: Optional[ScheduleFilter] = None) -> List[Schedule]:
        clause = schedule_filter.where_clause() if schedule_filter is not None else None
        stmt = select(schedules).order_by(schedules.c.id)
        if clause is not None:
            stmt = stmt.where(clause)
        result = await self._session.execute(stmt)
        rows = result.mappings().all()
        stops_by_schedule = await self._load_stops(stops_statement(clause)) if rows else {}
        return [Schedule(**row, stops=stops_by_schedule.get(row["id"], [])) for row in rows]

    async def get_by_id_async(self, schedule_id: int) -> Optional[Schedule]:
        result = await self._session.execute(select(schedules).where(schedules.c.id == schedule_id))
        row = result.mappings().first()
        if row is None:
            return None
        stops_by_schedule = await self._load_stops(stops_statement(schedules.c.id == schedule_id))
        return Schedule(**row, stops=stops_by_schedule.get(schedule_id, []))

    async def bus_exists(self, bus_id: int) -> bool:
        result = await self._session.execute(select(buses.c.id).where(buses.c.id == bus_id))
        return result.first() is not None

    async def driver_exists(self, driver_id: int) -> bool:
        result = await self._session.execute(select(drivers.c.id).where(drivers.c.id == driver_id))
        return result.first() is not None

    async def insert_async(self, payload: ScheduleCreate) -> Schedule:
        result = await self._session.execute(
            insert(schedules).values(**payload.model_dump(exclude={"stops"}))
        )
        schedule_id = result.inserted_primary_key[0]
        await self._insert_stops(schedule_id, payload.stops)
        await self._session.commit()
        return await self.get_by_id_async(schedule_id)

    async def update_async(
        self,
        schedule_id: int,
        changes: Dict[str, Any],
        new_stops: Optional[List[StopIn]] = None,
    ) -> Optional[Schedule]:
        """Apply ``changes`` and, if given, replace the stop set in one transaction.

        Returns None when the schedule no longer exists.
        """
        if changes:
            result = await self._session.execute(
                update(schedules).where(schedules.c.id == schedule_id).values(**changes)
            )
            found = result.rowcount > 0
        else:
            result = await self._session.execute(
                select(schedules.c.id).where(schedules.c.id == schedule_id)
            )
            found = result.first() is not None
        if not found:
            await self._session.rollback()
            return None

        if new_stops is not None:
            await self._session.execute(delete(stops).where(stops.c.schedule_id == schedule_id))
            await self._insert_stops(schedule_id, new_stops)
        await self._session.commit()
        return await self.get_by_id_async(schedule_id)

    async def delete_async(self, schedule_id: int) -> bool:
        """Delete a schedule and its stops; False when nothing was there to delete."""
        await self._session.execute(delete(stops).where(stops.c.schedule_id == schedule_id))
        result = await self._session.execute(delete(schedules).where(schedules.c.id == schedule_id))
        if result.rowcount == 0:
            await self._session.rollback()
            return False
        await self._session.commit()
        return True

    async def rollback(self) -> None:
        await self._session.rollback()

    async def _insert_stops(self, schedule_id: int, new_stops: List[StopIn]) -> None:
        if not new_stops:
            return
        await self._session.execute(
            insert(stops),
            [{**stop.model_dump(), "schedule_id": schedule_id} for stop in new_stops],
        )

    async def _load_stops(self, stmt: Select) -> Dict[int, List[Stop]]:
        result = await self._session.execute(stmt)
        grouped: Dict[int, List[Stop]] = {}
        for row in result.mappings().all():
            grouped.setdefault(row["schedule_id"], []).append(Stop(**row))
        return grouped
