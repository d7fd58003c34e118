from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)

metadata = MetaData()

buses = Table(
    "buses",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("plate_number", String(32)),
)

drivers = Table(
    "drivers",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(128)),
)

schedules = Table(
    "travel_schedules",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("source", String(128), nullable=False, index=True),
    Column("destination", String(128), nullable=False, index=True),
    Column("estimated_arrival_time", DateTime(timezone=True)),
    Column("estimated_departure_time", DateTime(timezone=True)),
    Column("bus_id", Integer, ForeignKey("buses.id")),
    Column("driver_id", Integer, ForeignKey("drivers.id")),
)

stops = Table(
    "stops",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "schedule_id",
        Integer,
        ForeignKey("travel_schedules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("name", String(128), nullable=False),
    Column("sequence", Integer, nullable=False),
    Column("estimated_arrival_time", DateTime(timezone=True)),
    UniqueConstraint("schedule_id", "sequence", name="uq_stops_schedule_sequence"),
)
