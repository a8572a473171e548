"""
Vital Store
===========

Append-only persistence for vital readings.

The rest of the application only sees the narrow VitalStore interface:

    insert(reading)           -> stored reading with id
    get(vital_id)             -> stored reading or None
    count()                   -> number of stored readings
    latest(n)                 -> newest n readings, newest first
    page(page, page_size)     -> (one page newest first, total count)

SqlAlchemyVitalStore implements it on any SQLAlchemy database. Readings are
ordered by timestamp descending, ties broken by id descending.
"""

import logging
from typing import Optional, Protocol

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vital_monitor.models import NewVitalReading, VitalReading
from vital_monitor.storage.tables import Base, DeviceVital

logger = logging.getLogger(__name__)

# Largest value a 64-bit SQL INTEGER holds; ids and offsets beyond it cannot match a row
MAX_SQL_INTEGER = 2 ** 63 - 1


class VitalStore(Protocol):
    """What the vital service needs from a datastore."""

    def insert(self, reading: NewVitalReading) -> VitalReading: ...

    def get(self, vital_id: int) -> Optional[VitalReading]: ...

    def count(self) -> int: ...

    def latest(self, n: int) -> list[VitalReading]: ...

    def page(self, page: int, page_size: int) -> tuple[list[VitalReading], int]: ...


def _newest_first():
    return select(DeviceVital).order_by(DeviceVital.timestamp.desc(), DeviceVital.id.desc())


def _engine_for(database_url: str):
    kwargs = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a threadpool
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees a fresh empty database
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


class SqlAlchemyVitalStore:
    """
    VitalStore backed by SQLAlchemy.

    HOW TO USE:
    ----------
    store = SqlAlchemyVitalStore("sqlite:///./vitals.db")
    store.init_schema()

    stored = store.insert(NewVitalReading(...))
    newest = store.latest(100)

    store.close()
    """

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = _engine_for(database_url)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def init_schema(self):
        """Create the table and indexes if they do not exist yet."""
        Base.metadata.create_all(self.engine)
        logger.info(f"Vital store ready ({self.engine.url.get_backend_name()})")

    def close(self):
        self.engine.dispose()

    def insert(self, reading: NewVitalReading) -> VitalReading:
        row = DeviceVital(**reading.model_dump())
        with self._session_factory() as session:
            session.add(row)
            session.commit()
            return VitalReading.model_validate(row)

    def get(self, vital_id: int) -> Optional[VitalReading]:
        if not -MAX_SQL_INTEGER <= vital_id <= MAX_SQL_INTEGER:
            return None
        with self._session_factory() as session:
            row = session.get(DeviceVital, vital_id)
            return VitalReading.model_validate(row) if row is not None else None

    def count(self) -> int:
        with self._session_factory() as session:
            return session.scalar(select(func.count()).select_from(DeviceVital)) or 0

    def latest(self, n: int) -> list[VitalReading]:
        with self._session_factory() as session:
            rows = session.scalars(_newest_first().limit(n)).all()
            return [VitalReading.model_validate(row) for row in rows]

    def page(self, page: int, page_size: int) -> tuple[list[VitalReading], int]:
        with self._session_factory() as session:
            total_count = session.scalar(select(func.count()).select_from(DeviceVital)) or 0
            offset = (page - 1) * page_size
            if offset > MAX_SQL_INTEGER:
                return [], total_count
            rows = session.scalars(_newest_first().offset(offset).limit(page_size)).all()
            return [VitalReading.model_validate(row) for row in rows], total_count
