"""DeviceVital ORM model for the append-only vital log."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class Base(DeclarativeBase):
    pass


class UTCDateTime(TypeDecorator):
    """
    Stores datetimes as naive UTC and hands them back as aware UTC.

    SQLite keeps no zone information, so every value read back is tagged
    with UTC again.
    """
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None or value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class DeviceVital(Base):
    __tablename__ = "device_vitals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    device_id: Mapped[str] = mapped_column(String, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    thermal_value: Mapped[int] = mapped_column(Integer, nullable=False)
    battery_level: Mapped[float] = mapped_column(Float, nullable=False)
    memory_usage: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        # Every read is newest-first
        Index("idx_device_vitals_timestamp", "timestamp"),
        Index("idx_device_vitals_device_id", "device_id"),
    )
