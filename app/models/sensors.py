"""Time-series sensor ORM model.

One row per reading pushed by the field station.  Rows are immutable once
recorded; the composite of ``timestamp DESC`` is what "latest" reads use.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimeSeriesMixin


class SensorReading(Base, TimeSeriesMixin):
    """Soil + air + weather reading — moisture, temps, humidity, rain, NH₃."""

    __tablename__ = "sensor_readings"
    __table_args__ = (
        Index("ix_sensor_readings_timestamp", "timestamp"),
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    soil_moisture: Mapped[float] = mapped_column(Float, nullable=False)
    soil_temperature: Mapped[float] = mapped_column(Float, nullable=False)
    soil_humidity: Mapped[float] = mapped_column(Float, nullable=False)
    air_temperature: Mapped[float] = mapped_column(Float, nullable=False)
    air_humidity: Mapped[float] = mapped_column(Float, nullable=False)
    pressure: Mapped[float] = mapped_column(Float, nullable=False)
    rainfall: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default="0"
    )
    ammonia: Mapped[float] = mapped_column(Float, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<SensorReading id={self.id} ts={self.timestamp} "
            f"moisture={self.soil_moisture}>"
        )
