"""Crop recommendation history ORM model.

A denormalized projection of what the scorer returned for a given reading.
It is never read back to make decisions; recommendations are always
recomputed from the latest reading and the crop profile table.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import AppendOnlyMixin, Base


class CropRecommendationRecord(Base, AppendOnlyMixin):
    """Stored snapshot of one crop's suitability for one reading."""

    __tablename__ = "crop_recommendations"
    __table_args__ = (
        Index("ix_crop_recommendations_created_at", "created_at"),
    )

    crop_type: Mapped[str] = mapped_column(String(100), nullable=False)
    recommendation_text: Mapped[str] = mapped_column(Text, nullable=False)
    confidence_score: Mapped[float | None] = mapped_column(
        Float, nullable=True
    )
    based_on_reading_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("sensor_readings.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<CropRecommendationRecord id={self.id} "
            f"crop={self.crop_type!r} confidence={self.confidence_score}>"
        )
