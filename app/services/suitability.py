"""Crop suitability scoring against fixed optimal ranges.

Each tracked parameter scores 100 at the midpoint of its optimal range and
falls linearly to 80 at either edge.  Outside the range the score drops by 5
points per unit of distance, never below 20.  A crop's score is the rounded
mean of its four parameter scores.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from app.schemas.crops import CropProfile, CropRecommendation, OptimalRange
from app.schemas.sensors import SensorReading
from app.services.sensor_store import coerce_reading

MIN_SCORE = 20
MAX_SCORE = 100
EDGE_PENALTY = 20.0
OUTSIDE_PENALTY_PER_UNIT = 5.0
OUTSIDE_PENALTY_CAP = 80.0

EXCELLENT_THRESHOLD = 80
GOOD_THRESHOLD = 60

SCORED_PARAMETERS: tuple[str, ...] = (
	"soil_moisture",
	"soil_temperature",
	"air_temperature",
	"air_humidity",
)

_LABELS = {
	"soil_moisture": "Soil moisture",
	"soil_temperature": "Soil temperature",
	"air_temperature": "Air temperature",
	"air_humidity": "Air humidity",
}

_UNITS = {
	"soil_moisture": "%",
	"soil_temperature": "°C",
	"air_temperature": "°C",
	"air_humidity": "%",
}

# (below range, above range)
_DIRECTIONS = {
	"soil_moisture": ("too dry", "too wet"),
	"soil_temperature": ("too cold", "too hot"),
	"air_temperature": ("too cold", "too hot"),
	"air_humidity": ("too dry", "too humid"),
}

_HINTS = {
	("soil_moisture", "too dry"): "Increase irrigation frequency.",
	("soil_moisture", "too wet"): "Reduce watering and check drainage to prevent root rot.",
	("soil_temperature", "too cold"): "Mulch or use row covers to warm the soil.",
	("soil_temperature", "too hot"): "Mulch to keep the root zone cool.",
	("air_temperature", "too cold"): "Consider greenhouse protection or wait for warmer weather.",
	("air_temperature", "too hot"): "Provide shade during the hottest part of the day.",
	("air_humidity", "too dry"): "Mist or mulch heavily to hold humidity around the plants.",
	("air_humidity", "too humid"): "Improve air circulation to limit fungal disease.",
}


@dataclass(frozen=True, slots=True)
class ParameterAssessment:
	parameter: str
	value: float
	optimal: OptimalRange
	score: float
	deviation: float
	direction: str | None

	@property
	def in_range(self) -> bool:
		return self.direction is None

	def describe(self) -> str:
		unit = _UNITS[self.parameter]
		label = _LABELS[self.parameter]
		bounds = f"optimal {self.optimal.min:g}-{self.optimal.max:g}{unit}"
		if self.direction is None:
			return f"{label} is within range at {self.value:.1f}{unit} ({bounds})"
		return (
			f"{label} is {self.direction} at {self.value:.1f}{unit}, "
			f"{self.deviation:.1f}{unit} outside the {bounds}"
		)

	def hint(self) -> str:
		if self.direction is None:
			return ""
		return _HINTS[(self.parameter, self.direction)]


def parameter_score(value: float, optimal: OptimalRange) -> float:
	if optimal.min <= value <= optimal.max:
		distance_from_mid = abs(value - optimal.mid)
		return MAX_SCORE - (distance_from_mid / (optimal.width / 2)) * EDGE_PENALTY

	distance = optimal.min - value if value < optimal.min else value - optimal.max
	penalty = min(distance * OUTSIDE_PENALTY_PER_UNIT, OUTSIDE_PENALTY_CAP)
	return max(float(MIN_SCORE), MAX_SCORE - penalty)


def assess_parameters(reading: SensorReading, profile: CropProfile) -> list[ParameterAssessment]:
	assessments: list[ParameterAssessment] = []
	for parameter in SCORED_PARAMETERS:
		value = float(getattr(reading, parameter))
		optimal: OptimalRange = getattr(profile.optimal, parameter)
		below, above = _DIRECTIONS[parameter]
		if value < optimal.min:
			direction: str | None = below
			deviation = optimal.min - value
		elif value > optimal.max:
			direction = above
			deviation = value - optimal.max
		else:
			direction = None
			deviation = 0.0
		assessments.append(
			ParameterAssessment(
				parameter=parameter,
				value=value,
				optimal=optimal,
				score=parameter_score(value, optimal),
				deviation=deviation,
				direction=direction,
			)
		)
	return assessments


def _round_half_up(value: float) -> int:
	return int(math.floor(value + 0.5))


def crop_score(reading: SensorReading | Mapping[str, Any] | Any, profile: CropProfile) -> int:
	"""Overall suitability in ``[20, 100]`` for one crop."""
	snapshot = coerce_reading(reading)
	scores = [item.score for item in assess_parameters(snapshot, profile)]
	mean = sum(scores) / len(scores)
	return max(MIN_SCORE, min(MAX_SCORE, _round_half_up(mean)))


def limiting_parameter(assessments: Iterable[ParameterAssessment]) -> ParameterAssessment:
	"""Lowest-scoring parameter; ties go to the first in ``SCORED_PARAMETERS`` order."""
	return min(assessments, key=lambda item: item.score)


def advise(profile: CropProfile, assessments: list[ParameterAssessment], score: int) -> str:
	name = profile.name
	if score >= EXCELLENT_THRESHOLD:
		return (
			f"Excellent conditions for {name.lower()}! Current soil and air readings "
			"sit at or near the optimal range for healthy growth."
		)

	worst = limiting_parameter(assessments)
	if score >= GOOD_THRESHOLD:
		off_range = [item for item in assessments if not item.in_range]
		if not off_range:
			return f"Good conditions for {name.lower()}. Keep monitoring soil moisture and temperature."
		target = limiting_parameter(off_range)
		return f"Good conditions for {name.lower()}. {target.describe()}. {target.hint()}"

	return (
		f"Challenging conditions for {name.lower()}. The most limiting factor: "
		f"{worst.describe()}. {worst.hint()}".rstrip()
	)


def recommend(reading: SensorReading | Mapping[str, Any] | Any, profile: CropProfile) -> CropRecommendation:
	snapshot = coerce_reading(reading)
	assessments = assess_parameters(snapshot, profile)
	score = crop_score(snapshot, profile)
	return CropRecommendation(
		crop_type=profile.name,
		suitability_score=score,
		recommendation_text=advise(profile, assessments, score),
		planting_season=profile.planting_season,
		expected_yield=profile.expected_yield,
		care_instructions=list(profile.care_instructions),
		growth_duration=profile.growth_duration,
		water_requirements=profile.water_requirements,
		temperature_range=profile.temperature_range,
	)


def rank_crops(
	reading: SensorReading | Mapping[str, Any] | Any,
	profiles: Iterable[CropProfile],
) -> list[CropRecommendation]:
	"""Score every profile and sort best first; equal scores keep input order."""
	snapshot = coerce_reading(reading)
	recommendations = [recommend(snapshot, profile) for profile in profiles]
	return sorted(recommendations, key=lambda item: item.suitability_score, reverse=True)
