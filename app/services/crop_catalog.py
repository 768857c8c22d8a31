"""Crop profile reference table: built-in records plus optional JSON override.

Profiles are plain data so that adding a crop never needs a code change:
point ``CROP_PROFILES_PATH`` at a JSON list shaped like
``BUILTIN_CROP_PROFILES`` and restart.  Every record is validated at load
time; a degenerate optimal range or a duplicate name fails fast with
``ConfigError`` before any scoring happens.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from app.config import get_settings
from app.exceptions import ConfigError
from app.schemas.crops import CropProfile

BUILTIN_CROP_PROFILES: list[dict[str, Any]] = [
	{
		"name": "Tomatoes",
		"optimal": {
			"soil_moisture": {"min": 40, "max": 70},
			"soil_temperature": {"min": 18, "max": 24},
			"air_temperature": {"min": 20, "max": 30},
			"air_humidity": {"min": 50, "max": 70},
		},
		"planting_season": "Spring to Early Summer",
		"expected_yield": "15-25 kg per plant",
		"care_instructions": [
			"Water regularly but avoid overwatering",
			"Provide support stakes or cages",
			"Prune suckers for better fruit development",
			"Monitor for pests like aphids and whiteflies",
		],
		"growth_duration": "75-85 days",
		"water_requirements": "Moderate to High",
		"temperature_range": "20-30°C optimal",
	},
	{
		"name": "Lettuce",
		"optimal": {
			"soil_moisture": {"min": 50, "max": 80},
			"soil_temperature": {"min": 10, "max": 18},
			"air_temperature": {"min": 15, "max": 25},
			"air_humidity": {"min": 60, "max": 80},
		},
		"planting_season": "Cool seasons - Spring and Fall",
		"expected_yield": "200-400g per head",
		"care_instructions": [
			"Keep soil consistently moist",
			"Provide partial shade in hot weather",
			"Harvest outer leaves first for continuous growth",
			"Watch for slugs and aphids",
		],
		"growth_duration": "45-65 days",
		"water_requirements": "High",
		"temperature_range": "15-25°C optimal",
	},
	{
		"name": "Peppers",
		"optimal": {
			"soil_moisture": {"min": 35, "max": 65},
			"soil_temperature": {"min": 20, "max": 28},
			"air_temperature": {"min": 22, "max": 32},
			"air_humidity": {"min": 40, "max": 60},
		},
		"planting_season": "Late Spring to Summer",
		"expected_yield": "1-2 kg per plant",
		"care_instructions": [
			"Allow soil to dry slightly between waterings",
			"Provide warm, sunny location",
			"Support heavy-fruited varieties",
			"Regular feeding with balanced fertilizer",
		],
		"growth_duration": "70-90 days",
		"water_requirements": "Moderate",
		"temperature_range": "22-32°C optimal",
	},
	{
		"name": "Spinach",
		"optimal": {
			"soil_moisture": {"min": 60, "max": 85},
			"soil_temperature": {"min": 8, "max": 16},
			"air_temperature": {"min": 10, "max": 20},
			"air_humidity": {"min": 65, "max": 85},
		},
		"planting_season": "Cool weather - Early Spring and Fall",
		"expected_yield": "150-300g per plant",
		"care_instructions": [
			"Keep soil consistently moist",
			"Provide shade in warm weather",
			"Harvest leaves when young and tender",
			"Succession plant every 2 weeks",
		],
		"growth_duration": "30-45 days",
		"water_requirements": "High",
		"temperature_range": "10-20°C optimal",
	},
	{
		"name": "Carrots",
		"optimal": {
			"soil_moisture": {"min": 45, "max": 75},
			"soil_temperature": {"min": 12, "max": 20},
			"air_temperature": {"min": 16, "max": 24},
			"air_humidity": {"min": 50, "max": 70},
		},
		"planting_season": "Spring and Fall",
		"expected_yield": "100-200g per root",
		"care_instructions": [
			"Ensure deep, loose soil for straight roots",
			"Thin seedlings to prevent crowding",
			"Keep soil evenly moist",
			"Avoid fresh manure which causes forked roots",
		],
		"growth_duration": "70-80 days",
		"water_requirements": "Moderate",
		"temperature_range": "16-24°C optimal",
	},
	{
		"name": "Cucumbers",
		"optimal": {
			"soil_moisture": {"min": 45, "max": 70},
			"soil_temperature": {"min": 18, "max": 27},
			"air_temperature": {"min": 21, "max": 30},
			"air_humidity": {"min": 60, "max": 80},
		},
		"planting_season": "Late Spring to Summer",
		"expected_yield": "3-5 kg per plant",
		"care_instructions": [
			"Water deeply at the base to keep leaves dry",
			"Train vines on a trellis for airflow",
			"Pick fruit young to keep plants producing",
			"Watch for powdery mildew in humid spells",
		],
		"growth_duration": "50-70 days",
		"water_requirements": "High",
		"temperature_range": "21-30°C optimal",
	},
]


def load_crop_profiles(records: Iterable[Mapping[str, Any]]) -> list[CropProfile]:
	profiles: list[CropProfile] = []
	seen: set[str] = set()
	for idx, record in enumerate(records):
		try:
			profile = CropProfile.from_record(record)
		except ConfigError as exc:
			raise ConfigError(f"crop profile #{idx} is invalid: {exc}") from exc
		key = profile.name.strip().lower()
		if key in seen:
			raise ConfigError(f"duplicate crop profile name: {profile.name}")
		seen.add(key)
		profiles.append(profile)
	if not profiles:
		raise ConfigError("crop profile table is empty")
	return profiles


def load_crop_profiles_file(path: str | Path) -> list[CropProfile]:
	try:
		raw = json.loads(Path(path).read_text(encoding="utf-8"))
	except (OSError, json.JSONDecodeError) as exc:
		raise ConfigError(f"cannot read crop profiles from {path}: {exc}") from exc
	if not isinstance(raw, list):
		raise ConfigError(f"crop profiles file {path} must contain a JSON list")
	return load_crop_profiles(raw)


@lru_cache
def get_crop_profiles() -> tuple[CropProfile, ...]:
	"""Active profile table (cached after first call)."""
	settings = get_settings()
	if settings.crop_profiles_path:
		return tuple(load_crop_profiles_file(settings.crop_profiles_path))
	return tuple(load_crop_profiles(BUILTIN_CROP_PROFILES))
