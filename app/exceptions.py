"""Domain error hierarchy.

Each error also derives from the builtin the route layer already maps, so
``LookupError`` becomes a 404 and ``ValueError`` a 400 without extra cases.
"""

from __future__ import annotations


class SoilSenseError(Exception):
	"""Base class for every error raised by the service layer."""


class InvalidInputError(SoilSenseError, ValueError):
	"""A sensor reading or command is missing required fields or is malformed."""


class ConfigError(SoilSenseError, ValueError):
	"""Static reference data (crop profiles) failed validation at load time."""


class NotFoundError(SoilSenseError, LookupError):
	"""A time series or audit log has no records yet."""


class StorageError(SoilSenseError, RuntimeError):
	"""The persistence layer rejected or failed a write."""
