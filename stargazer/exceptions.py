"""
STARGAZER Exceptions

Exception hierarchy shared by the engine, catalog loaders and scheduler.
Numeric edge cases in the astronomy code are never raised; they are clamped
where they occur.
"""

__all__ = [
    "StargazerError",
    "ConfigurationError",
    "CatalogError",
    "SchedulerError",
]


class StargazerError(Exception):
    """Base class for all STARGAZER errors."""


class ConfigurationError(StargazerError):
    """Configuration file is missing, unreadable or fails validation."""


class CatalogError(StargazerError):
    """A star or constellation catalog could not be loaded at all.

    Individual malformed rows never raise; they are skipped by the loaders.
    """


class SchedulerError(StargazerError):
    """Scheduler used in an invalid lifecycle state."""
