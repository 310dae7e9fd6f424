"""Background maintenance for organized trees."""

from .janitor import DEFAULT_INTERVAL_SECONDS, Janitor, janitor_factory

__all__ = ["Janitor", "janitor_factory", "DEFAULT_INTERVAL_SECONDS"]
