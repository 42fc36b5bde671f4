"""Hard-failure errors raised by the rota core.

Conflict findings are never raised; they are returned as warnings
(see ``rota.services.warnings``).
"""

from __future__ import annotations


class RotaError(Exception):
    """Base class for all rota errors."""


class NotFoundError(RotaError, LookupError):
    """A referenced worker, location or job does not exist."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidInputError(RotaError, ValueError):
    """Caller supplied an argument the operation cannot work with."""


class ConfigError(RotaError, ValueError):
    """Configuration file is missing, unreadable or holds invalid values."""
