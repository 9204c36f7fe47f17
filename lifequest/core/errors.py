"""Engine error taxonomy.

Three kinds reach the host: invalid input, not found and unmet preconditions.
Every error carries a stable ``code`` the host can map to a user message.
None of them are transient; retrying the same call fails the same way.
"""

from typing import Optional


class EngineError(Exception):
    """Base class for every error raised by the engine."""

    code = "engine_error"

    def __init__(self, message: str, *, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInputError(EngineError, ValueError):
    """Malformed request: unknown stat, unknown catalog id, negative XP..."""

    code = "invalid_input"


class NotFoundError(EngineError, LookupError):
    """Unknown character, encounter, truth, quest or questline."""

    code = "not_found"


class PreconditionNotMetError(EngineError):
    """The request is well-formed but current state forbids it."""

    code = "precondition_not_met"


# ── skill tree ──


class AlreadyUnlockedError(PreconditionNotMetError):
    code = "already_unlocked"


class PrerequisiteNotMetError(PreconditionNotMetError):
    """Raised with ``details["unmet"]`` listing every failed requirement."""

    code = "prerequisite_not_met"


class InsufficientPointsError(PreconditionNotMetError):
    code = "insufficient_points"


# ── battle ──


class EncounterNotActiveError(PreconditionNotMetError):
    code = "encounter_not_active"


class EncounterNotPendingError(PreconditionNotMetError):
    code = "encounter_not_pending"


class EncounterResolvedError(PreconditionNotMetError):
    code = "encounter_resolved"


class EncounterLimitReachedError(PreconditionNotMetError):
    code = "encounter_limit_reached"


class InsufficientEnergyError(PreconditionNotMetError):
    code = "insufficient_energy"


# ── truths ──


class EquipSlotsFullError(PreconditionNotMetError):
    code = "equip_slots_full"


class CatalogError(ValueError):
    """Static catalog data failed validation at load time."""


class EventDeliveryError(EngineError):
    """An event could not be delivered: a subscriber raised or the chain ran too deep.

    Publishers let it propagate so their unit of work is rolled back.
    """

    code = "event_delivery_failed"
