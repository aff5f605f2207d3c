"""Exception hierarchy for the fleet engine."""


class FleetError(Exception):
    """Base exception for all fleet errors."""


class NotFound(FleetError, KeyError):
    """A referenced vehicle, driver or record id is not in the collection."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} '{record_id}' not found")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class InvalidRange(FleetError, ValueError):
    """A period selector could not be turned into a date interval."""


class PersistenceFailure(FleetError):
    """The entity store could not read or write a collection."""

    def __init__(self, message: str, *, collection: str = ""):
        self.collection = collection
        super().__init__(message)


class InconsistentAssignment(FleetError):
    """Stored vehicle/driver references already disagree with each other.

    Raised instead of assigning on top of corrupted state, so the problem
    can be repaired by hand rather than compounded.
    """

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class DuplicateCollection(FleetError):
    """A collection already exists for the same vehicle and date."""

    def __init__(self, existing):
        self.existing = existing
        super().__init__(
            f"A collection already exists for vehicle '{existing.vehicle_id}' "
            f"on {existing.date.isoformat()} ({existing.id})"
        )
