"""Exceptions raised by the facility simulation kernel."""


class FacilityError(Exception):
    """Base class for facility simulation errors."""


class InvariantViolation(FacilityError):
    """A modeling or programming defect; the replication must abort."""


class SupplyExhausted(InvariantViolation):
    """A station ran out of pre-generated durations while still required to work."""
