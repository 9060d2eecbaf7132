"""Absolute and relative simulation time, measured in minutes."""

import math
from dataclasses import dataclass

# Tolerance for comparing event times computed along different float paths
REL_TOLERANCE = 1e-9
ABS_TOLERANCE = 1e-9


def times_match(a: float, b: float) -> bool:
    """True if two minute values are equal within the kernel's float tolerance."""
    return math.isclose(a, b, rel_tol=REL_TOLERANCE, abs_tol=ABS_TOLERANCE)


@dataclass(frozen=True, order=True)
class Duration:
    """Relative time in minutes.

    ``Duration.never()`` is +infinity and marks an actor with nothing pending;
    ``Duration.none()`` is zero and is the additive identity.
    """

    minutes: float

    @classmethod
    def of_minutes(cls, minutes: float) -> "Duration":
        return cls(float(minutes))

    @classmethod
    def none(cls) -> "Duration":
        return cls(0.0)

    @classmethod
    def never(cls) -> "Duration":
        return cls(math.inf)

    @property
    def is_never(self) -> bool:
        return math.isinf(self.minutes)

    def __add__(self, other: "Duration") -> "Duration":
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(self.minutes + other.minutes)

    def __sub__(self, other: "Duration") -> "Duration":
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(self.minutes - other.minutes)

    def __mul__(self, factor: float) -> "Duration":
        return Duration(self.minutes * factor)

    __rmul__ = __mul__

    def __float__(self) -> float:
        return self.minutes

    def __str__(self) -> str:
        return f"{self.minutes:.2f}"


@dataclass(frozen=True, order=True)
class TimeStamp:
    """Absolute time in minutes since the simulation epoch (0.0)."""

    minutes: float

    @classmethod
    def start(cls) -> "TimeStamp":
        return cls(0.0)

    def __add__(self, other: Duration) -> "TimeStamp":
        if not isinstance(other, Duration):
            return NotImplemented
        return TimeStamp(self.minutes + other.minutes)

    def __sub__(self, other: "TimeStamp") -> Duration:
        if not isinstance(other, TimeStamp):
            return NotImplemented
        return Duration(self.minutes - other.minutes)

    def matches(self, other: "TimeStamp") -> bool:
        """Equality within float tolerance."""
        return times_match(self.minutes, other.minutes)

    def __float__(self) -> float:
        return self.minutes

    def __str__(self) -> str:
        return f"{self.minutes:.2f}"
