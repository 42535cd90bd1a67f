# src/lunacal/core/astronomy.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, runtime_checkable


@runtime_checkable
class MoonriseOracle(Protocol):
    def moonrise(self, day_start_unix: int, longitude: float, latitude: float) -> Optional[int]:
        """
        Return the first moonrise (Unix seconds, UTC) in
        [day_start_unix, day_start_unix + 1 day), or None if the Moon
        does not rise in that window.
        """
        ...


@dataclass(frozen=True)
class CallableOracle:
    """Adapt a plain function with the moonrise signature to MoonriseOracle."""

    fn: Callable[[int, float, float], Optional[int]]

    def moonrise(self, day_start_unix: int, longitude: float, latitude: float) -> Optional[int]:
        return self.fn(day_start_unix, longitude, latitude)


def as_oracle(obj) -> MoonriseOracle:
    if isinstance(obj, MoonriseOracle):
        return obj
    if callable(obj):
        return CallableOracle(obj)
    raise TypeError(f"Expected MoonriseOracle or callable, got {type(obj).__name__}")
