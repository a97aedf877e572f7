"""Finite-difference shift configuration.

Shift sizes are plain values passed to each pricer call, never globals, so
tests can reprice the same contract under different bumps.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from typing import Mapping

from .exceptions import InvalidArgument

__all__ = ["ShiftConfig", "DEFAULT_SHIFTS"]

_HOURS_PER_YEAR = 365.0 * 24.0


@dataclass(frozen=True)
class ShiftConfig:
    """Bump sizes used wherever a Greek has no closed-form adjoint.

    Parameters
    ----------
    gamma_shift : float
        Relative spot bump for finite-difference gamma.
    vanna_shift : float
        Relative bump (spot, and volatility for cross terms) for vanna.
    vomma_shift : float
        Relative volatility bump for vomma.
    theta_shift : float
        Expiry bump in years for the barrier theta (default one hour).
    american_theta_shift : float
        Expiry step in years for the one-sided American theta (default one day).
    """
    gamma_shift: float = 1e-5
    vanna_shift: float = 1e-5
    vomma_shift: float = 1e-5
    theta_shift: float = 1.0 / _HOURS_PER_YEAR
    american_theta_shift: float = 1.0 / 365.0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise InvalidArgument(f"{f.name} must be a number, got {value!r}")
            if not math.isfinite(value) or value <= 0:
                raise InvalidArgument(f"{f.name} must be positive and finite, got {value}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, float]) -> ShiftConfig:
        """Build a config from a plain mapping, e.g. a JSON section.

        Missing keys keep their defaults; unknown keys are rejected.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise InvalidArgument(f"Unknown shift settings: {sorted(unknown)}")
        return cls(**{k: float(v) for k, v in values.items()})

    def scaled(self, factor: float) -> ShiftConfig:
        """Return a copy with every shift multiplied by ``factor``."""
        return replace(self, **{f.name: getattr(self, f.name) * factor for f in fields(self)})


DEFAULT_SHIFTS = ShiftConfig()
