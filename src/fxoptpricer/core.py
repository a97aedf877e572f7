from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, Union

from .exceptions import InvalidArgument

CALL = "call"
PUT  = "put"

UP_AND_OUT   = "up-and-out"
UP_AND_IN    = "up-and-in"
DOWN_AND_OUT = "down-and-out"
DOWN_AND_IN  = "down-and-in"
BARRIER_TYPES = (UP_AND_OUT, UP_AND_IN, DOWN_AND_OUT, DOWN_AND_IN)

__all__ = [
    "CALL", "PUT",
    "UP_AND_OUT", "UP_AND_IN", "DOWN_AND_OUT", "DOWN_AND_IN", "BARRIER_TYPES",
    "VanillaOption", "AmericanOption", "DigitalOption", "Barrier", "BarrierOption",
    "OptionContract",
]


# ---------------------------------------------------------------------------
# European vanilla (wrapped by every other family)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class VanillaOption:
    """Option to exchange ``notional`` of ccy1 for ``notional * strike`` of ccy2.

    Parameters
    ----------
    ccy1 : str
        Foreign (base) currency; the notional is expressed in it.
    ccy2 : str
        Domestic (quote) currency; prices are reported in it.
    notional : float
        Amount of ccy1.  Only its magnitude is used, direction comes from
        ``is_long``.
    strike : float
        Units of ccy2 per unit of ccy1.
    expiry : float
        Time to expiry in years.
    payment_time : float
        Time to settlement in years (discounting and forward date).
    kind : str
        ``"call"`` (right to buy ccy1) or ``"put"``.
    is_long : bool
        ``True`` for a bought option.
    """
    family: ClassVar[str] = "vanilla"

    ccy1: str
    ccy2: str
    notional: float
    strike: float
    expiry: float
    payment_time: float
    kind: str = CALL
    is_long: bool = True

    def __post_init__(self):
        if not self.ccy1 or not self.ccy2:
            raise InvalidArgument("Both currencies must be provided")
        if self.ccy1 == self.ccy2:
            raise InvalidArgument(f"Currencies must differ, got {self.ccy1}/{self.ccy2}")
        if not math.isfinite(self.notional) or self.notional == 0:
            raise InvalidArgument(f"notional must be finite and non-zero, got {self.notional}")
        if not self.strike > 0:
            raise InvalidArgument(f"strike must be positive, got {self.strike}")
        if self.kind not in (CALL, PUT):
            raise InvalidArgument(f"kind must be 'call' or 'put', got {self.kind!r}")

    @property
    def is_call(self) -> bool:
        return self.kind == CALL

    @property
    def sign(self) -> float:
        """+1 for a long position, -1 for a short one."""
        return 1.0 if self.is_long else -1.0

    @property
    def amount(self) -> float:
        """Absolute ccy1 notional."""
        return abs(self.notional)


# ---------------------------------------------------------------------------
# Families wrapping a vanilla
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AmericanOption:
    """Vanilla terms exercisable at any time up to expiry."""
    family: ClassVar[str] = "american"

    underlying: VanillaOption
    early_exercise: bool = True

    def __post_init__(self):
        if not isinstance(self.underlying, VanillaOption):
            raise InvalidArgument("AmericanOption must wrap a VanillaOption")
        if not self.early_exercise:
            raise InvalidArgument("AmericanOption is always early-exercisable")


@dataclass(frozen=True)
class DigitalOption:
    """Cash-or-nothing option on the vanilla terms.

    With ``pay_domestic`` the payout is ``notional * strike`` of ccy2,
    otherwise ``notional`` of ccy1.  Either way a call pays when ccy1
    finishes above the strike.
    """
    family: ClassVar[str] = "digital"

    underlying: VanillaOption
    pay_domestic: bool = True

    def __post_init__(self):
        if not isinstance(self.underlying, VanillaOption):
            raise InvalidArgument("DigitalOption must wrap a VanillaOption")

    @property
    def payout(self) -> float:
        u = self.underlying
        return u.amount * u.strike if self.pay_domestic else u.amount

    @property
    def pay_currency(self) -> str:
        return self.underlying.ccy2 if self.pay_domestic else self.underlying.ccy1


@dataclass(frozen=True)
class Barrier:
    """Continuously monitored barrier level and type (e.g. ``"down-and-out"``)."""
    level: float
    barrier_type: str

    def __post_init__(self):
        if not self.level > 0:
            raise InvalidArgument(f"barrier level must be positive, got {self.level}")
        if self.barrier_type not in BARRIER_TYPES:
            raise InvalidArgument(
                f"barrier_type must be one of {BARRIER_TYPES}, got {self.barrier_type!r}"
            )

    @property
    def is_down(self) -> bool:
        return self.barrier_type.startswith("down")

    @property
    def is_knock_in(self) -> bool:
        return self.barrier_type.endswith("in")


@dataclass(frozen=True)
class BarrierOption:
    """Vanilla knocked in or out by a single barrier.

    ``rebate`` is an amount of ccy2: paid at expiry when a knock-in never
    activates, or when a knock-out is hit.
    """
    family: ClassVar[str] = "barrier"

    underlying: VanillaOption
    barrier: Barrier
    rebate: float = 0.0

    def __post_init__(self):
        if not isinstance(self.underlying, VanillaOption):
            raise InvalidArgument("BarrierOption must wrap a VanillaOption")
        if not isinstance(self.barrier, Barrier):
            raise InvalidArgument("BarrierOption needs a Barrier")
        if not self.rebate >= 0:
            raise InvalidArgument(f"rebate must be non-negative, got {self.rebate}")


OptionContract = Union[VanillaOption, AmericanOption, DigitalOption, BarrierOption]
