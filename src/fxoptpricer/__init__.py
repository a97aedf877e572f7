# fxoptpricer: FX option valuation and risk engine
# Public API

import logging

__version__ = "0.1.0"

# Errors & configuration
from .exceptions import FxPricingError, InvalidArgument, UnsupportedMarketDataShape
from .config import ShiftConfig, DEFAULT_SHIFTS

# Contracts
from .core import (
    CALL, PUT, UP_AND_OUT, UP_AND_IN, DOWN_AND_OUT, DOWN_AND_IN,
    VanillaOption, AmericanOption, DigitalOption, Barrier, BarrierOption,
)

# Market data
from .curves import ZeroRateCurve, DiscountFactorCurve
from .volatility import FlatVolatility, VolatilityGrid
from .market import MarketSnapshot, ZeroRateSource, FxRates, FxMarket

# Results
from .results import (
    CurrencyAmount, CurrencyExposure, Greek, CurvePoint, CurveSensitivity,
    VolatilityNodeSensitivity, PricingResult,
)

# Pricers (one module per contract family)
from . import vanilla, american, digital, barrier

# Engine
from .engine import (
    pricer_for, has_closed_form_gamma, present_value, value,
    BookFailure, BookResult, value_book,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    "FxPricingError", "InvalidArgument", "UnsupportedMarketDataShape",
    "ShiftConfig", "DEFAULT_SHIFTS",
    "CALL", "PUT", "UP_AND_OUT", "UP_AND_IN", "DOWN_AND_OUT", "DOWN_AND_IN",
    "VanillaOption", "AmericanOption", "DigitalOption", "Barrier", "BarrierOption",
    "ZeroRateCurve", "DiscountFactorCurve", "FlatVolatility", "VolatilityGrid",
    "MarketSnapshot", "ZeroRateSource", "FxRates", "FxMarket",
    "CurrencyAmount", "CurrencyExposure", "Greek", "CurvePoint", "CurveSensitivity",
    "VolatilityNodeSensitivity", "PricingResult",
    "vanilla", "american", "digital", "barrier",
    "pricer_for", "has_closed_form_gamma", "present_value", "value",
    "BookFailure", "BookResult", "value_book",
]
