from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from .errors import InvalidInputError

logger = logging.getLogger(__name__)


def _check(field: str, value, *, allow_zero: bool = False) -> float:
    """Coerce to float and reject NaN, infinities and out-of-range values."""
    try:
        x = float(value)
    except (TypeError, ValueError):
        logger.debug("rejected %s=%r: not a number", field, value)
        raise InvalidInputError(field, value, "a real number") from None
    ok = math.isfinite(x) and (x >= 0.0 if allow_zero else x > 0.0)
    if not ok:
        constraint = "finite and non-negative" if allow_zero else "finite and positive"
        logger.debug("rejected %s=%r: %s", field, value, constraint)
        raise InvalidInputError(field, value, constraint)
    return x


# ---------------------------------------------------------------------------
# Underlying asset
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Underlying:
    """The asset an option is written on.

    Parameters
    ----------
    spot_price : float
        Current price, > 0.
    volatility : float
        Annualised standard deviation of log returns, > 0.
    dividend_yield : float
        Continuously-compounded dividend yield, >= 0 (default 0).
    """
    spot_price: float
    volatility: float
    dividend_yield: float = 0.0

    def __post_init__(self):
        # frozen: bypass __setattr__ to store the coerced floats
        object.__setattr__(self, "spot_price", _check("spot_price", self.spot_price))
        object.__setattr__(self, "volatility", _check("volatility", self.volatility))
        object.__setattr__(
            self, "dividend_yield",
            _check("dividend_yield", self.dividend_yield, allow_zero=True),
        )


# ---------------------------------------------------------------------------
# Option contract
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Instrument:
    """European option contract on an ``Underlying``.

    Parameters
    ----------
    strike : float
        Strike price, > 0.
    time_to_maturity : float
        Time to expiry in years, > 0.
    underlying : Underlying
        The asset, owned by this instrument.
    """
    strike: float
    time_to_maturity: float
    underlying: Underlying

    def __post_init__(self):
        object.__setattr__(self, "strike", _check("strike", self.strike))
        object.__setattr__(
            self, "time_to_maturity", _check("time_to_maturity", self.time_to_maturity)
        )
        if not isinstance(self.underlying, Underlying):
            raise InvalidInputError("underlying", self.underlying, "an Underlying")
