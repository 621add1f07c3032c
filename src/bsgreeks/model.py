"""Closed-form Black-Scholes pricing model with continuous dividend yield.

``d1``/``d2`` and both discount factors are computed once, when the model is
built; every query method reads those cached values and never raises.

Notation used below: S spot, K strike, T time to maturity (years),
r risk-free rate, q dividend yield, sigma volatility, Phi/phi the standard
normal cdf/pdf.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from scipy.stats import norm

from .core import Instrument, Underlying
from .errors import DegenerateModelError, InvalidInputError

logger = logging.getLogger(__name__)

__all__ = ["PricingModel", "build_model"]


@dataclass(frozen=True)
class PricingModel:
    """Black-Scholes evaluator for one ``Instrument`` at one risk-free rate.

    Parameters
    ----------
    risk_free_rate : float
        Continuously-compounded annual rate; may be negative.
    instrument : Instrument
        Fully validated contract, owned by the model.

    Raises
    ------
    DegenerateModelError
        If ``sigma * sqrt(T)`` is zero or ``d1``/``d2``/discount factors are
        not finite.
    """
    risk_free_rate: float
    instrument: Instrument
    d1: float = field(init=False)
    d2: float = field(init=False)
    _disc_r: float = field(init=False, repr=False, compare=False)
    _disc_q: float = field(init=False, repr=False, compare=False)
    _dist: object = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not isinstance(self.instrument, Instrument):
            raise InvalidInputError("instrument", self.instrument, "an Instrument")

        S, K, T, sigma, q = self._params()
        try:
            r = float(self.risk_free_rate)
        except (TypeError, ValueError):
            raise InvalidInputError(
                "risk_free_rate", self.risk_free_rate, "a real number"
            ) from None

        sig_sqrt_T = sigma * math.sqrt(T)
        if sig_sqrt_T == 0.0:
            raise DegenerateModelError(
                "volatility * sqrt(time_to_maturity) is zero",
                {"volatility": sigma, "time_to_maturity": T},
            )

        # log(S) - log(K) stays finite where S / K would underflow
        log_moneyness = math.log(S) - math.log(K)
        d1 = (log_moneyness + (r - q + 0.5 * sigma * sigma) * T) / sig_sqrt_T
        d2 = d1 - sig_sqrt_T
        try:
            disc_r = math.exp(-r * T)
            disc_q = math.exp(-q * T)
        except OverflowError:
            disc_r = disc_q = math.inf

        if not all(math.isfinite(x) for x in (d1, d2, disc_r, disc_q)):
            raise DegenerateModelError(
                "d1/d2 or discount factors are not finite",
                {"d1": d1, "d2": d2, "risk_free_rate": r,
                 "dividend_yield": q, "time_to_maturity": T},
            )

        object.__setattr__(self, "risk_free_rate", r)
        object.__setattr__(self, "d1", d1)
        object.__setattr__(self, "d2", d2)
        object.__setattr__(self, "_disc_r", disc_r)
        object.__setattr__(self, "_disc_q", disc_q)
        object.__setattr__(self, "_dist", norm(loc=0.0, scale=1.0))
        logger.debug("built model r=%g %r: d1=%.12g d2=%.12g", r, self.instrument, d1, d2)

    # -- helpers ------------------------------------------------------------
    def _params(self):
        u = self.instrument.underlying
        return (u.spot_price, self.instrument.strike,
                self.instrument.time_to_maturity, u.volatility, u.dividend_yield)

    def _N(self, x: float) -> float:
        return float(self._dist.cdf(x))

    def _n(self, x: float) -> float:
        return float(self._dist.pdf(x))

    # -- prices -------------------------------------------------------------
    def price_call(self) -> float:
        """``S*Phi(d1)*e^(-qT) - K*Phi(d2)*e^(-rT)``."""
        S, K, _, _, _ = self._params()
        return S * self._N(self.d1) * self._disc_q - K * self._N(self.d2) * self._disc_r

    def price_put(self) -> float:
        """``K*Phi(-d2)*e^(-rT) - S*Phi(-d1)*e^(-qT)``."""
        S, K, _, _, _ = self._params()
        return K * self._N(-self.d2) * self._disc_r - S * self._N(-self.d1) * self._disc_q

    # -- Greeks -------------------------------------------------------------
    def delta(self) -> float:
        """``e^(-qT)*Phi(-d1)``.

        This is the put delta formula without its minus sign; there is no
        call/put selector. For the call delta use ``e^(-qT)*Phi(d1)``.
        """
        return self._disc_q * self._N(-self.d1)

    def vega(self) -> float:
        """dPrice/dSigma in absolute vol units (not per 1%). Same for call and put."""
        S, _, T, _, _ = self._params()
        return S * self._disc_q * math.sqrt(T) * self._n(self.d1)

    def psi(self) -> float:
        """Sensitivity to the dividend yield."""
        S, K, T, sigma, _ = self._params()
        sqrt_T = math.sqrt(T)
        return (-S * self._disc_q
                * (sqrt_T / sigma * self._n(self.d1) + T * self._N(-self.d1))
                + K * self._disc_r * self._n(-self.d2) * sqrt_T / sigma)

    def theta(self) -> float:
        """Time decay, per year."""
        S, K, T, sigma, q = self._params()
        r = self.risk_free_rate
        return (-S * self._n(self.d1) * sigma / (2.0 * math.sqrt(T))
                - K * r * self._disc_r * self._N(-self.d2)
                + q * S * self._disc_q * self._N(-self.d1))

    def rho(self) -> float:
        """``-K*T*e^(-rT)*Phi(-d2)``, the put rho."""
        _, K, T, _, _ = self._params()
        return -K * T * self._disc_r * self._N(-self.d2)

    def gamma(self) -> float:
        """Convexity in spot. Depends only on d1, so call and put agree."""
        S, _, T, sigma, _ = self._params()
        return self._disc_q * self._n(self.d1) / (S * sigma * math.sqrt(T))

    def volga(self) -> float:
        """Vega convexity (vomma): ``vega*d1*d2/sigma``."""
        sigma = self.instrument.underlying.volatility
        return self.vega() * self.d1 * self.d2 / sigma

    def greeks(self) -> dict[str, float]:
        """All outputs of the model keyed by name, plus ``d1`` and ``d2``."""
        return {
            "price_call": self.price_call(),
            "price_put": self.price_put(),
            "delta": self.delta(),
            "gamma": self.gamma(),
            "vega": self.vega(),
            "theta": self.theta(),
            "rho": self.rho(),
            "psi": self.psi(),
            "volga": self.volga(),
            "d1": self.d1,
            "d2": self.d2,
        }


def build_model(
    spot_price: float,
    strike: float,
    time_to_maturity: float,
    volatility: float,
    risk_free_rate: float,
    dividend_yield: float = 0.0,
) -> PricingModel:
    """Build Underlying, Instrument and PricingModel from flat parameters."""
    underlying = Underlying(spot_price, volatility, dividend_yield)
    instrument = Instrument(strike, time_to_maturity, underlying)
    return PricingModel(risk_free_rate, instrument)
