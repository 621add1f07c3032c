"""Tests for the closed-form pricing model."""

import math

import numpy as np
import pytest
from scipy.stats import norm

from bsgreeks import (
    Underlying, Instrument, PricingModel, build_model,
    DegenerateModelError, InvalidInputError, scenario_grid,
)

ATM = build_model(spot_price=100, strike=100, time_to_maturity=1.0,
                  volatility=0.2, risk_free_rate=0.05)


def _parity_gap(m: PricingModel) -> float:
    u = m.instrument.underlying
    T = m.instrument.time_to_maturity
    fwd = (u.spot_price * math.exp(-u.dividend_yield * T)
           - m.instrument.strike * math.exp(-m.risk_free_rate * T))
    return (m.price_call() - m.price_put()) - fwd


class TestKnownValues:
    def test_reference_prices(self):
        assert abs(ATM.price_call() - 10.4506) < 1e-3
        assert abs(ATM.price_put() - 5.5735) < 1e-3

    def test_d1_d2(self):
        assert ATM.d1 == pytest.approx(0.35)
        assert ATM.d2 == pytest.approx(0.15)

    def test_greeks_atm(self):
        assert ATM.delta() == pytest.approx(0.363169, abs=1e-5)
        assert ATM.gamma() == pytest.approx(0.018762, abs=1e-5)
        assert ATM.vega() == pytest.approx(37.5240, abs=1e-3)
        assert ATM.rho() == pytest.approx(-41.8905, abs=1e-3)
        assert ATM.theta() == pytest.approx(-5.84692, abs=1e-3)
        assert ATM.volga() == pytest.approx(9.85005, abs=1e-2)

    def test_greeks_dict_matches_methods(self):
        g = ATM.greeks()
        assert set(g) == {"price_call", "price_put", "delta", "gamma", "vega",
                          "theta", "rho", "psi", "volga", "d1", "d2"}
        assert g["price_call"] == ATM.price_call()
        assert g["psi"] == ATM.psi()
        assert g["d2"] == ATM.d2


class TestParity:
    @pytest.mark.parametrize("S, K, T, sigma, r, q", [
        (100, 100, 1.0, 0.2, 0.05, 0.0),
        (100, 120, 0.25, 0.35, 0.01, 0.03),
        (50, 40, 2.0, 0.5, -0.01, 0.0),
        (100, 80, 5.0, 0.1, 0.08, 0.06),
    ])
    def test_put_call_parity(self, S, K, T, sigma, r, q):
        m = build_model(S, K, T, sigma, r, q)
        scale = max(abs(m.price_call()), abs(m.price_put()), 1.0)
        assert abs(_parity_gap(m)) / scale < 1e-9


class TestMonotonicity:
    def test_call_non_decreasing_in_spot_and_vol(self):
        grid = scenario_grid(ATM, np.linspace(60, 140, 9), np.linspace(0.1, 0.8, 8))
        prices = grid["prices"]
        assert prices.shape == (9, 8)
        assert np.all(np.diff(prices, axis=0) >= 0)
        assert np.all(np.diff(prices, axis=1) >= 0)

    def test_grid_put_decreasing_in_spot(self):
        grid = scenario_grid(ATM, np.array([90.0, 100.0, 110.0]), np.array([0.2]), "put")
        assert np.all(np.diff(grid["prices"][:, 0]) < 0)
        np.testing.assert_allclose(grid["vol_values"], [0.2])


class TestBoundary:
    @pytest.mark.parametrize("K", [80.0, 100.0, 120.0])
    def test_vanishing_vol_gives_discounted_intrinsic(self, K):
        m = build_model(100.0, K, 1.0, 1e-4, 0.05)
        expected = max(100.0 - K * math.exp(-0.05), 0.0)
        assert m.price_call() == pytest.approx(expected, abs=1e-8)


class TestClassicalReduction:
    def test_zero_dividend_matches_black_scholes(self):
        S, K, T, sigma, r = 105.0, 95.0, 0.75, 0.3, 0.02
        m = build_model(S, K, T, sigma, r, 0.0)
        d1 = (math.log(S / K) + (r + sigma ** 2 / 2) * T) / (sigma * math.sqrt(T))
        d2 = d1 - sigma * math.sqrt(T)
        call = S * norm.cdf(d1) - K * math.exp(-r * T) * norm.cdf(d2)
        put = K * math.exp(-r * T) * norm.cdf(-d2) - S * norm.cdf(-d1)
        assert m.price_call() == pytest.approx(call, rel=1e-12)
        assert m.price_put() == pytest.approx(put, rel=1e-12)
        assert m.gamma() == pytest.approx(norm.pdf(d1) / (S * sigma * math.sqrt(T)), rel=1e-12)
        assert m.vega() == pytest.approx(S * math.sqrt(T) * norm.pdf(d1), rel=1e-12)
        assert m.theta() == pytest.approx(
            -S * norm.pdf(d1) * sigma / (2 * math.sqrt(T))
            - K * r * math.exp(-r * T) * norm.cdf(-d2), rel=1e-12)


class TestGreekIdentities:
    def test_psi_collapses_to_put_dividend_term(self):
        # S e^(-qT) phi(d1) == K e^(-rT) phi(d2), so the density terms cancel
        m = build_model(100.0, 110.0, 0.75, 0.25, 0.03, 0.02)
        S, T, q = 100.0, 0.75, 0.02
        expected = -S * T * math.exp(-q * T) * norm.cdf(-m.d1)
        assert m.psi() == pytest.approx(expected, abs=1e-8)

    def test_delta_is_unsigned_put_delta(self):
        m = build_model(100.0, 90.0, 0.5, 0.3, 0.04, 0.01)
        call_delta = math.exp(-0.01 * 0.5) * norm.cdf(m.d1)
        assert m.delta() == pytest.approx(math.exp(-0.01 * 0.5) - call_delta, rel=1e-12)

    def test_theta_with_dividend(self):
        S, K, T, sigma, r, q = 100.0, 110.0, 0.75, 0.25, 0.03, 0.02
        m = build_model(S, K, T, sigma, r, q)
        d1 = (math.log(S / K) + (r - q + sigma ** 2 / 2) * T) / (sigma * math.sqrt(T))
        d2 = d1 - sigma * math.sqrt(T)
        expected = (-S * norm.pdf(d1) * sigma / (2 * math.sqrt(T))
                    - K * r * math.exp(-r * T) * norm.cdf(-d2)
                    + q * S * math.exp(-q * T) * norm.cdf(-d1))
        assert m.theta() == pytest.approx(expected, rel=1e-10)
        no_div = build_model(S, K, T, sigma, r, 0.0)
        assert abs(m.theta() - no_div.theta()) > 1e-3

    def test_volga_from_vega(self):
        m = build_model(100.0, 90.0, 0.5, 0.3, 0.04, 0.01)
        assert m.volga() == pytest.approx(m.vega() * m.d1 * m.d2 / 0.3, rel=1e-12)


class TestConstruction:
    def test_build_model_equals_manual(self):
        inst = Instrument(100.0, 1.0, Underlying(100.0, 0.2))
        assert PricingModel(0.05, inst) == ATM

    def test_cached_d1_d2_frozen(self):
        d1 = ATM.d1
        for _ in range(3):
            ATM.price_call(); ATM.volga(); ATM.greeks()
        assert ATM.d1 == d1
        with pytest.raises(AttributeError):
            ATM.d1 = 0.0

    def test_negative_rate_allowed(self):
        m = build_model(100.0, 100.0, 1.0, 0.2, -0.02)
        assert m.price_call() > 0
        assert abs(_parity_gap(m)) < 1e-9

    def test_requires_instrument(self):
        with pytest.raises(InvalidInputError):
            PricingModel(0.05, Underlying(100.0, 0.2))

    def test_zero_vol_rejected_before_model(self):
        with pytest.raises(InvalidInputError):
            build_model(100.0, 100.0, 1.0, 0.0, 0.05)

    def test_zero_ttm_rejected_before_model(self):
        with pytest.raises(InvalidInputError):
            build_model(100.0, 100.0, 0.0, 0.2, 0.05)

    def test_underflowing_vol_sqrt_t(self):
        inst = Instrument(100.0, 1e-300, Underlying(100.0, 1e-200))
        with pytest.raises(DegenerateModelError):
            PricingModel(0.05, inst)

    @pytest.mark.parametrize("rate", [math.nan, math.inf, -math.inf])
    def test_non_finite_rate(self, rate):
        with pytest.raises(DegenerateModelError):
            build_model(100.0, 100.0, 1.0, 0.2, rate)

    def test_extreme_moneyness_stays_finite(self):
        # S / K underflows to 0.0 here; d1 must still be formed
        m = build_model(1e-200, 1e200, 1.0, 0.2, 0.05)
        assert math.isfinite(m.d1) and math.isfinite(m.d2)
        assert m.price_call() == pytest.approx(0.0, abs=1e-12)
        assert m.price_put() == pytest.approx(1e200 * math.exp(-0.05), rel=1e-12)

    def test_overflowing_discount(self):
        with pytest.raises(DegenerateModelError) as exc:
            build_model(100.0, 100.0, 1.0, 0.2, -1e6)
        assert exc.value.to_dict()["error_type"] == "DegenerateModelError"
