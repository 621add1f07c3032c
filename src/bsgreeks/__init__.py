# bsgreeks — Black-Scholes price and Greeks with continuous dividend yield
# Public API

from .core import Underlying, Instrument
from .errors import PricingError, InvalidInputError, DegenerateModelError
from .model import PricingModel, build_model
from .risk import numerical_greeks, scenario_grid

__all__ = [
    # Data model
    "Underlying", "Instrument",
    # Errors
    "PricingError", "InvalidInputError", "DegenerateModelError",
    # Pricing
    "PricingModel", "build_model",
    # Cross-checks
    "numerical_greeks", "scenario_grid",
]

__version__ = "0.1.0"
