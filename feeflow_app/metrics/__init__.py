"""
Market metrics module.

Indicator calculations, composite scoring and the rolling market analyzer.
"""

from .analyzer import MarketAnalyzer
from .composite import WEIGHTS, calculate_composite, calculate_confidence, recommend

__all__ = [
    "MarketAnalyzer",
    "WEIGHTS",
    "calculate_composite",
    "calculate_confidence",
    "recommend",
]
