"""
Feeflow - Market-Adaptive Fee Distribution Engine

Claims recurring creator fees and routes them into four configurable
spending channels (market making, buyback & burn, liquidity, creator
revenue), timing trades with a ten-factor market analyzer.
"""

__version__ = "0.1.0"
__author__ = "Feeflow Team"
