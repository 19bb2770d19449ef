"""
Configuration module.

Typed defaults, YAML overrides with 3-tier precedence, and validation.
"""

from .defaults import DefaultConfig, get_default_config
from .loader import ConfigLoader
from .validation import ConfigValidator

__all__ = ["DefaultConfig", "get_default_config", "ConfigLoader", "ConfigValidator"]
