"""Configuration loader with 3-tier parameter precedence."""

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import DefaultConfig, get_default_config


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def _read_yaml(self, filename: str) -> dict[str, Any]:
        path = self.config_dir / filename

        if not path.exists():
            return {}

        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"{filename} must contain a mapping at the top level",
                setting=filename
            )
        return data

    def load_global_config(self) -> dict[str, Any]:
        """Load engine-wide overrides from engine.yaml."""
        return self._read_yaml("engine.yaml")

    def load_token_config(self, token_mint: str) -> dict[str, Any]:
        """Load token-specific configuration overrides."""
        tokens_config = self._read_yaml("tokens.yaml")
        return tokens_config.get("tokens", {}).get(token_mint, {}) or {}  # type: ignore[no-any-return]

    def merge_config(
        self,
        token_mint: str,
        overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Per-call overrides (highest priority)
        2. Token-specific overrides, then engine.yaml globals
        3. Dataclass defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_global_config())
        config = self._deep_merge(config, self.load_token_config(token_mint))

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load_config(
        self,
        token_mint: str,
        overrides: Optional[dict[str, Any]] = None
    ) -> DefaultConfig:
        """Merge all tiers and build a typed DefaultConfig."""
        merged = self.merge_config(token_mint, overrides)
        return self._dict_to_config(merged)

    def _dict_to_config(self, data: dict[str, Any]) -> DefaultConfig:
        sections = {}
        for section in dataclasses.fields(DefaultConfig):
            section_cls = type(getattr(self.defaults, section.name))
            values = data.get(section.name, {}) or {}
            known = {f.name for f in dataclasses.fields(section_cls)}
            unknown = set(values) - known
            if unknown:
                raise ConfigurationError(
                    f"Unknown keys in '{section.name}': {sorted(unknown)}",
                    setting=section.name
                )
            sections[section.name] = section_cls(**values)
        return DefaultConfig(**sections)

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name, _field in obj.__dataclass_fields__.items():
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
