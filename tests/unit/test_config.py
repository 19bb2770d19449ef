"""Unit tests for configuration management."""

from pathlib import Path

import pytest
import yaml

from feeflow_app.config.defaults import get_default_config
from feeflow_app.config.loader import ConfigLoader
from feeflow_app.config.validation import ConfigValidator
from feeflow_app.errors import ConfigurationError

MINT = "ConfigMint111"


def write_yaml(directory: Path, filename: str, data) -> None:
    with open(directory / filename, "w") as f:
        yaml.safe_dump(data, f)


class TestDefaultConfig:
    """Test suite for default configuration."""

    def test_default_config_creation(self) -> None:
        """Test that default configuration can be created."""
        config = get_default_config()
        assert config.allocation.market_making == 25
        assert config.distribution.min_fee_reserve == 1_000_000
        assert config.distribution.operator_fee_bps == 100
        assert config.trade.min_call_interval == 1.5
        assert config.retry.max_attempts == 4
        assert config.burn_poll.max_attempts == 6

    def test_default_allocation_sums_to_100(self) -> None:
        """Test the default channel split is valid."""
        allocation = get_default_config().allocation
        total = (allocation.market_making + allocation.buyback_burn
                 + allocation.liquidity + allocation.creator_revenue)
        assert total == 100


class TestConfigLoader:
    """Test suite for configuration loader."""

    def test_config_loader_creation(self) -> None:
        """Test that ConfigLoader points at the bundled config directory."""
        loader = ConfigLoader.create()
        assert isinstance(loader.config_dir, Path)
        assert loader.config_dir.name == "config"

    def test_merge_config_defaults_only(self, tmp_path) -> None:
        """Test config merging with defaults only."""
        loader = ConfigLoader.create(tmp_path)
        config = loader.merge_config(MINT)

        assert config["allocation"]["market_making"] == 25
        assert config["distribution"]["sell_rsi_threshold"] == 70.0

    def test_global_then_token_then_call_precedence(self, tmp_path) -> None:
        """Test 3-tier precedence."""
        write_yaml(tmp_path, "engine.yaml", {
            "distribution": {"min_fee_reserve": 2_000_000, "sell_fraction_pct": 20},
            "scheduler": {"claim_interval": 120},
        })
        write_yaml(tmp_path, "tokens.yaml", {
            "tokens": {MINT: {"distribution": {"sell_fraction_pct": 15}}},
        })
        loader = ConfigLoader.create(tmp_path)

        config = loader.merge_config(MINT, {"scheduler": {"claim_interval": 60}})

        assert config["distribution"]["min_fee_reserve"] == 2_000_000
        assert config["distribution"]["sell_fraction_pct"] == 15
        assert config["scheduler"]["claim_interval"] == 60
        # Untouched defaults survive the deep merge
        assert config["distribution"]["operator_fee_bps"] == 100

    def test_other_tokens_do_not_leak(self, tmp_path) -> None:
        """Test token sections only apply to their own mint."""
        write_yaml(tmp_path, "tokens.yaml", {
            "tokens": {"OtherMint": {"allocation": {"market_making": 100, "buyback_burn": 0,
                                                    "liquidity": 0, "creator_revenue": 0}}},
        })
        config = ConfigLoader.create(tmp_path).merge_config(MINT)
        assert config["allocation"]["market_making"] == 25

    def test_load_config_builds_typed_config(self, tmp_path) -> None:
        """Test the merged dict becomes frozen dataclasses."""
        write_yaml(tmp_path, "engine.yaml", {"trade": {"slippage_pct": 10}})
        config = ConfigLoader.create(tmp_path).load_config(MINT)
        assert config.trade.slippage_pct == 10
        assert config.trade.pool == "auto"

    def test_unknown_key_rejected(self, tmp_path) -> None:
        """Test typos in YAML are reported."""
        write_yaml(tmp_path, "engine.yaml", {"trade": {"slipage_pct": 10}})
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader.create(tmp_path).load_config(MINT)
        assert exc_info.value.setting == "trade"

    def test_non_mapping_file_rejected(self, tmp_path) -> None:
        """Test a YAML list at the top level is rejected."""
        write_yaml(tmp_path, "engine.yaml", ["not", "a", "mapping"])
        with pytest.raises(ConfigurationError):
            ConfigLoader.create(tmp_path).merge_config(MINT)

    def test_empty_file_is_ignored(self, tmp_path) -> None:
        """Test an empty YAML file contributes nothing."""
        (tmp_path / "engine.yaml").write_text("")
        config = ConfigLoader.create(tmp_path).merge_config(MINT)
        assert config["allocation"]["liquidity"] == 25

    def test_bundled_token_config(self) -> None:
        """Test the bundled tokens.yaml example validates."""
        loader = ConfigLoader.create()
        config = loader.load_config("ExampleMint1111111111111111111111111111111111")
        assert config.allocation.market_making == 40
        assert config.scheduler.claim_interval == 600


class TestConfigValidator:
    """Test suite for configuration validation."""

    def test_valid_allocations(self) -> None:
        """Test validation of a valid split."""
        errors = ConfigValidator.validate_allocations(
            {"market_making": 40, "buyback_burn": 30, "liquidity": 20, "creator_revenue": 10}
        )
        assert errors == []

    def test_allocation_sum(self) -> None:
        """Test a split not summing to 100."""
        errors = ConfigValidator.validate_allocations({"market_making": 50, "liquidity": 40})
        assert len(errors) == 1
        assert errors[0].field == "allocations"
        assert "90" in errors[0].message

    def test_unknown_channel(self) -> None:
        """Test an unknown channel name."""
        errors = ConfigValidator.validate_allocations({"staking": 100})
        assert errors[0].field == "staking"
        assert errors[0].message == "Unknown channel"

    def test_fractional_percent(self) -> None:
        """Test fractional percentages are rejected."""
        errors = ConfigValidator.validate_allocations({"market_making": 50.5, "liquidity": 49.5})
        assert {e.message for e in errors} == {"Must be a whole percent"}

    def test_valid_default_config(self) -> None:
        """Test the merged defaults validate cleanly."""
        config = ConfigLoader.create().merge_config("UNCONFIGURED-MINT")
        assert ConfigValidator.validate_config(config) == []

    def test_invalid_distribution_values(self) -> None:
        """Test out-of-range distribution settings."""
        config = ConfigLoader.create().merge_config("UNCONFIGURED-MINT", {
            "distribution": {"operator_fee_bps": 20_000, "min_fee_reserve": -1,
                             "liquidity_slippage": 1.5},
            "retry": {"max_attempts": 0},
        })

        fields = {e.field for e in ConfigValidator.validate_config(config)}

        assert fields == {
            "distribution.operator_fee_bps",
            "distribution.min_fee_reserve",
            "distribution.liquidity_slippage",
            "retry.max_attempts",
        }

    def test_allocation_issues_are_prefixed(self) -> None:
        """Test allocation issues carry the section prefix."""
        config = {"allocation": {"market_making": 10, "buyback_burn": 10,
                                 "liquidity": 10, "creator_revenue": 10}}
        errors = ConfigValidator.validate_config(config)
        assert errors[0].field == "allocation.allocations"
