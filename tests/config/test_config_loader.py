"""
Tests for engine configuration loading (retail_config).

Covers:
- Default configuration set
- Partial files falling back to defaults
- Unknown sections / keys and invalid values
- Checksum stability
"""

import pytest
import yaml

from retail_config import get_active_config
from retail_config.loader import compute_checksum, parse_config
from retail_config.schema import AllocationConfig, ConcurrencyConfig, EngineConfig, LoggingConfig
from retail_engines.allocation import RemainderPolicy


class TestDefaultConfig:

    def test_default_set_loads(self):
        config = get_active_config()
        assert config.allocation.decimal_places == 2
        assert config.allocation.remainder_policy is RemainderPolicy.DROP
        assert config.concurrency.max_retries == 3
        assert config.display.unknown_placeholder == "Unknown"
        assert config.display.transfer_reference_prefix == "TRF"
        assert config.logging.level == "INFO"
        assert len(config.checksum) == 64

    def test_config_trace_emitted(self, log_stream):
        config = get_active_config()
        traces = [r for r in log_stream() if r["message"] == "RETAIL_CONFIG_TRACE"]
        assert traces[0]["checksum"] == config.checksum
        assert traces[0]["remainder_policy"] == "drop"


class TestParseConfig:

    def test_empty_mapping_gives_defaults(self):
        config = parse_config({})
        assert config.allocation == AllocationConfig()
        assert config.concurrency == ConcurrencyConfig()

    def test_partial_override(self, tmp_path):
        path = tmp_path / "strict.yaml"
        path.write_text(yaml.safe_dump({
            "allocation": {"remainder_policy": "reject"},
            "logging": {"level": "debug"},
        }))
        config = get_active_config(path)
        assert config.allocation.remainder_policy is RemainderPolicy.REJECT
        assert config.allocation.decimal_places == 2
        assert config.logging.level == "DEBUG"

    def test_unknown_section_rejected(self):
        with pytest.raises(ValueError, match="Unknown configuration sections"):
            parse_config({"persistence": {}})

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown keys"):
            parse_config({"allocation": {"strategy": "fifo"}})

    def test_invalid_policy_rejected(self):
        with pytest.raises(ValueError):
            parse_config({"allocation": {"remainder_policy": "refund"}})

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError, match="mapping"):
            parse_config({"concurrency": [1, 2]})

    @pytest.mark.parametrize("section", [
        {"allocation": {"decimal_places": 12}},
        {"concurrency": {"max_retries": -1}},
        {"logging": {"level": "VERBOSE"}},
    ])
    def test_out_of_range_values_rejected(self, section):
        with pytest.raises(ValueError):
            parse_config(section)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")


class TestChecksum:

    def test_key_order_does_not_matter(self):
        a = {"allocation": {"decimal_places": 2, "remainder_policy": "drop"}}
        b = {"allocation": {"remainder_policy": "drop", "decimal_places": 2}}
        assert compute_checksum(a) == compute_checksum(b)

    def test_content_changes_checksum(self):
        assert compute_checksum({"concurrency": {"max_retries": 1}}) != compute_checksum(
            {"concurrency": {"max_retries": 2}}
        )

    def test_default_engine_config_has_no_checksum(self):
        assert EngineConfig().checksum == ""
        assert LoggingConfig("warning").level == "WARNING"
