"""Tests for fee_recon.config."""

from pathlib import Path

import pytest
import yaml

from fee_recon.config import generate_default_config, get_default_config, load_config
from fee_recon.utils.exceptions import ConfigurationError


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(None)
        assert config.matching.date_tolerance_days == 2
        assert config.matching.window_buffer_days == 1
        assert config.matching.tie_break == "first_eligible"
        assert config.input.statement.column_mappings["amount"] == "Amount"
        assert config.output.currency == "NGN"
        assert config.payments.timezone == "Africa/Lagos"
        assert config.config_file_path is None

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yaml")
        assert config.config_file_path is None

    def test_partial_override_is_deep_merged(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "matching:\n"
            "  tie_break: closest_date\n"
            "input:\n"
            "  statement:\n"
            "    column_mappings:\n"
            "      amount: Credit\n"
        )

        config = load_config(path)

        assert config.matching.tie_break == "closest_date"
        assert config.matching.date_tolerance_days == 2
        assert config.input.statement.column_mappings == {
            "date": "Date",
            "description": "Description",
            "amount": "Credit",
        }
        assert config.config_file_path == str(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path).matching.date_tolerance_days == 2

    @pytest.mark.parametrize(
        "content",
        [
            "matching:\n  tie_break: random\n",
            "matching:\n  date_tolerance_days: -1\n",
            "payments:\n  fetch_timeout_seconds: 0\n",
            "payments:\n  timezone: Mars/Olympus_Mons\n",
            "output:\n  sheets:\n    matched:\n      name: Matched/Paid\n",
            "output:\n  sheets:\n    summary:\n      name: Fee Payment Reconciliation Summary Sheet\n",
        ],
    )
    def test_invalid_values(self, tmp_path, content):
        path = tmp_path / "config.yaml"
        path.write_text(content)
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("matching: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)


class TestGenerateDefaultConfig:
    def test_round_trips_through_load(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        generate_default_config(path)

        text = path.read_text()
        assert text.startswith("# Fee payment bank reconciliation configuration")
        assert yaml.safe_load(text) == get_default_config()
        assert load_config(path).matching.date_tolerance_days == 2
