"""
Statement Recon - Configuration Tests
"""

from decimal import Decimal

import pytest
import yaml

from statement_recon.config import (
    ReconConfig,
    ScoringConfig,
    generate_default_config,
    get_default_config,
    load_config,
)
from statement_recon.utils.exceptions import ConfigurationError


class TestLoadConfig:
    """Test cases for loading YAML configuration."""

    def test_defaults_without_file(self):
        config = load_config(None)

        assert config.scoring.amount_weight == 0.6
        assert config.scoring.amount_tolerance == Decimal("10.00")
        assert config.matching.min_confidence == 0.5
        assert config.matching.bulk_accept_threshold == 0.9
        assert config.session.allow_reopen is True
        assert config.config_file_path is None

    def test_defaults_match_model_defaults(self):
        """The dictionary defaults and the model defaults agree."""
        assert ReconConfig(**get_default_config()) == ReconConfig()

    def test_user_file_is_deep_merged(self, tmp_path):
        path = tmp_path / "recon.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "matching": {"min_confidence": 0.7},
                    "input": {"bank": {"date_format": "%m/%d/%Y"}},
                }
            )
        )

        config = load_config(path)

        assert config.matching.min_confidence == 0.7
        assert config.matching.bulk_accept_threshold == 0.9
        assert config.input.bank.date_format == "%m/%d/%Y"
        assert config.input.bank.column_mappings["amount"] == "Amount"
        assert config.config_file_path == str(path)

    def test_weights_must_sum_to_one(self, tmp_path):
        path = tmp_path / "recon.yaml"
        path.write_text(yaml.safe_dump({"scoring": {"amount_weight": 0.9}}))

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_threshold_out_of_range(self, tmp_path):
        path = tmp_path / "recon.yaml"
        path.write_text(yaml.safe_dump({"matching": {"bulk_accept_threshold": 1.5}}))

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "recon.yaml"
        path.write_text("matching: [unclosed")

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "recon.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError):
            load_config(path)


class TestScoringConfig:
    """Test cases for scorer settings validation."""

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValueError):
            ScoringConfig(amount_tolerance=Decimal("-1"))

    def test_negative_window_rejected(self):
        with pytest.raises(ValueError):
            ScoringConfig(date_window_days=-2)


class TestGenerateDefaultConfig:
    """Test cases for writing the sample configuration."""

    def test_round_trips_through_loader(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"

        generate_default_config(path)
        config = load_config(path)

        assert path.read_text().startswith("# Statement Reconciliation Configuration")
        assert config.scoring == ScoringConfig()
        assert config.output.sheets.audit_trail.name == "Audit Trail"
