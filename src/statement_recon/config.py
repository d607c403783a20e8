"""Configuration loader and validation for reconciliation settings."""

from decimal import Decimal
from pathlib import Path
from typing import Any, Optional
import logging

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class SideInputConfig(BaseModel):
    """CSV parsing settings for one side of the reconciliation."""

    encoding: str = "utf-8"
    delimiter: str = ","
    date_format: str = "%Y-%m-%d"
    id_prefix: str = "TXN"
    column_mappings: dict[str, str] = Field(
        default_factory=lambda: {
            "id": "ID",
            "date": "Date",
            "description": "Description",
            "amount": "Amount",
            "debit": "Debit",
            "credit": "Credit",
            "reference": "Reference",
            "account": "Account",
        }
    )


class InputConfig(BaseModel):
    """Configuration for input file parsing."""

    bank: SideInputConfig = Field(default_factory=lambda: SideInputConfig(id_prefix="BANK"))
    recorded: SideInputConfig = Field(
        default_factory=lambda: SideInputConfig(id_prefix="REC")
    )


class ScoringConfig(BaseModel):
    """Weights and tolerances for the similarity scorer."""

    amount_weight: float = 0.6
    date_weight: float = 0.25
    description_weight: float = 0.15
    amount_tolerance: Decimal = Decimal("10.00")
    date_window_days: int = 5
    description_match_threshold: float = 0.9

    @field_validator(
        "amount_weight", "date_weight", "description_weight", "description_match_threshold"
    )
    @classmethod
    def _non_negative_fraction(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("must be between 0 and 1")
        return value

    @field_validator("amount_tolerance")
    @classmethod
    def _non_negative_tolerance(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @field_validator("date_window_days")
    @classmethod
    def _non_negative_window(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @model_validator(mode="after")
    def _weights_sum_to_one(self) -> "ScoringConfig":
        total = self.amount_weight + self.date_weight + self.description_weight
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"scoring weights must sum to 1.0 (got {total:.4f})")
        return self


class MatchingSettings(BaseModel):
    """Candidate generation and bulk acceptance thresholds."""

    min_confidence: float = 0.5
    bulk_accept_threshold: float = 0.9

    @field_validator("min_confidence", "bulk_accept_threshold")
    @classmethod
    def _in_unit_interval(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("must be between 0 and 1")
        return value


class SessionSettings(BaseModel):
    """Reconciliation session lifecycle settings."""

    allow_reopen: bool = True


class ExcelOutputConfig(BaseModel):
    """Configuration for Excel output."""

    filename_template: str = "reconciliation_report_{date}_{time}.xlsx"
    include_timestamp: bool = True


class SheetConfig(BaseModel):
    """Configuration for a report sheet."""

    enabled: bool = True
    name: str


class SheetsConfig(BaseModel):
    """Configuration for all report sheets."""

    summary: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Summary"))
    matched: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Matched Transactions"))
    bank_unmatched: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Unmatched Bank")
    )
    recorded_unmatched: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Unmatched Recorded")
    )
    suggestions: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Suggestions"))
    audit_trail: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Audit Trail"))


class OutputConfig(BaseModel):
    """Configuration for output."""

    excel: ExcelOutputConfig = Field(default_factory=ExcelOutputConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[Path] = None


class ReconConfig(BaseModel):
    """Main configuration model for reconciliation."""

    input: InputConfig = Field(default_factory=InputConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    column_mappings = {
        "id": "ID",
        "date": "Date",
        "description": "Description",
        "amount": "Amount",
        "debit": "Debit",
        "credit": "Credit",
        "reference": "Reference",
        "account": "Account",
    }
    return {
        "input": {
            "bank": {
                "encoding": "utf-8",
                "delimiter": ",",
                "date_format": "%Y-%m-%d",
                "id_prefix": "BANK",
                "column_mappings": dict(column_mappings),
            },
            "recorded": {
                "encoding": "utf-8",
                "delimiter": ",",
                "date_format": "%Y-%m-%d",
                "id_prefix": "REC",
                "column_mappings": dict(column_mappings),
            },
        },
        "scoring": {
            "amount_weight": 0.6,
            "date_weight": 0.25,
            "description_weight": 0.15,
            "amount_tolerance": "10.00",
            "date_window_days": 5,
            "description_match_threshold": 0.9,
        },
        "matching": {
            "min_confidence": 0.5,
            "bulk_accept_threshold": 0.9,
        },
        "session": {
            "allow_reopen": True,
        },
        "output": {
            "excel": {
                "filename_template": "reconciliation_report_{date}_{time}.xlsx",
                "include_timestamp": True,
            },
            "sheets": {
                "summary": {"enabled": True, "name": "Summary"},
                "matched": {"enabled": True, "name": "Matched Transactions"},
                "bank_unmatched": {"enabled": True, "name": "Unmatched Bank"},
                "recorded_unmatched": {"enabled": True, "name": "Unmatched Recorded"},
                "suggestions": {"enabled": True, "name": "Suggestions"},
                "audit_trail": {"enabled": True, "name": "Audit Trail"},
            },
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": None,
        },
    }


def load_config(config_path: Optional[Path] = None) -> ReconConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        ReconConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file cannot be parsed or fails validation
    """
    config_dict = get_default_config()

    if config_path and config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

        # Deep merge user config into defaults
        config_dict = _deep_merge(config_dict, user_config)
        config_dict["config_file_path"] = str(config_path)
    else:
        logger.info("Using default configuration")

    try:
        return ReconConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Generate a default configuration file.

    Args:
        output_path: Path to write the configuration file
    """
    config_dict = get_default_config()

    yaml_content = """# Statement Reconciliation Configuration
# Generated configuration file - customize as needed

"""
    yaml_content += yaml.dump(config_dict, default_flow_style=False, sort_keys=False)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
