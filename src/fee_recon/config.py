"""Configuration loader and validation for reconciliation settings."""

from pathlib import Path
from typing import Any, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging
import re

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

TIE_BREAK_FIRST_ELIGIBLE = "first_eligible"
TIE_BREAK_CLOSEST_DATE = "closest_date"

# Ledger timestamps are interpreted in the school's local zone
DEFAULT_TIMEZONE = "Africa/Lagos"

# Excel rejects these in worksheet titles
_INVALID_SHEET_CHARS = re.compile(r"[\\/?*\[\]:]")
MAX_SHEET_NAME_LENGTH = 31


class StatementInputConfig(BaseModel):
    """How an uploaded bank statement is read."""

    encoding: str = "utf-8"
    delimiter: str = ","
    # Worksheet to read from an Excel upload (first sheet by default)
    sheet_name: Any = 0
    date_format: Optional[str] = None
    dayfirst: bool = False
    column_mappings: dict[str, str] = Field(
        default_factory=lambda: {
            "date": "Date",
            "description": "Description",
            "amount": "Amount",
        }
    )


class InputConfig(BaseModel):
    """Configuration for input file parsing."""

    statement: StatementInputConfig = Field(default_factory=StatementInputConfig)


class PaymentsConfig(BaseModel):
    """Configuration for the recorded-payment source."""

    fetch_timeout_seconds: float = Field(default=30.0, gt=0)
    # csv, json or xlsx; inferred from the file suffix when unset
    file_format: Optional[str] = None
    encoding: str = "utf-8"
    date_format: Optional[str] = None
    timezone: str = DEFAULT_TIMEZONE
    column_mappings: dict[str, str] = Field(
        default_factory=lambda: {
            "id": "id",
            "student_name": "studentName",
            "amount_paid": "amountPaid",
            "payment_date": "paymentDate",
            "payment_method": "paymentMethod",
            "invoice_id": "invoiceId",
            "student_id": "studentId",
            "notes": "notes",
        }
    )

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone '{value}'") from e
        return value

    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class MatchingConfig(BaseModel):
    """Configuration for the matcher."""

    date_tolerance_days: int = Field(default=2, ge=0)
    window_buffer_days: int = Field(default=1, ge=0)
    tie_break: Literal["first_eligible", "closest_date"] = TIE_BREAK_FIRST_ELIGIBLE


class ExcelOutputConfig(BaseModel):
    """Configuration for Excel output."""

    filename_template: str = "fee_reconciliation_{date}_{time}.xlsx"


class SheetConfig(BaseModel):
    """Configuration for a report sheet."""

    enabled: bool = True
    name: str

    @field_validator("name")
    @classmethod
    def _valid_sheet_name(cls, value: str) -> str:
        if not value or len(value) > MAX_SHEET_NAME_LENGTH:
            raise ValueError(f"sheet name must be 1-{MAX_SHEET_NAME_LENGTH} characters")
        if _INVALID_SHEET_CHARS.search(value):
            raise ValueError(f"sheet name '{value}' contains one of \\ / ? * [ ] :")
        return value


class SheetsConfig(BaseModel):
    """Configuration for all report sheets."""

    summary: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Summary"))
    matched: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Matched"))
    unmatched_bank: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Unmatched from Bank")
    )
    unmatched_recorded: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Unmatched from Portal")
    )
    audit_trail: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Audit Trail"))


class OutputConfig(BaseModel):
    """Configuration for output."""

    currency: str = "NGN"
    excel: ExcelOutputConfig = Field(default_factory=ExcelOutputConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


class ReconConfig(BaseModel):
    """Main configuration model for reconciliation."""

    input: InputConfig = Field(default_factory=InputConfig)
    payments: PaymentsConfig = Field(default_factory=PaymentsConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return ReconConfig().model_dump(exclude={"config_file_path"})


def load_config(config_path: Optional[Path] = None) -> ReconConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        ReconConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file is not valid YAML or holds invalid values
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
            raise ConfigurationError(
                f"Configuration root in {config_path} must be a mapping"
            )

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

    yaml_content = """# Fee payment bank reconciliation configuration
# Generated configuration file - customize as needed

"""
    yaml_content += yaml.safe_dump(config_dict, default_flow_style=False, sort_keys=False)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
