"""Configuration loading and validation for finance-helper."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from finance_helper.models.transaction import DEFAULT_CURRENCY
from finance_helper.parsers.detector import DEFAULT_STATEMENT_CURRENCY
from finance_helper.processing.categorizer import KeywordRule
from finance_helper.processing.normalizer import DEFAULT_NOTE_FALLBACK_COLUMNS
from finance_helper.processing.report_generator import (
    DEFAULT_FORECAST_WINDOW,
    DEFAULT_TOP_MERCHANTS,
)
from finance_helper.utils.logging_config import DEFAULT_LOG_FILE, get_logger

logger = get_logger(__name__)

CONFIG_DIR_ENV = "FINANCE_HELPER_CONFIG_DIR"


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


def _section(data: dict[str, object], key: str) -> dict[str, object]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


@dataclass
class ImportConfig:
    """Settings for CSV ingestion.

    Attributes:
        default_currency: Currency when a row has no currency column value
            and the mapping no fixed currency.
        statement_currency: Fixed currency written by the built-in templates.
        note_fallback_columns: Columns joined into a note when no note column
            is mapped.
    """

    default_currency: str = DEFAULT_CURRENCY
    statement_currency: str = DEFAULT_STATEMENT_CURRENCY
    note_fallback_columns: list[str] = field(
        default_factory=lambda: list(DEFAULT_NOTE_FALLBACK_COLUMNS)
    )

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ImportConfig":
        """Create from dictionary."""
        columns = data.get("note_fallback_columns", DEFAULT_NOTE_FALLBACK_COLUMNS)
        if not isinstance(columns, (list, tuple)):
            raise ConfigError("'imports.note_fallback_columns' must be a list")
        return cls(
            default_currency=str(data.get("default_currency", DEFAULT_CURRENCY)),
            statement_currency=str(data.get("statement_currency", DEFAULT_STATEMENT_CURRENCY)),
            note_fallback_columns=[str(c) for c in columns],
        )


@dataclass
class ReportConfig:
    """Settings for reports and exports."""

    top_merchants: int = DEFAULT_TOP_MERCHANTS
    forecast_window: int = DEFAULT_FORECAST_WINDOW
    currency_symbol: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ReportConfig":
        """Create from dictionary."""
        return cls(
            top_merchants=int(data.get("top_merchants", DEFAULT_TOP_MERCHANTS)),  # type: ignore[arg-type]
            forecast_window=int(data.get("forecast_window", DEFAULT_FORECAST_WINDOW)),  # type: ignore[arg-type]
            currency_symbol=str(data.get("currency_symbol", "")),
        )


@dataclass
class StorageConfig:
    """Where the rule store and the transaction collection live.

    Relative file names are resolved against ``data_dir``.
    """

    data_dir: str = "data"
    rules_file: str = "rules.yaml"
    transactions_file: str = "transactions.json"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "StorageConfig":
        """Create from dictionary."""
        return cls(
            data_dir=str(data.get("data_dir", "data")),
            rules_file=str(data.get("rules_file", "rules.yaml")),
            transactions_file=str(data.get("transactions_file", "transactions.json")),
        )

    @property
    def rules_path(self) -> Path:
        return Path(self.data_dir) / self.rules_file

    @property
    def transactions_path(self) -> Path:
        return Path(self.data_dir) / self.transactions_file


@dataclass
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Path to log file.
    """

    level: str = "INFO"
    file: str = DEFAULT_LOG_FILE

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LoggingConfig":
        """Create from dictionary."""
        return cls(
            level=str(data.get("level", "INFO")),
            file=str(data.get("file", DEFAULT_LOG_FILE)),
        )


@dataclass
class Config:
    """Main configuration container.

    Attributes:
        imports: CSV ingestion settings.
        builtin_rules: Heuristic keyword rules; None keeps the defaults.
        report: Report and export settings.
        storage: Data file locations.
        logging: Logging configuration.
    """

    imports: ImportConfig = field(default_factory=ImportConfig)
    builtin_rules: Optional[list[KeywordRule]] = None
    report: ReportConfig = field(default_factory=ReportConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Config":
        """Create from the parsed settings file.

        Raises:
            ConfigError: If a section has the wrong structure.
        """
        builtin_rules: Optional[list[KeywordRule]] = None
        if data.get("builtin_rules") is not None:
            entries = data["builtin_rules"]
            if not isinstance(entries, list):
                raise ConfigError(
                    f"'builtin_rules' must be a list, got {type(entries).__name__}"
                )
            builtin_rules = []
            for entry in entries:
                if not isinstance(entry, dict):
                    raise ConfigError("Each 'builtin_rules' entry must be a mapping")
                rule = KeywordRule.from_dict(entry)
                if rule is not None:
                    builtin_rules.append(rule)

        try:
            return cls(
                imports=ImportConfig.from_dict(_section(data, "imports")),
                builtin_rules=builtin_rules,
                report=ReportConfig.from_dict(_section(data, "report")),
                storage=StorageConfig.from_dict(_section(data, "storage")),
                logging=LoggingConfig.from_dict(_section(data, "logging")),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid setting value: {e}") from e


def default_config_dir() -> Path:
    """Config directory from ``FINANCE_HELPER_CONFIG_DIR``, else ``./config``."""
    return Path(os.environ.get(CONFIG_DIR_ENV, "config"))


def load_yaml_file(path: Path) -> dict[str, object]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(content).__name__}")
    return content


def load_config(
    settings_path: Optional[Path] = None,
    config_dir: Optional[Path] = None,
) -> Config:
    """Load configuration from settings.yaml.

    Args:
        settings_path: Path to settings.yaml (or None to use default).
        config_dir: Base config directory (default: ``default_config_dir()``).

    Returns:
        Complete Config object; defaults when the settings file is missing.

    Raises:
        ConfigError: If the settings file is malformed.
    """
    if config_dir is None:
        config_dir = default_config_dir()
    if settings_path is None:
        settings_path = config_dir / "settings.yaml"

    if not settings_path.exists():
        logger.warning(f"Settings file not found: {settings_path}, using defaults")
        return Config()

    config = Config.from_dict(load_yaml_file(settings_path))
    logger.info(f"Loaded settings from {settings_path}")
    return config
