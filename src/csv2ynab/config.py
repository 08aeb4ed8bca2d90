"""Configuration loading, validation and caching for csv2ynab."""

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml

from csv2ynab.utils.date_utils import AUTO_DATE_FORMAT
from csv2ynab.utils.decimal_utils import DECIMAL_SEPARATORS, DOT
from csv2ynab.utils.logging_config import get_logger

logger = get_logger(__name__)

# Prefix of every cached mapping key
STORAGE_KEY_PREFIX = "csv2ynab_config_"

# Environment variable overriding the cache file location
CACHE_PATH_ENV = "CSV2YNAB_CACHE_PATH"

DEFAULT_CACHE_PATH = Path.home() / ".cache" / "csv2ynab" / "mappings.yaml"

# Number of leading rows used for mapping detection
DEFAULT_SAMPLE_SIZE = 20


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


class AmountMode(Enum):
    """Where transaction amounts come from."""

    SINGLE = "single"  # One signed amount column
    SEPARATE = "separate"  # Unsigned outflow and inflow columns


@dataclass(frozen=True)
class PayeeRule:
    """Case-insensitive substring rule that replaces the whole payee.

    Attributes:
        match: Substring to look for.
        replacement: Payee text to use when the substring is found.
    """

    match: str
    replacement: str = ""

    def matches(self, payee: str) -> bool:
        """Check whether this rule applies to a payee.

        Rules with an empty match never apply.
        """
        return bool(self.match) and self.match.lower() in payee.lower()

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "PayeeRule":
        """Create a rule from a dictionary (e.g., from a cached config)."""
        return cls(
            match=str(data.get("match") or ""),
            replacement=str(data.get("replacement") or ""),
        )

    def to_dict(self) -> dict[str, str]:
        """Serialize the rule."""
        return {"match": self.match, "replacement": self.replacement}


@dataclass(frozen=True)
class MappingConfig:
    """Column mapping and parsing options for one statement layout.

    Instances are immutable. Editing helpers return new instances so the
    transformation pipeline can treat a config as a plain value.

    Attributes:
        date_column: Column holding the transaction date (required).
        payee_column: Column holding the payee.
        memo_column: Column holding the memo.
        amount_mode: Single signed column or separate outflow/inflow columns.
        amount_column: Signed amount column (single mode).
        outflow_column: Outflow column (separate mode).
        inflow_column: Inflow column (separate mode).
        date_format: "auto" or an explicit pattern like "dd.MM.yyyy".
        decimal_separator: "." or ",".
        is_negative_outflow: True if negative amounts are outflows,
            False if positive amounts are outflows.
        skip_empty_amount: Skip rows whose amount cell(s) are empty.
        trim_whitespace: Trim payee and memo text.
        auto_clean_payee: Strip common bank noise from payees.
        payee_rules: Ordered find/replace rules, first match wins.
    """

    date_column: str = ""
    payee_column: str = ""
    memo_column: str = ""
    amount_mode: AmountMode = AmountMode.SINGLE
    amount_column: str = ""
    outflow_column: str = ""
    inflow_column: str = ""
    date_format: str = AUTO_DATE_FORMAT
    decimal_separator: str = DOT
    is_negative_outflow: bool = True
    skip_empty_amount: bool = True
    trim_whitespace: bool = True
    auto_clean_payee: bool = False
    payee_rules: tuple[PayeeRule, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.decimal_separator not in DECIMAL_SEPARATORS:
            raise ConfigError(
                f"Decimal separator must be one of {DECIMAL_SEPARATORS}, "
                f"got {self.decimal_separator!r}"
            )
        # Accept lists from callers but store an immutable sequence
        if not isinstance(self.payee_rules, tuple):
            object.__setattr__(self, "payee_rules", tuple(self.payee_rules))

    @property
    def amount_source_column(self) -> str:
        """Return the column whose values drive separator detection."""
        if self.amount_mode == AmountMode.SINGLE:
            return self.amount_column
        return self.outflow_column or self.inflow_column

    def validation_errors(self) -> list[str]:
        """List the reasons this configuration cannot be processed.

        Returns:
            Human-readable problems; empty if the config is usable.
        """
        errors = []
        if not self.date_column:
            errors.append("No date column selected")
        if self.amount_mode == AmountMode.SINGLE and not self.amount_column:
            errors.append("No amount column selected")
        if self.amount_mode == AmountMode.SEPARATE and not (
            self.outflow_column or self.inflow_column
        ):
            errors.append("No outflow or inflow column selected")
        return errors

    def is_valid(self) -> bool:
        """Check whether the configuration can be used for processing."""
        return not self.validation_errors()

    def swap_payee_memo(self) -> "MappingConfig":
        """Return a copy with the payee and memo columns exchanged."""
        return replace(self, payee_column=self.memo_column, memo_column=self.payee_column)

    def with_rule(self, match: str, replacement: str = "") -> "MappingConfig":
        """Return a copy with a payee rule appended.

        Rules with an empty match, and rules identical to an existing one,
        are ignored.
        """
        rule = PayeeRule(match, replacement)
        if not match or rule in self.payee_rules:
            return self
        return replace(self, payee_rules=self.payee_rules + (rule,))

    def without_rule(self, index: int) -> "MappingConfig":
        """Return a copy with the payee rule at index removed."""
        rules = tuple(r for i, r in enumerate(self.payee_rules) if i != index)
        return replace(self, payee_rules=rules)

    @classmethod
    def from_dict(cls, data: object) -> "MappingConfig":
        """Create a config from its serialized (camelCase) form.

        Unknown or invalid values fall back to defaults.

        Args:
            data: Dictionary as produced by to_dict().

        Returns:
            A new MappingConfig instance.

        Raises:
            ConfigError: If data is not a mapping.
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Mapping config must be a mapping, got {type(data).__name__}")

        defaults = cls()

        try:
            amount_mode = AmountMode(str(data.get("amountMode", AmountMode.SINGLE.value)))
        except ValueError:
            amount_mode = AmountMode.SINGLE

        separator = str(data.get("decimalSeparator", DOT))
        if separator not in DECIMAL_SEPARATORS:
            separator = DOT

        rules_data = data.get("payeeRules") or []
        if not isinstance(rules_data, list):
            rules_data = []
        rules = tuple(
            PayeeRule.from_dict(r) for r in rules_data if isinstance(r, dict)
        )

        def _text(key: str) -> str:
            value = data.get(key)
            return str(value) if value is not None else ""

        def _flag(key: str, default: bool) -> bool:
            value = data.get(key, default)
            return value if isinstance(value, bool) else default

        return cls(
            date_column=_text("dateColumn"),
            payee_column=_text("payeeColumn"),
            memo_column=_text("memoColumn"),
            amount_mode=amount_mode,
            amount_column=_text("amountColumn"),
            outflow_column=_text("outflowColumn"),
            inflow_column=_text("inflowColumn"),
            date_format=_text("dateFormat") or AUTO_DATE_FORMAT,
            decimal_separator=separator,
            is_negative_outflow=_flag("isNegativeOutflow", defaults.is_negative_outflow),
            skip_empty_amount=_flag("skipEmptyAmount", defaults.skip_empty_amount),
            trim_whitespace=_flag("trimWhitespace", defaults.trim_whitespace),
            auto_clean_payee=_flag("autoCleanPayee", defaults.auto_clean_payee),
            payee_rules=rules,
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize to the camelCase layout used by cached configs."""
        return {
            "dateColumn": self.date_column,
            "payeeColumn": self.payee_column,
            "memoColumn": self.memo_column,
            "amountMode": self.amount_mode.value,
            "amountColumn": self.amount_column,
            "outflowColumn": self.outflow_column,
            "inflowColumn": self.inflow_column,
            "dateFormat": self.date_format,
            "decimalSeparator": self.decimal_separator,
            "isNegativeOutflow": self.is_negative_outflow,
            "skipEmptyAmount": self.skip_empty_amount,
            "trimWhitespace": self.trim_whitespace,
            "autoCleanPayee": self.auto_clean_payee,
            "payeeRules": [r.to_dict() for r in self.payee_rules],
        }


@dataclass
class OutputConfig:
    """Configuration for output generation.

    Attributes:
        directory: Directory for generated files when no path is given.
        sanitize_formulas: Prefix payee/memo values that start with
            spreadsheet formula characters.
        preview_rows: Number of converted rows shown before export.
    """

    directory: str = "."
    sanitize_formulas: bool = False
    preview_rows: int = 50

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "OutputConfig":
        """Create from dictionary."""
        return cls(
            directory=str(data.get("directory", ".")),
            sanitize_formulas=bool(data.get("sanitize_formulas", False)),
            preview_rows=int(data.get("preview_rows", 50)),  # type: ignore[arg-type]
        )


@dataclass
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Path to log file.
    """

    level: str = "INFO"
    file: str = "csv2ynab.log"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LoggingConfig":
        """Create from dictionary."""
        return cls(
            level=str(data.get("level", "INFO")),
            file=str(data.get("file", "csv2ynab.log")),
        )


@dataclass
class CacheConfig:
    """Configuration for the mapping cache.

    Attributes:
        enabled: Whether mappings are remembered per header layout.
        path: Cache file location.
    """

    enabled: bool = True
    path: Path = field(default_factory=lambda: DEFAULT_CACHE_PATH)

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "CacheConfig":
        """Create from dictionary."""
        path = data.get("path")
        return cls(
            enabled=bool(data.get("enabled", True)),
            path=Path(str(path)).expanduser() if path else DEFAULT_CACHE_PATH,
        )


@dataclass
class Settings:
    """Main settings container.

    Attributes:
        output: Output generation configuration.
        logging: Logging configuration.
        cache: Mapping cache configuration.
        sample_size: Rows sampled for mapping detection.
    """

    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    sample_size: int = DEFAULT_SAMPLE_SIZE


def load_yaml_file(path: Path) -> dict[str, object]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If the top level is not a mapping.
        yaml.YAMLError: If file is invalid YAML.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        content = yaml.safe_load(f)

    if not content:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(content).__name__}")
    return content


def _section(data: dict[str, object], name: str) -> dict[str, object]:
    """Return a settings section, validating its type."""
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping, got {type(section).__name__}")
    return section


def load_settings(path: Path) -> Settings:
    """Load settings from settings.yaml.

    Args:
        path: Path to settings.yaml.

    Returns:
        Parsed Settings.

    Raises:
        ConfigError: If a section has the wrong shape.
    """
    data = load_yaml_file(path)

    try:
        settings = Settings(
            output=OutputConfig.from_dict(_section(data, "output")),
            logging=LoggingConfig.from_dict(_section(data, "logging")),
            cache=CacheConfig.from_dict(_section(data, "cache")),
            sample_size=int(data.get("sample_size", DEFAULT_SAMPLE_SIZE)),  # type: ignore[arg-type]
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    if settings.sample_size < 1:
        raise ConfigError(f"sample_size must be positive, got {settings.sample_size}")

    return settings


def load_config(
    settings_path: Optional[Path] = None,
    config_dir: Optional[Path] = None,
) -> Settings:
    """Load settings, applying environment overrides.

    Args:
        settings_path: Path to settings.yaml (or None to use default).
        config_dir: Base config directory (default: ./config).

    Returns:
        Complete Settings object.
    """
    if config_dir is None:
        config_dir = Path("config")
    if settings_path is None:
        settings_path = config_dir / "settings.yaml"

    if settings_path.exists():
        settings = load_settings(settings_path)
        logger.info(f"Loaded settings from {settings_path}")
    else:
        settings = Settings()
        logger.warning(f"Settings file not found: {settings_path}, using defaults")

    cache_override = os.environ.get(CACHE_PATH_ENV)
    if cache_override:
        settings.cache.path = Path(cache_override).expanduser()
        logger.info(f"Using mapping cache from {CACHE_PATH_ENV}: {settings.cache.path}")

    return settings


def _to_int32(value: int) -> int:
    """Wrap an integer to a signed 32-bit value."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def header_fingerprint(headers: list[str]) -> int:
    """Hash the sorted, pipe-joined header list.

    Uses the 31-multiplier rolling hash over UTF-16 code units, truncated
    to a signed 32-bit value after each step, so keys stay compatible with
    mappings saved by earlier versions.

    Args:
        headers: Column headers in any order.

    Returns:
        Signed 32-bit fingerprint.
    """
    # Order by UTF-16 code units, not code points
    header_string = "|".join(sorted(headers, key=lambda h: h.encode("utf-16-be")))
    encoded = header_string.encode("utf-16-le")
    value = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        value = _to_int32((value << 5) - value + code_unit)
    return value


def get_storage_key(headers: list[str]) -> str:
    """Return the cache key for a header layout."""
    return f"{STORAGE_KEY_PREFIX}{header_fingerprint(headers)}"


class ConfigStore:
    """Best-effort YAML cache of mapping configs keyed by header layout.

    Failures to read or write the cache are logged and otherwise ignored;
    a broken cache never stops a conversion.
    """

    def __init__(self, path: Path):
        """Initialize the store.

        Args:
            path: Cache file location.
        """
        self.path = path

    def _read_all(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        return load_yaml_file(self.path)

    def load(self, headers: list[str]) -> Optional[MappingConfig]:
        """Load the cached mapping for a header layout.

        Args:
            headers: Column headers of the current file.

        Returns:
            Cached MappingConfig, or None if absent or unreadable.
        """
        key = get_storage_key(headers)
        try:
            saved = self._read_all().get(key)
            if saved is None:
                return None
            config = MappingConfig.from_dict(saved)
        except (OSError, yaml.YAMLError, ConfigError) as e:
            logger.warning(f"Failed to load config from {self.path}: {e}")
            return None

        logger.info(f"Loaded cached mapping {key}")
        return config

    def save(self, headers: list[str], config: MappingConfig) -> bool:
        """Save a mapping for a header layout.

        Args:
            headers: Column headers of the current file.
            config: Mapping to remember.

        Returns:
            True if the cache file was written.
        """
        key = get_storage_key(headers)
        try:
            try:
                data = self._read_all()
            except (yaml.YAMLError, ConfigError) as e:
                logger.warning(f"Replacing unreadable cache {self.path}: {e}")
                data = {}
            data[key] = config.to_dict()

            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            logger.warning(f"Failed to save config to {self.path}: {e}")
            return False

        logger.info(f"Saved mapping {key} to {self.path}")
        return True
