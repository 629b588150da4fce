"""Configuration management for Ledgerly.

Reads configuration from ~/.config/ledgerly.toml and creates default config if needed.
"""

from pathlib import Path
from dataclasses import dataclass
from typing import Optional
import tomllib
import tomli_w


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    archive_enabled: bool
    archive_dir: Path
    recurring_lookback_days: int = 365
    recurring_amount_tolerance: float = 0.10
    subscription_category: str = "Subscriptions"
    income_category: str = "Income"
    investment_category: str = "Investment"
    patterns_file: Optional[Path] = None

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        home = Path.home()
        base_dir = home / "data" / "ledgerly"
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="ledgerly.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
            archive_enabled=True,
            archive_dir=base_dir / "archives",
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "ledgerly.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def get_seed_dir() -> Path:
    """Get the path to the seed data directory."""
    return Path(__file__).parent / "db" / "seed"


def load_config() -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Returns:
        Config object with loaded or default values.
    """
    config_path = get_config_path()

    # If config doesn't exist, create it with defaults
    if not config_path.exists():
        config = Config.default()
        _write_config(config)
        return config

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return _parse_config(data)


def _parse_config(data: dict) -> Config:
    """Build a Config from parsed TOML data, filling in defaults."""
    defaults = Config.default()
    base_dir = Path(data.get("base_dir", defaults.base_dir))

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", defaults.db_filename)

    log_config = data.get("logging", {})
    log_level = log_config.get("level", defaults.log_level)
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    archive_config = data.get("archive", {})
    archive_enabled = archive_config.get("enabled", True)
    archive_dir = Path(archive_config.get("archive_dir", base_dir / "archives"))

    detection_config = data.get("detection", {})
    category_config = data.get("categories", {})
    classification_config = data.get("classification", {})
    patterns_file = classification_config.get("patterns_file")

    return Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        archive_enabled=archive_enabled,
        archive_dir=archive_dir,
        recurring_lookback_days=int(
            detection_config.get(
                "recurring_lookback_days", defaults.recurring_lookback_days
            )
        ),
        recurring_amount_tolerance=float(
            detection_config.get(
                "recurring_amount_tolerance", defaults.recurring_amount_tolerance
            )
        ),
        subscription_category=detection_config.get(
            "subscription_category", defaults.subscription_category
        ),
        income_category=category_config.get(
            "income_category", defaults.income_category
        ),
        investment_category=category_config.get(
            "investment_category", defaults.investment_category
        ),
        patterns_file=Path(patterns_file) if patterns_file else None,
    )


def _write_config(config: Config) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
    """
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "base_dir": str(config.base_dir),
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "archive": {
            "enabled": config.archive_enabled,
            "archive_dir": str(config.archive_dir),
        },
        "detection": {
            "recurring_lookback_days": config.recurring_lookback_days,
            "recurring_amount_tolerance": config.recurring_amount_tolerance,
            "subscription_category": config.subscription_category,
        },
        "categories": {
            "income_category": config.income_category,
            "investment_category": config.investment_category,
        },
    }
    # TOML has no null, so an unset patterns file is simply omitted
    if config.patterns_file is not None:
        data["classification"] = {"patterns_file": str(config.patterns_file)}

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
