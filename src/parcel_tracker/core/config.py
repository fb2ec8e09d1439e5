#!/usr/bin/env python3
"""
Configuration Management for Parcel Tracker

Handles environment-based configuration with defaults and validation.
Supports multiple environments (development, test, production).
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

KNOWN_SOURCES = ("amazon", "ebay", "customs")


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class StorageConfig:
    """Record store persistence settings."""

    store_file: Path


@dataclass
class MatchingConfig:
    """Record matching heuristics."""

    # Characters of the primary item name compared by the fuzzy tier
    fuzzy_prefix_length: int = 20


@dataclass
class ExtractionConfig:
    """Which page extractors are enabled."""

    active_sources: list = field(default_factory=lambda: list(KNOWN_SOURCES))

    def is_active(self, source: str) -> bool:
        """Check whether extractors for a source are enabled."""
        return source.lower() in self.active_sources


@dataclass
class Config:
    """
    Main configuration class for the parcel tracker.

    Loads configuration from environment variables with defaults and
    validation for each environment type.
    """

    environment: Environment

    # Core directories
    data_dir: Path
    export_dir: Path

    # Component configurations
    storage: StorageConfig
    matching: MatchingConfig
    extraction: ExtractionConfig

    # Application settings
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("PARCELS_ENV", "development"))

        if env == Environment.TEST:
            default_test_dir = Path(tempfile.gettempdir()) / "test_parcels"
            base_dir = Path(os.getenv("PARCELS_DATA_DIR", str(default_test_dir)))
        else:
            base_dir = Path(os.getenv("PARCELS_DATA_DIR", "./data")).expanduser().resolve()

        data_dir = base_dir
        export_dir = data_dir / "exports"

        for directory in [data_dir, export_dir]:
            directory.mkdir(parents=True, exist_ok=True)

        store_file = os.getenv("PARCELS_STORE_FILE")
        storage = StorageConfig(
            store_file=Path(store_file).expanduser() if store_file else data_dir / "parcel_store.json",
        )

        matching = MatchingConfig(
            fuzzy_prefix_length=int(os.getenv("PARCELS_FUZZY_PREFIX", "20")),
        )

        extraction = ExtractionConfig(
            active_sources=[s.lower() for s in _parse_list(os.getenv("PARCELS_SOURCES", ",".join(KNOWN_SOURCES)))],
        )

        return cls(
            environment=env,
            data_dir=data_dir,
            export_dir=export_dir,
            storage=storage,
            matching=matching,
            extraction=extraction,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list:
        """Validate configuration and return list of errors."""
        errors = []

        for name, path in [
            ("data_dir", self.data_dir),
            ("export_dir", self.export_dir),
        ]:
            if not path.exists():
                errors.append(f"{name} does not exist: {path}")

        if self.storage.store_file.exists() and self.storage.store_file.is_dir():
            errors.append(f"store_file is a directory: {self.storage.store_file}")

        if self.matching.fuzzy_prefix_length <= 0:
            errors.append("PARCELS_FUZZY_PREFIX must be positive")

        unknown = [s for s in self.extraction.active_sources if s not in KNOWN_SOURCES]
        if unknown:
            errors.append(f"Unknown sources in PARCELS_SOURCES: {', '.join(unknown)}")

        return errors

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

        if self.debug:
            logging.getLogger("parcel_tracker").setLevel(logging.DEBUG)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a JSON-friendly dictionary."""
        result: dict[str, Any] = {}

        for field_name, field_value in self.__dict__.items():
            if hasattr(field_value, "__dict__") and not isinstance(field_value, (Path, Enum)):
                nested_dict: dict[str, Any] = {}
                for nested_name, nested_value in field_value.__dict__.items():
                    if isinstance(nested_value, Path):
                        nested_dict[nested_name] = str(nested_value)
                    else:
                        nested_dict[nested_name] = nested_value
                result[field_name] = nested_dict
            elif isinstance(field_value, Path):
                result[field_name] = str(field_value)
            elif isinstance(field_value, Enum):
                result[field_name] = field_value.value
            else:
                result[field_name] = field_value

        return result


def _parse_list(value: str, delimiter: str = ",") -> list:
    """Parse comma-separated string into list, handling empty values."""
    if not value:
        return []
    return [item.strip() for item in value.split(delimiter) if item.strip()]


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_environment()

        errors = _config.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        _config.setup_logging()

    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = None
    return get_config()


def get_data_dir() -> Path:
    """Get the data directory path."""
    return get_config().data_dir


def get_store_file() -> Path:
    """Get the record store file path."""
    return get_config().storage.store_file


def is_test() -> bool:
    """Check if running in test environment."""
    return get_config().environment == Environment.TEST
