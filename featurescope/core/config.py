"""Global configuration for featurescope.

Manages artifact locations, query defaults, and server settings.
Settings can be overridden via environment variables or explicit configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


_DEFAULT_DATA_DIR = Path("data")


@dataclass
class FeatureScopeConfig:
    """Top-level configuration for featurescope."""

    # Paths (unset paths derive from data_dir)
    data_dir: Path = field(default_factory=lambda: _DEFAULT_DATA_DIR)
    index_path: Path | None = None
    has_data_path: Path | None = None
    features_dir: Path | None = None
    csv_path: Path | None = None
    detail_filename: str = "feature_{feature_index}.json"

    # Query defaults
    per_page: int = 100
    default_sort: str = "rank-ctrl"

    # Server
    server_host: str = "127.0.0.1"
    server_port: int = 8421

    # Logging
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir)
        if self.index_path is None:
            self.index_path = self.data_dir / "features-index.json"
        if self.has_data_path is None:
            self.has_data_path = self.data_dir / "features-with-data.json"
        if self.features_dir is None:
            self.features_dir = self.data_dir / "features"
        if self.csv_path is None:
            self.csv_path = self.data_dir / "Feature_output.csv"

    @classmethod
    def from_env(cls) -> FeatureScopeConfig:
        """Build config from environment variables, falling back to defaults."""
        kwargs: dict[str, object] = {}

        if val := os.environ.get("FEATURESCOPE_DATA_DIR"):
            kwargs["data_dir"] = Path(val)
        if val := os.environ.get("FEATURESCOPE_INDEX_PATH"):
            kwargs["index_path"] = Path(val)
        if val := os.environ.get("FEATURESCOPE_HAS_DATA_PATH"):
            kwargs["has_data_path"] = Path(val)
        if val := os.environ.get("FEATURESCOPE_FEATURES_DIR"):
            kwargs["features_dir"] = Path(val)
        if val := os.environ.get("FEATURESCOPE_CSV_PATH"):
            kwargs["csv_path"] = Path(val)
        if val := os.environ.get("FEATURESCOPE_PER_PAGE"):
            kwargs["per_page"] = int(val)
        if val := os.environ.get("FEATURESCOPE_DEFAULT_SORT"):
            kwargs["default_sort"] = val
        if val := os.environ.get("FEATURESCOPE_SERVER_HOST"):
            kwargs["server_host"] = val
        if val := os.environ.get("FEATURESCOPE_SERVER_PORT"):
            kwargs["server_port"] = int(val)
        if val := os.environ.get("FEATURESCOPE_LOG_LEVEL"):
            kwargs["log_level"] = val.upper()

        return cls(**kwargs)  # type: ignore[arg-type]


# Module-level singleton
_config: FeatureScopeConfig | None = None


def get_config() -> FeatureScopeConfig:
    """Return the global featurescope config, lazily initialized from env."""
    global _config
    if _config is None:
        _config = FeatureScopeConfig.from_env()
    return _config


def set_config(config: FeatureScopeConfig | None) -> None:
    """Override the global config (useful in tests). None resets it."""
    global _config
    _config = config
