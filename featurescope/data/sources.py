"""Artifact sources backing the feature index store and detail loader.

A source hands back parsed JSON values for the three artifact kinds and
knows nothing about their schema. ``None`` means "artifact absent"; malformed
JSON raises ArtifactParseError.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

from featurescope.core.config import FeatureScopeConfig, get_config
from featurescope.core.types import ArtifactParseError


INDEX_ARTIFACT = "index"
HAS_DATA_ARTIFACT = "has_data"
DETAIL_ARTIFACT = "detail"


class ArtifactSource(Protocol):
    """Protocol for anything that can supply feature artifacts."""

    def read_index(self) -> Any | None:
        """Parsed feature index (a list of summary dicts), or None if absent."""
        ...

    def read_has_data_ids(self) -> Any | None:
        """Parsed list of feature ids with detail records, or None if absent."""
        ...

    def read_detail(self, feature_index: int) -> Any | None:
        """Parsed detail record for a feature, or None if absent."""
        ...

    def describe(self, artifact: str, feature_index: int | None = None) -> str:
        """Human-readable location of an artifact, for log messages."""
        ...


class FileSystemSource:
    """Reads artifacts from JSON files on disk.

    Layout defaults come from FeatureScopeConfig:
        <data_dir>/features-index.json
        <data_dir>/features-with-data.json
        <data_dir>/features/feature_<id>.json
    """

    def __init__(
        self,
        data_dir: str | Path | None = None,
        index_path: str | Path | None = None,
        has_data_path: str | Path | None = None,
        features_dir: str | Path | None = None,
        config: FeatureScopeConfig | None = None,
    ) -> None:
        config = config or get_config()
        if data_dir is not None:
            # Paths not given explicitly follow the overridden data_dir
            config = FeatureScopeConfig(
                data_dir=Path(data_dir), detail_filename=config.detail_filename
            )
        self._config = config
        self._index_path = Path(index_path) if index_path else config.index_path
        self._has_data_path = Path(has_data_path) if has_data_path else config.has_data_path
        self._features_dir = Path(features_dir) if features_dir else config.features_dir

    @property
    def index_path(self) -> Path:
        return self._index_path

    @property
    def has_data_path(self) -> Path:
        return self._has_data_path

    def detail_path(self, feature_index: int) -> Path:
        return self._features_dir / self._config.detail_filename.format(
            feature_index=feature_index
        )

    def read_index(self) -> Any | None:
        return self._read_json(self._index_path)

    def read_has_data_ids(self) -> Any | None:
        return self._read_json(self._has_data_path)

    def read_detail(self, feature_index: int) -> Any | None:
        return self._read_json(self.detail_path(feature_index))

    def describe(self, artifact: str, feature_index: int | None = None) -> str:
        if artifact == INDEX_ARTIFACT:
            return str(self._index_path)
        if artifact == HAS_DATA_ARTIFACT:
            return str(self._has_data_path)
        return str(self.detail_path(feature_index if feature_index is not None else -1))

    @staticmethod
    def _read_json(path: Path) -> Any | None:
        if not path.is_file():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ArtifactParseError(str(exc), location=str(path)) from exc


class InMemorySource:
    """Serves artifacts from in-memory values (fixtures, tests, embedding).

    ``index`` and ``has_data_ids`` default to None, meaning the artifact is
    absent. Detail values may be dicts or raw JSON strings; strings are
    decoded on every read.
    """

    def __init__(
        self,
        index: list[dict[str, Any]] | None = None,
        has_data_ids: list[int] | None = None,
        details: dict[int, Any] | None = None,
    ) -> None:
        self._index = index
        self._has_data_ids = has_data_ids
        self._details = dict(details or {})
        self.index_reads = 0

    def read_index(self) -> Any | None:
        self.index_reads += 1
        return self._index

    def read_has_data_ids(self) -> Any | None:
        return self._has_data_ids

    def read_detail(self, feature_index: int) -> Any | None:
        value = self._details.get(feature_index)
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as exc:
                raise ArtifactParseError(
                    str(exc), location=self.describe(DETAIL_ARTIFACT, feature_index)
                ) from exc
        return value

    def describe(self, artifact: str, feature_index: int | None = None) -> str:
        if feature_index is not None:
            return f"memory:{artifact}/{feature_index}"
        return f"memory:{artifact}"
