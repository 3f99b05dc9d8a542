"""In-memory store of feature summaries.

The store is built once at startup around an ArtifactSource and shared,
read-only, by every query call site. Both artifacts are loaded at most once.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from featurescope.core.types import ArtifactParseError, FeatureSummary
from featurescope.data.sources import HAS_DATA_ARTIFACT, INDEX_ARTIFACT, ArtifactSource

logger = logging.getLogger(__name__)

_REMEDIATION = "Run `featurescope build-index` to generate it."


class FeatureIndexStore:
    """Owns the loaded FeatureSummary collection.

    Usage:
        store = FeatureIndexStore(FileSystemSource())
        features = store.load_index()
        summary = store.lookup_by_index(42)
    """

    def __init__(self, source: ArtifactSource) -> None:
        self._source = source
        self._lock = threading.Lock()
        self._features: list[FeatureSummary] | None = None
        self._by_index: dict[int, FeatureSummary] = {}
        self._has_data_ids: list[int] | None = None
        self._has_data_set: frozenset[int] = frozenset()

    @property
    def source(self) -> ArtifactSource:
        return self._source

    @property
    def is_loaded(self) -> bool:
        return self._features is not None

    def load_index(self) -> list[FeatureSummary]:
        """Return all feature summaries, loading them on first access.

        A missing index artifact yields an empty list and a warning.
        """
        features = self._features
        if features is None:
            with self._lock:
                features = self._features
                if features is None:
                    features = self._load_features()
        return features

    def lookup_by_index(self, feature_index: int) -> FeatureSummary | None:
        """Look up a feature summary by its feature index."""
        self.load_index()
        return self._by_index.get(feature_index)

    def has_data_ids(self) -> list[int]:
        """Feature ids known to have detail records."""
        ids = self._has_data_ids
        if ids is None:
            with self._lock:
                ids = self._has_data_ids
                if ids is None:
                    ids = self._load_has_data_ids()
        return ids

    def has_data(self, feature_index: int) -> bool:
        """Fast existence check against the has-data artifact."""
        self.has_data_ids()
        return feature_index in self._has_data_set

    def reload(self) -> None:
        """Drop cached state so the next access re-reads the artifacts."""
        with self._lock:
            self._features = None
            self._by_index = {}
            self._has_data_ids = None
            self._has_data_set = frozenset()

    def __len__(self) -> int:
        return len(self.load_index())

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load_features(self) -> list[FeatureSummary]:
        location = self._source.describe(INDEX_ARTIFACT)
        raw = self._source.read_index()
        if raw is None:
            logger.warning("Feature index not found at %s. %s", location, _REMEDIATION)
            self._by_index = {}
            self._features = []
            return self._features

        features = _parse_summaries(raw, location)
        by_index: dict[int, FeatureSummary] = {}
        for feature in features:
            if feature.feature_index in by_index:
                logger.warning(
                    "Duplicate feature_index %d in %s; keeping the first entry",
                    feature.feature_index,
                    location,
                )
                continue
            by_index[feature.feature_index] = feature

        self._by_index = by_index
        self._features = features
        logger.info("Loaded %d features from %s", len(features), location)
        return features

    def _load_has_data_ids(self) -> list[int]:
        location = self._source.describe(HAS_DATA_ARTIFACT)
        raw = self._source.read_has_data_ids()
        if raw is None:
            logger.warning("Has-data list not found at %s. %s", location, _REMEDIATION)
            ids: list[int] = []
        else:
            if not isinstance(raw, list):
                raise ArtifactParseError("expected a list of feature ids", location=location)
            try:
                ids = [int(v) for v in raw]
            except (TypeError, ValueError) as exc:
                raise ArtifactParseError(str(exc), location=location) from exc

        self._has_data_set = frozenset(ids)
        self._has_data_ids = ids
        return ids


def _parse_summaries(raw: Any, location: str) -> list[FeatureSummary]:
    if not isinstance(raw, list):
        raise ArtifactParseError("expected a list of feature summaries", location=location)
    try:
        return [FeatureSummary.from_dict(entry) for entry in raw]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ArtifactParseError(f"invalid feature summary: {exc!r}", location=location) from exc
