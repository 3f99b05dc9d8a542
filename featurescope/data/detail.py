"""On-demand loader for per-feature detail records."""

from __future__ import annotations

import logging

from featurescope.core.types import ArtifactParseError, FeatureDetail
from featurescope.data.sources import DETAIL_ARTIFACT, ArtifactSource

logger = logging.getLogger(__name__)


class FeatureDetailLoader:
    """Load one feature's full detail record per call.

    Nothing is cached: each call re-reads the backing artifact and returns an
    independent FeatureDetail.
    """

    def __init__(self, source: ArtifactSource) -> None:
        self._source = source

    def load_detail(self, feature_index: int) -> FeatureDetail | None:
        """Return the detail record, or None when the feature has no data.

        Raises:
            ArtifactParseError: the artifact exists but is malformed.
        """
        raw = self._source.read_detail(feature_index)
        if raw is None:
            logger.debug("No detail record for feature %d", feature_index)
            return None

        location = self._source.describe(DETAIL_ARTIFACT, feature_index)
        if not isinstance(raw, dict):
            raise ArtifactParseError("expected a JSON object", location=location)
        try:
            return FeatureDetail.from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ArtifactParseError(f"invalid detail record: {exc!r}", location=location) from exc
