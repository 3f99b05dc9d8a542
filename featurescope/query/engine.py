"""Query engine: search, sort, and paginate feature summaries.

The three operations are pure functions over in-memory sequences and are
meant to be applied in the order search -> sort -> paginate. QueryEngine
composes them over a FeatureIndexStore.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from typing import Any

from featurescope.core.config import FeatureScopeConfig, get_config
from featurescope.core.types import FeatureSummary, Page, SortOption
from featurescope.data.store import FeatureIndexStore

logger = logging.getLogger(__name__)


# Sort option -> (key, reverse). sorted() stays stable with reverse=True.
_SORT_KEYS: dict[SortOption, tuple[Callable[[FeatureSummary], Any], bool]] = {
    SortOption.RANK_CTRL: (lambda f: f.rank_control, False),
    SortOption.RANK_CTRL_DESC: (lambda f: f.rank_control, True),
    SortOption.RANK_NOCTRL: (lambda f: f.rank_nocontrol, False),
    SortOption.RANK_NOCTRL_DESC: (lambda f: f.rank_nocontrol, True),
    SortOption.ID: (lambda f: f.feature_index, False),
    SortOption.ID_DESC: (lambda f: f.feature_index, True),
    SortOption.HAS_DATA: (lambda f: (not f.has_data, f.rank_control), False),
}


def search_features(
    features: Sequence[FeatureSummary], query: str | None
) -> Sequence[FeatureSummary]:
    """Case-insensitive substring match against each interpretation.

    A blank query returns the input unchanged. Matches keep input order.
    """
    if query is None or not query.strip():
        return features
    needle = query.lower()
    return [f for f in features if needle in f.interpretation.lower()]


def filter_has_data(features: Sequence[FeatureSummary]) -> list[FeatureSummary]:
    """Keep features flagged as having a detail record."""
    return [f for f in features if f.has_data]


def sort_features(
    features: Sequence[FeatureSummary], option: SortOption | str
) -> Sequence[FeatureSummary]:
    """Return a stably sorted copy; unrecognized options are the identity."""
    parsed = SortOption.parse(option)
    if parsed is None:
        logger.debug("Unknown sort option %r; leaving order unchanged", option)
        return features
    key, reverse = _SORT_KEYS[parsed]
    return sorted(features, key=key, reverse=reverse)


def paginate(features: Sequence[FeatureSummary], page: int, per_page: int = 100) -> Page:
    """Slice one 1-indexed page out of ``features``.

    Pages outside 1..total_pages are not clamped; they yield an empty slice.
    """
    if per_page < 1:
        raise ValueError(f"per_page must be positive, got {per_page}")

    total = len(features)
    total_pages = math.ceil(total / per_page)
    if page < 1:
        data: list[FeatureSummary] = []
    else:
        start = (page - 1) * per_page
        data = list(features[start : start + per_page])

    return Page(
        data=data,
        total_pages=total_pages,
        current_page=page,
        has_next=page < total_pages,
        has_prev=page > 1,
        total=total,
    )


class QueryEngine:
    """Answer "page N of features matching X, ordered by Y" over a store.

    Usage:
        engine = QueryEngine(store)
        page = engine.query(page=2, sort="rank-noctrl", search="laughter")
    """

    def __init__(
        self, store: FeatureIndexStore, config: FeatureScopeConfig | None = None
    ) -> None:
        self._store = store
        self._config = config or get_config()

    @property
    def store(self) -> FeatureIndexStore:
        return self._store

    def query(
        self,
        page: int = 1,
        sort: SortOption | str | None = None,
        search: str | None = None,
        per_page: int | None = None,
        has_data_only: bool = False,
    ) -> Page:
        """Filter, sort, and paginate the store's features."""
        features: Sequence[FeatureSummary] = self._store.load_index()
        features = search_features(features, search)
        if has_data_only:
            features = filter_has_data(features)
        features = sort_features(features, sort or self._config.default_sort)
        return paginate(features, page, per_page or self._config.per_page)
