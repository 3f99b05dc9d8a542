"""featurescope query: search, sort, and pagination over feature summaries."""

from featurescope.query.engine import (
    QueryEngine,
    filter_has_data,
    paginate,
    search_features,
    sort_features,
)

__all__ = [
    "QueryEngine",
    "filter_has_data",
    "paginate",
    "search_features",
    "sort_features",
]
