"""featurescope core: shared types, errors, and configuration.

Import the most commonly used types from here for convenience:

    from featurescope.core import FeatureSummary, FeatureDetail, SortOption
"""

from featurescope.core.config import FeatureScopeConfig, get_config, set_config
from featurescope.core.types import (
    ActivationStats,
    ArtifactParseError,
    CoactivatedFeature,
    ContextSpan,
    FeatureDetail,
    FeatureScopeError,
    FeatureSummary,
    FormattedToken,
    IndexBuildError,
    NgramAnalysis,
    NgramEntry,
    Page,
    PositionBin,
    SortOption,
    TopActivation,
    TopToken,
)

__all__ = [
    "ActivationStats",
    "ArtifactParseError",
    "CoactivatedFeature",
    "ContextSpan",
    "FeatureDetail",
    "FeatureScopeConfig",
    "FeatureScopeError",
    "FeatureSummary",
    "FormattedToken",
    "IndexBuildError",
    "NgramAnalysis",
    "NgramEntry",
    "Page",
    "PositionBin",
    "SortOption",
    "TopActivation",
    "TopToken",
    "get_config",
    "set_config",
]
