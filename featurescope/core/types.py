"""Core data types for featurescope.

Shared dataclasses used by the data loaders, the query engine, the display
helpers, and the API layer. Every artifact-backed type maps to and from its
on-disk JSON form via its to_dict/from_dict methods.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class FeatureScopeError(Exception):
    """Base class for featurescope errors."""


class ArtifactParseError(FeatureScopeError):
    """Raised when an artifact exists but cannot be parsed into its schema."""

    def __init__(self, message: str, location: str = "") -> None:
        self.location = location
        if location:
            message = f"{location}: {message}"
        super().__init__(message)


class IndexBuildError(FeatureScopeError):
    """Raised when the feature index cannot be built from its CSV source."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SortOption(str, Enum):
    """Orderings supported by the query engine."""

    RANK_CTRL = "rank-ctrl"
    RANK_CTRL_DESC = "rank-ctrl-desc"
    RANK_NOCTRL = "rank-noctrl"
    RANK_NOCTRL_DESC = "rank-noctrl-desc"
    ID = "id"
    ID_DESC = "id-desc"
    HAS_DATA = "has-data"

    @classmethod
    def parse(cls, value: SortOption | str) -> SortOption | None:
        """Return the matching option, or None for unrecognized values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Index types
# ---------------------------------------------------------------------------

_SUMMARY_KEYS = (
    "feature_index",
    "rank_control",
    "rank_nocontrol",
    "interpretation",
    "verify_status",
    "paralinguistic",
    "hasData",
)


@dataclass
class FeatureSummary:
    """Lightweight index entry for a single SAE feature."""

    feature_index: int
    rank_control: float
    rank_nocontrol: float
    interpretation: str
    verify_status: str | None = None
    paralinguistic: str | None = None
    has_data: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data.update(
            {
                "feature_index": self.feature_index,
                "rank_control": self.rank_control,
                "rank_nocontrol": self.rank_nocontrol,
                "interpretation": self.interpretation,
                "hasData": self.has_data,
            }
        )
        if self.verify_status is not None:
            data["verify_status"] = self.verify_status
        if self.paralinguistic is not None:
            data["paralinguistic"] = self.paralinguistic
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeatureSummary:
        return cls(
            feature_index=int(data["feature_index"]),
            rank_control=float(data.get("rank_control", 0)),
            rank_nocontrol=float(data.get("rank_nocontrol", 0)),
            interpretation=_text(data.get("interpretation")),
            verify_status=data.get("verify_status"),
            paralinguistic=data.get("paralinguistic"),
            has_data=bool(data.get("hasData", False)),
            extra={k: v for k, v in data.items() if k not in _SUMMARY_KEYS},
        )


def _text(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


# ---------------------------------------------------------------------------
# Detail types
# ---------------------------------------------------------------------------


@dataclass
class ActivationStats:
    """Summary statistics of a feature's activations."""

    activation_rate: float = 0.0
    mean_when_active: float = 0.0
    max_activation: float = 0.0
    std_when_active: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "activation_rate": self.activation_rate,
            "mean_when_active": self.mean_when_active,
            "max_activation": self.max_activation,
            "std_when_active": self.std_when_active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActivationStats:
        return cls(
            activation_rate=float(data.get("activation_rate", 0.0)),
            mean_when_active=float(data.get("mean_when_active", 0.0)),
            max_activation=float(data.get("max_activation", 0.0)),
            std_when_active=float(data.get("std_when_active", 0.0)),
        )


@dataclass
class TopToken:
    """A token the feature fires on, with its frequency and mean activation."""

    token: str
    count: int
    mean_activation: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "count": self.count,
            "mean_activation": self.mean_activation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TopToken:
        return cls(
            token=str(data["token"]),
            count=int(data["count"]),
            mean_activation=float(data["mean_activation"]),
        )


@dataclass
class TopActivation:
    """One of the strongest activations, with its highlighted context."""

    context: str
    active_token: str
    activation: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "context": self.context,
            "active_token": self.active_token,
            "activation": self.activation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TopActivation:
        return cls(
            context=str(data["context"]),
            active_token=str(data["active_token"]),
            activation=float(data["activation"]),
        )


@dataclass
class NgramEntry:
    """Frequency of one n-gram around the feature's activations."""

    ngram_str: str
    count: int
    percent: float

    def to_dict(self) -> dict[str, Any]:
        return {"ngram_str": self.ngram_str, "count": self.count, "percent": self.percent}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NgramEntry:
        return cls(
            ngram_str=str(data["ngram_str"]),
            count=int(data["count"]),
            percent=float(data["percent"]),
        )


@dataclass
class NgramAnalysis:
    """2-, 3- and 4-gram frequency tables."""

    bigrams: list[NgramEntry] = field(default_factory=list)
    trigrams: list[NgramEntry] = field(default_factory=list)
    fourgrams: list[NgramEntry] = field(default_factory=list)

    def by_size(self) -> dict[int, list[NgramEntry]]:
        return {2: self.bigrams, 3: self.trigrams, 4: self.fourgrams}

    def to_dict(self) -> dict[str, Any]:
        return {
            "ngrams": {
                "2grams": [n.to_dict() for n in self.bigrams],
                "3grams": [n.to_dict() for n in self.trigrams],
                "4grams": [n.to_dict() for n in self.fourgrams],
            }
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NgramAnalysis:
        ngrams = data.get("ngrams", {})
        return cls(
            bigrams=[NgramEntry.from_dict(n) for n in ngrams.get("2grams", [])],
            trigrams=[NgramEntry.from_dict(n) for n in ngrams.get("3grams", [])],
            fourgrams=[NgramEntry.from_dict(n) for n in ngrams.get("4grams", [])],
        )


@dataclass
class CoactivatedFeature:
    """Another feature that fires alongside this one."""

    feature_index: int
    count: int
    percent: float

    def to_dict(self) -> dict[str, Any]:
        return {"feature_idx": self.feature_index, "count": self.count, "percent": self.percent}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CoactivatedFeature:
        return cls(
            feature_index=int(data["feature_idx"]),
            count=int(data["count"]),
            percent=float(data["percent"]),
        )


@dataclass
class PositionBin:
    """One histogram bin of activation positions within a sequence."""

    range: str
    label: str
    count: int
    percent: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "range": self.range,
            "label": self.label,
            "count": self.count,
            "percent": self.percent,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PositionBin:
        return cls(
            range=str(data["range"]),
            label=str(data["label"]),
            count=int(data["count"]),
            percent=float(data["percent"]),
        )


@dataclass
class FeatureDetail:
    """Full detail record for a single feature.

    Mirrors the per-feature JSON artifact. Instances are independent
    snapshots: nothing in featurescope mutates or caches them.
    """

    feature_index: int
    stats: ActivationStats = field(default_factory=ActivationStats)
    top_tokens: list[TopToken] = field(default_factory=list)
    top_activations: list[TopActivation] = field(default_factory=list)
    ngram_analysis: NgramAnalysis = field(default_factory=NgramAnalysis)
    coactivation: list[CoactivatedFeature] = field(default_factory=list)
    position_distribution: list[PositionBin] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "feature_idx": self.feature_index,
            "stats": self.stats.to_dict(),
            "top_tokens": {"top_tokens": [t.to_dict() for t in self.top_tokens]},
            "top_activations": {"activations": [a.to_dict() for a in self.top_activations]},
            "ngram_analysis": self.ngram_analysis.to_dict(),
            "coactivation": {"coactivated_features": [c.to_dict() for c in self.coactivation]},
            "position_distribution": {"bins": [b.to_dict() for b in self.position_distribution]},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeatureDetail:
        return cls(
            feature_index=int(data["feature_idx"]),
            stats=ActivationStats.from_dict(data.get("stats", {})),
            top_tokens=[
                TopToken.from_dict(t) for t in data.get("top_tokens", {}).get("top_tokens", [])
            ],
            top_activations=[
                TopActivation.from_dict(a)
                for a in data.get("top_activations", {}).get("activations", [])
            ],
            ngram_analysis=NgramAnalysis.from_dict(data.get("ngram_analysis", {})),
            coactivation=[
                CoactivatedFeature.from_dict(c)
                for c in data.get("coactivation", {}).get("coactivated_features", [])
            ],
            position_distribution=[
                PositionBin.from_dict(b)
                for b in data.get("position_distribution", {}).get("bins", [])
            ],
        )


# ---------------------------------------------------------------------------
# Query / display results
# ---------------------------------------------------------------------------


@dataclass
class Page:
    """One page of a (filtered, sorted) feature listing."""

    data: list[FeatureSummary]
    total_pages: int
    current_page: int
    has_next: bool
    has_prev: bool
    total: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [f.to_dict() for f in self.data],
            "totalPages": self.total_pages,
            "currentPage": self.current_page,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
            "total": self.total,
        }


@dataclass(frozen=True)
class FormattedToken:
    """Display form of a raw sub-word token."""

    display: str
    is_special: bool


@dataclass(frozen=True)
class ContextSpan:
    """A context string split around its highlighted token."""

    before: str
    token: str
    after: str
