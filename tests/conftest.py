"""Shared fixtures: small feature collections, in-memory and on-disk sources."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from featurescope.core.config import FeatureScopeConfig, set_config
from featurescope.core.types import FeatureSummary
from featurescope.data.sources import FileSystemSource, InMemorySource
from featurescope.data.store import FeatureIndexStore


def make_summary(
    feature_index: int,
    rank_control: float = 0.0,
    rank_nocontrol: float = 0.0,
    interpretation: str = "",
    has_data: bool = False,
) -> FeatureSummary:
    return FeatureSummary(
        feature_index=feature_index,
        rank_control=rank_control,
        rank_nocontrol=rank_nocontrol,
        interpretation=interpretation,
        has_data=has_data,
    )


def make_detail(feature_index: int) -> dict[str, Any]:
    return {
        "feature_idx": feature_index,
        "stats": {
            "activation_rate": 0.0123,
            "mean_when_active": 2.5,
            "max_activation": 9.75,
            "std_when_active": 1.25,
        },
        "top_tokens": {
            "top_tokens": [
                {"token": "Ġlaugh", "count": 40, "mean_activation": 3.5},
                {"token": "Ċ", "count": 12, "mean_activation": 1.5},
            ]
        },
        "top_activations": {
            "activations": [
                {"context": "and then she **laughed** out loud", "active_token": "Ġlaughed",
                 "activation": 9.75},
            ]
        },
        "ngram_analysis": {
            "ngrams": {
                "2grams": [{"ngram_str": "Ġha Ġha", "count": 7, "percent": 17.5}],
                "3grams": [{"ngram_str": "Ġha Ġha Ġha", "count": 3, "percent": 7.5}],
                "4grams": [],
            }
        },
        "coactivation": {
            "coactivated_features": [{"feature_idx": 7, "count": 11, "percent": 27.5}]
        },
        "position_distribution": {
            "bins": [
                {"range": "0-10", "label": "start", "count": 20, "percent": 50.0},
                {"range": "10-20", "label": "middle", "count": 20, "percent": 50.0},
            ]
        },
    }


INDEX_ENTRIES: list[dict[str, Any]] = [
    {"feature_index": 3, "rank_control": 1, "rank_nocontrol": 5,
     "interpretation": "Laughter and giggling", "hasData": True},
    {"feature_index": 1, "rank_control": 2, "rank_nocontrol": 2,
     "interpretation": "Filled pauses (um, uh)", "verify_status": "verified", "hasData": False},
    {"feature_index": 7, "rank_control": 2, "rank_nocontrol": 1,
     "interpretation": "Breathing sounds", "paralinguistic": "yes", "hasData": True},
    {"feature_index": 5, "rank_control": 4, "rank_nocontrol": 3,
     "interpretation": "Sarcastic LAUGHTER", "hasData": False},
]


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "FEATURESCOPE_DATA_DIR",
        "FEATURESCOPE_INDEX_PATH",
        "FEATURESCOPE_HAS_DATA_PATH",
        "FEATURESCOPE_FEATURES_DIR",
        "FEATURESCOPE_CSV_PATH",
        "FEATURESCOPE_PER_PAGE",
        "FEATURESCOPE_DEFAULT_SORT",
        "FEATURESCOPE_SERVER_HOST",
        "FEATURESCOPE_SERVER_PORT",
        "FEATURESCOPE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def features() -> list[FeatureSummary]:
    return [FeatureSummary.from_dict(entry) for entry in INDEX_ENTRIES]


@pytest.fixture
def memory_source() -> InMemorySource:
    return InMemorySource(
        index=[dict(entry) for entry in INDEX_ENTRIES],
        has_data_ids=[3, 7],
        details={3: make_detail(3), 7: make_detail(7)},
    )


@pytest.fixture
def store(memory_source: InMemorySource) -> FeatureIndexStore:
    return FeatureIndexStore(memory_source)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """On-disk artifact layout matching FeatureScopeConfig defaults."""
    root = tmp_path / "data"
    features_dir = root / "features"
    features_dir.mkdir(parents=True)
    (root / "features-index.json").write_text(json.dumps(INDEX_ENTRIES), encoding="utf-8")
    (root / "features-with-data.json").write_text(json.dumps([3, 7]), encoding="utf-8")
    for feature_index in (3, 7):
        (features_dir / f"feature_{feature_index}.json").write_text(
            json.dumps(make_detail(feature_index)), encoding="utf-8"
        )
    return root


@pytest.fixture
def config(data_dir: Path) -> FeatureScopeConfig:
    config = FeatureScopeConfig(data_dir=data_dir)
    set_config(config)
    return config


@pytest.fixture
def fs_source(config: FeatureScopeConfig) -> FileSystemSource:
    return FileSystemSource(config=config)
