"""Tests for artifact sources, the index store, and the detail loader."""

from __future__ import annotations

import json
import logging
import threading

import pytest

from featurescope.core.types import ArtifactParseError, FeatureDetail, FeatureSummary
from featurescope.data import (
    FeatureDetailLoader,
    FeatureIndexStore,
    FileSystemSource,
    InMemorySource,
)

from conftest import INDEX_ENTRIES, make_detail


# ---------------------------------------------------------------------------
# FeatureIndexStore
# ---------------------------------------------------------------------------


class TestFeatureIndexStore:
    def test_load_index(self, store):
        features = store.load_index()
        assert [f.feature_index for f in features] == [3, 1, 7, 5]
        assert all(isinstance(f, FeatureSummary) for f in features)
        assert len(store) == 4

    def test_loads_at_most_once(self, memory_source):
        store = FeatureIndexStore(memory_source)
        first = store.load_index()
        second = store.load_index()
        store.lookup_by_index(3)
        assert first is second
        assert memory_source.index_reads == 1

    def test_concurrent_first_access_reads_once(self, memory_source):
        store = FeatureIndexStore(memory_source)
        results = []
        threads = [
            threading.Thread(target=lambda: results.append(store.load_index())) for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert memory_source.index_reads == 1
        assert all(r is results[0] for r in results)

    def test_missing_index_warns_and_returns_empty(self, caplog):
        store = FeatureIndexStore(InMemorySource())
        with caplog.at_level(logging.WARNING, logger="featurescope.data.store"):
            assert store.load_index() == []
        assert "build-index" in caplog.text
        assert "memory:index" in caplog.text

    def test_lookup_by_index(self, store):
        summary = store.lookup_by_index(1)
        assert summary is not None
        assert summary.interpretation == "Filled pauses (um, uh)"
        assert summary.verify_status == "verified"
        assert summary.paralinguistic is None

    def test_lookup_missing_returns_none(self, store):
        assert store.lookup_by_index(999) is None

    def test_duplicate_ids_keep_first(self, caplog):
        source = InMemorySource(
            index=[
                {"feature_index": 1, "rank_control": 1, "rank_nocontrol": 1,
                 "interpretation": "first", "hasData": False},
                {"feature_index": 1, "rank_control": 2, "rank_nocontrol": 2,
                 "interpretation": "second", "hasData": False},
            ]
        )
        store = FeatureIndexStore(source)
        with caplog.at_level(logging.WARNING, logger="featurescope.data.store"):
            assert len(store.load_index()) == 2
        assert store.lookup_by_index(1).interpretation == "first"
        assert "Duplicate feature_index 1" in caplog.text

    def test_has_data_ids(self, store):
        assert store.has_data_ids() == [3, 7]
        assert store.has_data(3) is True
        assert store.has_data(1) is False

    def test_missing_has_data_artifact(self, caplog):
        store = FeatureIndexStore(InMemorySource(index=[]))
        with caplog.at_level(logging.WARNING, logger="featurescope.data.store"):
            assert store.has_data_ids() == []
        assert store.has_data(3) is False
        assert "Has-data list not found" in caplog.text

    def test_malformed_index_raises_and_is_not_cached(self):
        source = InMemorySource(index={"not": "a list"})  # type: ignore[arg-type]
        store = FeatureIndexStore(source)
        with pytest.raises(ArtifactParseError):
            store.load_index()
        assert store.is_loaded is False
        with pytest.raises(ArtifactParseError):
            store.load_index()
        assert source.index_reads == 2

    def test_index_entry_without_id_is_a_parse_error(self):
        store = FeatureIndexStore(InMemorySource(index=[{"interpretation": "no id"}]))
        with pytest.raises(ArtifactParseError, match="invalid feature summary"):
            store.load_index()

    def test_null_rank_is_a_parse_error(self):
        entry = dict(INDEX_ENTRIES[0], rank_control=None)
        store = FeatureIndexStore(InMemorySource(index=[entry]))
        with pytest.raises(ArtifactParseError, match="invalid feature summary"):
            store.load_index()
        assert store.is_loaded is False

    def test_non_string_interpretation_is_a_parse_error(self):
        entry = dict(INDEX_ENTRIES[0], interpretation=5)
        store = FeatureIndexStore(InMemorySource(index=[entry]))
        with pytest.raises(ArtifactParseError, match="invalid feature summary"):
            store.load_index()

    def test_numeric_ranks_are_coerced_to_float(self):
        entry = dict(INDEX_ENTRIES[0], rank_control="2.5")
        store = FeatureIndexStore(InMemorySource(index=[entry]))
        assert store.load_index()[0].rank_control == 2.5

    def test_malformed_has_data_list(self):
        store = FeatureIndexStore(InMemorySource(index=[], has_data_ids=["x"]))  # type: ignore[list-item]
        with pytest.raises(ArtifactParseError):
            store.has_data_ids()

    def test_reload(self, memory_source):
        store = FeatureIndexStore(memory_source)
        store.load_index()
        store.reload()
        assert store.is_loaded is False
        store.load_index()
        assert memory_source.index_reads == 2

    def test_from_filesystem(self, fs_source):
        store = FeatureIndexStore(fs_source)
        assert [f.feature_index for f in store.load_index()] == [3, 1, 7, 5]
        assert store.has_data_ids() == [3, 7]

    def test_missing_file_on_disk(self, tmp_path, caplog):
        store = FeatureIndexStore(FileSystemSource(data_dir=tmp_path / "nowhere"))
        with caplog.at_level(logging.WARNING, logger="featurescope.data.store"):
            assert store.load_index() == []
        assert "features-index.json" in caplog.text


# ---------------------------------------------------------------------------
# FeatureDetailLoader
# ---------------------------------------------------------------------------


class TestFeatureDetailLoader:
    def test_load_detail(self, memory_source):
        detail = FeatureDetailLoader(memory_source).load_detail(3)
        assert isinstance(detail, FeatureDetail)
        assert detail.feature_index == 3
        assert detail.stats.max_activation == 9.75
        assert [t.token for t in detail.top_tokens] == ["Ġlaugh", "Ċ"]
        assert detail.top_activations[0].active_token == "Ġlaughed"
        assert detail.ngram_analysis.bigrams[0].ngram_str == "Ġha Ġha"
        assert detail.ngram_analysis.fourgrams == []
        assert detail.coactivation[0].feature_index == 7
        assert [b.label for b in detail.position_distribution] == ["start", "middle"]

    def test_missing_detail_returns_none(self, memory_source):
        assert FeatureDetailLoader(memory_source).load_detail(42) is None

    def test_missing_detail_on_disk_returns_none(self, fs_source):
        assert FeatureDetailLoader(fs_source).load_detail(42) is None

    def test_each_load_is_independent(self, memory_source):
        loader = FeatureDetailLoader(memory_source)
        first = loader.load_detail(3)
        second = loader.load_detail(3)
        assert first == second
        assert first is not second
        first.top_tokens.clear()
        assert len(loader.load_detail(3).top_tokens) == 2

    def test_missing_sections_default_to_empty(self):
        source = InMemorySource(details={9: {"feature_idx": 9}})
        detail = FeatureDetailLoader(source).load_detail(9)
        assert detail.top_tokens == []
        assert detail.stats.activation_rate == 0.0
        assert detail.ngram_analysis.by_size() == {2: [], 3: [], 4: []}

    def test_invalid_json_raises_parse_error(self):
        source = InMemorySource(details={9: "{not json"})
        with pytest.raises(ArtifactParseError) as excinfo:
            FeatureDetailLoader(source).load_detail(9)
        assert excinfo.value.location == "memory:detail/9"

    def test_wrong_structure_raises_parse_error(self):
        source = InMemorySource(
            details={9: {"feature_idx": 9, "top_tokens": {"top_tokens": [{"token": "a"}]}}}
        )
        with pytest.raises(ArtifactParseError, match="invalid detail record"):
            FeatureDetailLoader(source).load_detail(9)

    def test_non_object_raises_parse_error(self):
        source = InMemorySource(details={9: [1, 2, 3]})
        with pytest.raises(ArtifactParseError):
            FeatureDetailLoader(source).load_detail(9)

    def test_parse_failure_does_not_affect_other_loads(self, fs_source, config):
        (config.features_dir / "feature_1.json").write_text("{broken", encoding="utf-8")
        loader = FeatureDetailLoader(fs_source)
        with pytest.raises(ArtifactParseError) as excinfo:
            loader.load_detail(1)
        assert "feature_1.json" in str(excinfo.value)
        assert loader.load_detail(3).feature_index == 3
        assert FeatureIndexStore(fs_source).lookup_by_index(1) is not None


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def test_detail_to_dict_matches_artifact():
    raw = make_detail(3)
    assert FeatureDetail.from_dict(raw).to_dict() == raw


def test_summary_keeps_extra_columns():
    entry = dict(INDEX_ENTRIES[0], notes="reviewed twice")
    summary = FeatureSummary.from_dict(entry)
    assert summary.extra == {"notes": "reviewed twice"}
    assert summary.to_dict()["notes"] == "reviewed twice"
    assert summary.to_dict()["hasData"] is True


def test_filesystem_source_paths(tmp_path):
    source = FileSystemSource(data_dir=tmp_path, index_path=tmp_path / "custom.json")
    assert source.index_path == tmp_path / "custom.json"
    assert source.has_data_path == tmp_path / "features-with-data.json"
    assert source.detail_path(12) == tmp_path / "features" / "feature_12.json"


def test_filesystem_source_invalid_json(tmp_path):
    (tmp_path / "features-index.json").write_text("[1, 2", encoding="utf-8")
    with pytest.raises(ArtifactParseError):
        FileSystemSource(data_dir=tmp_path).read_index()


def test_filesystem_source_reads_json(data_dir):
    source = FileSystemSource(data_dir=data_dir)
    assert source.read_index() == json.loads((data_dir / "features-index.json").read_text())
