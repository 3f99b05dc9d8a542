"""Feature index builder: turns the feature CSV into query-ready artifacts.

Offline step that:
1. Reads the feature CSV (feature_index, rank_control, rank_nocontrol, ...)
2. Flags each feature whose detail JSON exists
3. Sorts by rank_control
4. Writes features-index.json and features-with-data.json
"""

from __future__ import annotations

import csv
import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from featurescope.core.config import FeatureScopeConfig, get_config
from featurescope.core.types import FeatureSummary, IndexBuildError

logger = logging.getLogger(__name__)

INDEX_FILENAME = "features-index.json"
HAS_DATA_FILENAME = "features-with-data.json"


@dataclass
class BuildReport:
    """Summary of an index build."""

    total: int
    with_data: int
    index_path: Path
    has_data_path: Path


class IndexBuilder:
    """Build the feature index artifacts from a CSV export.

    Usage:
        builder = IndexBuilder(csv_path="data/Feature_output.csv")
        report = builder.build()
    """

    def __init__(
        self,
        csv_path: str | Path | None = None,
        features_dir: str | Path | None = None,
        output_dir: str | Path | None = None,
        config: FeatureScopeConfig | None = None,
    ) -> None:
        config = config or get_config()
        self._config = config
        self._csv_path = Path(csv_path) if csv_path else config.csv_path
        self._features_dir = Path(features_dir) if features_dir else config.features_dir
        self._output_dir = Path(output_dir) if output_dir else config.data_dir

    def build(self) -> BuildReport:
        """Read the CSV, write both artifacts, and report counts."""
        features = self.read_features()

        # Lower rank is more salient; sorted() is stable for ties
        features = sorted(features, key=lambda f: f.rank_control)
        with_data = [f.feature_index for f in features if f.has_data]

        self._output_dir.mkdir(parents=True, exist_ok=True)
        index_path = self._output_dir / INDEX_FILENAME
        has_data_path = self._output_dir / HAS_DATA_FILENAME

        index_json = json.dumps([f.to_dict() for f in features], indent=2, allow_nan=False)
        index_path.write_text(index_json, encoding="utf-8")
        has_data_path.write_text(json.dumps(with_data, allow_nan=False), encoding="utf-8")

        logger.info("Processed %d features (%d with detail data)", len(features), len(with_data))
        logger.info("Wrote %s and %s", index_path, has_data_path)
        return BuildReport(
            total=len(features),
            with_data=len(with_data),
            index_path=index_path,
            has_data_path=has_data_path,
        )

    def read_features(self) -> list[FeatureSummary]:
        """Parse CSV rows into FeatureSummary entries (unsorted)."""
        if not self._csv_path.is_file():
            raise IndexBuildError(
                f"Feature CSV not found: {self._csv_path}. Copy the feature export there first."
            )

        with self._csv_path.open(newline="", encoding="utf-8") as handle:
            reader = csv.reader(handle)
            try:
                headers = [h.strip() for h in next(reader)]
            except StopIteration:
                raise IndexBuildError(f"Feature CSV is empty: {self._csv_path}")

            logger.debug("CSV headers: %s", headers)
            features: list[FeatureSummary] = []
            for row in reader:
                if not any(value.strip() for value in row):
                    continue
                if len(row) < len(headers):
                    logger.debug("Skipping short row: %s", row)
                    continue
                record: dict[str, Any] = {
                    header: value.strip() for header, value in zip(headers, row)
                }
                features.append(self._to_summary(record))

        return features

    def _to_summary(self, record: dict[str, Any]) -> FeatureSummary:
        record["feature_index"] = _to_int(record.get("feature_index"))
        record["rank_control"] = _to_float(record.get("rank_control"))
        record["rank_nocontrol"] = _to_float(record.get("rank_nocontrol"))
        record["hasData"] = self._detail_exists(record["feature_index"])
        return FeatureSummary.from_dict(record)

    def _detail_exists(self, feature_index: int) -> bool:
        filename = self._config.detail_filename.format(feature_index=feature_index)
        return (self._features_dir / filename).is_file()


def _to_int(value: Any) -> int:
    """Integer prefix of a CSV value, 0 when it has none."""
    text = str(value or "").strip()
    digits = ""
    for i, ch in enumerate(text):
        if ch.isdigit() or (i == 0 and ch in "+-"):
            digits += ch
        else:
            break
    try:
        return int(digits)
    except ValueError:
        return 0


def _to_float(value: Any) -> float:
    """Finite float value of a CSV value, 0.0 when unparsable."""
    try:
        result = float(str(value or "").strip())
    except ValueError:
        return 0.0
    return result if math.isfinite(result) else 0.0
