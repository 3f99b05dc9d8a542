"""FastAPI-based serving layer for featurescope.

Exposes the feature index and detail records over HTTP for a browsing UI.
"""

from __future__ import annotations

import logging
from typing import Any

from featurescope.core.config import FeatureScopeConfig, get_config
from featurescope.core.types import ArtifactParseError, FeatureDetail, FeatureSummary
from featurescope.data.detail import FeatureDetailLoader
from featurescope.data.store import FeatureIndexStore
from featurescope.display import format_ngram, format_token, parse_context
from featurescope.query.engine import QueryEngine

logger = logging.getLogger(__name__)

try:
    from fastapi import FastAPI, HTTPException, Query
    from pydantic import BaseModel

    HAS_FASTAPI = True
except ImportError:
    HAS_FASTAPI = False


def start_server(
    store: FeatureIndexStore,
    detail_loader: FeatureDetailLoader,
    host: str = "127.0.0.1",
    port: int = 8421,
) -> None:
    """Start the featurescope API.

    Args:
        store: A FeatureIndexStore shared by every request.
        detail_loader: Loader for per-feature detail records.
        host: Host to bind to.
        port: Port to listen on.
    """
    if not HAS_FASTAPI:
        raise ImportError(
            "FastAPI and uvicorn are required for serving. "
            "Install with: pip install featurescope[serve]"
        )

    import uvicorn

    app = create_app(store, detail_loader)
    logger.info("Starting featurescope server on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)


def create_app(
    store: FeatureIndexStore,
    detail_loader: FeatureDetailLoader,
    config: FeatureScopeConfig | None = None,
) -> Any:
    """Create the FastAPI application around an already-built store."""
    if not HAS_FASTAPI:
        raise ImportError(
            "FastAPI is required for serving. Install with: pip install featurescope[serve]"
        )

    config = config or get_config()
    engine = QueryEngine(store, config=config)

    # Load before serving so concurrent requests only ever read the store
    store.load_index()

    app = FastAPI(
        title="featurescope API",
        description="Browse and search sparse-autoencoder feature interpretations",
        version="0.1.0",
    )

    class FeatureSummaryModel(BaseModel):
        feature_index: int
        rank_control: float
        rank_nocontrol: float
        interpretation: str
        verify_status: str | None = None
        paralinguistic: str | None = None
        has_data: bool

    class FeaturePageResponse(BaseModel):
        data: list[FeatureSummaryModel]
        total: int
        total_pages: int
        current_page: int
        has_next: bool
        has_prev: bool

    class HealthResponse(BaseModel):
        status: str
        features: int
        with_data: int

    def _summary_model(summary: FeatureSummary) -> FeatureSummaryModel:
        return FeatureSummaryModel(
            feature_index=summary.feature_index,
            rank_control=summary.rank_control,
            rank_nocontrol=summary.rank_nocontrol,
            interpretation=summary.interpretation,
            verify_status=summary.verify_status,
            paralinguistic=summary.paralinguistic,
            has_data=summary.has_data,
        )

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(
            status="ok" if len(store) else "empty",
            features=len(store),
            with_data=len(store.has_data_ids()),
        )

    @app.get("/features", response_model=FeaturePageResponse)
    def list_features(
        page: int = 1,
        per_page: int = Query(default=config.per_page, ge=1, le=1000),
        sort: str = config.default_sort,
        q: str | None = None,
        has_data: bool = False,
    ) -> FeaturePageResponse:
        result = engine.query(
            page=page, sort=sort, search=q, per_page=per_page, has_data_only=has_data
        )
        return FeaturePageResponse(
            data=[_summary_model(f) for f in result.data],
            total=result.total,
            total_pages=result.total_pages,
            current_page=result.current_page,
            has_next=result.has_next,
            has_prev=result.has_prev,
        )

    @app.get("/features/{feature_index}", response_model=FeatureSummaryModel)
    def get_feature(feature_index: int) -> FeatureSummaryModel:
        summary = store.lookup_by_index(feature_index)
        if summary is None:
            raise HTTPException(status_code=404, detail=f"Feature {feature_index} not found")
        return _summary_model(summary)

    @app.get("/features/{feature_index}/detail")
    def get_feature_detail(feature_index: int) -> dict[str, Any]:
        try:
            detail = detail_loader.load_detail(feature_index)
        except ArtifactParseError as exc:
            logger.error("Failed to load detail for feature %d: %s", feature_index, exc)
            raise HTTPException(status_code=500, detail=str(exc))
        if detail is None:
            raise HTTPException(
                status_code=404, detail=f"No detail data for feature {feature_index}"
            )
        return render_detail(detail)

    return app


def render_detail(detail: FeatureDetail) -> dict[str, Any]:
    """Detail record as JSON, with display forms for tokens and contexts."""
    data = detail.to_dict()

    for entry in data["top_tokens"]["top_tokens"]:
        formatted = format_token(entry["token"])
        entry["display"] = formatted.display
        entry["is_special"] = formatted.is_special

    for entry in data["top_activations"]["activations"]:
        span = parse_context(entry["context"])
        entry["before"] = span.before
        entry["highlight"] = span.token
        entry["after"] = span.after
        entry["active_token_display"] = format_token(entry["active_token"]).display

    for entries in data["ngram_analysis"]["ngrams"].values():
        for entry in entries:
            entry["display"] = format_ngram(entry["ngram_str"])

    return data
