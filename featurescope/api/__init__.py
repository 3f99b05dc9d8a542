"""featurescope api: HTTP access to the feature index and detail records."""

from featurescope.api.serving import create_app, render_detail, start_server

__all__ = ["create_app", "render_detail", "start_server"]
