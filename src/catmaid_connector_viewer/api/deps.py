"""
catmaid_connector_viewer.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings and the viewer session.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from fastapi import Request

from catmaid_connector_viewer.settings import Settings, get_settings
from catmaid_connector_viewer.viewer.session import ViewerSession


def settings_dep() -> Settings:
    return get_settings()


def viewer_session(request: Request) -> ViewerSession:
    # Created in the app lifespan (see `catmaid_connector_viewer.api.app.create_app`).
    return request.app.state.viewer  # type: ignore[attr-defined]
