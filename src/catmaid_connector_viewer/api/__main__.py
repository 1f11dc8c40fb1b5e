"""
catmaid_connector_viewer.api.__main__

Entrypoint for running the service via `python -m catmaid_connector_viewer.api`.
"""

from __future__ import annotations

import uvicorn

from catmaid_connector_viewer.api.app import create_app
from catmaid_connector_viewer.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
