"""FastAPI application entry point.

Run with ``uvicorn --factory src.pix.main:create_app``.
"""

from datetime import timedelta

from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .lifecycle import reap_orphaned_temporaries
from .logging import configure_logging
from .upload.raster import ToolRunner


def create_app(config: AppConfig | None = None, *, tool_runner: ToolRunner | None = None) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    cfg = config or load_config()
    configure_logging(debug=cfg.debug)
    app = FastAPI(title="pix", debug=cfg.debug)
    include_routers(app, cfg, tool_runner=tool_runner)
    reap_orphaned_temporaries(
        app.state.temporary_registry,
        max_age=timedelta(seconds=cfg.temp_ttl_seconds),
    )
    return app
