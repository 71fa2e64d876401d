"""FastAPI application for the autoload analyzer dashboard."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from autoload_analyzer import __version__
from autoload_analyzer.config import AnalyzerConfig
from autoload_analyzer.errors import AutoloadError

logger = logging.getLogger(__name__)


def _build_allowed_origins(host: str, port: int) -> list[str]:
    """Build the CORS allowed origins list.

    >>> _build_allowed_origins("127.0.0.1", 8321)
    ['http://127.0.0.1:8321', 'http://localhost:8321']
    >>> _build_allowed_origins("0.0.0.0", 8321)
    ['*']
    """
    if host == "0.0.0.0":
        return ["*"]
    return [f"http://127.0.0.1:{port}", f"http://localhost:{port}"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    from autoload_analyzer.engine import AutoloadManager
    from autoload_analyzer.gate import TokenGate
    from autoload_analyzer.store import SettingsStore

    config = AnalyzerConfig.from_env()
    app.state.config = config

    # Startup: open the settings store unless one was injected
    if getattr(app.state, "store", None) is None:
        try:
            app.state.store = SettingsStore(config.db_path, table_prefix=config.table_prefix)
            logger.info("Settings store opened: %s (%s)", config.db_path, config.options_table)
        except Exception as e:
            logger.warning("Settings store init failed: %s", e)
            app.state.store = None

    if app.state.store is not None and getattr(app.state, "manager", None) is None:
        app.state.manager = AutoloadManager(app.state.store)

    if getattr(app.state, "gate", None) is None:
        app.state.gate = TokenGate(config.admin_token)
        if config.admin_token is None:
            logger.info("No AOA_ADMIN_TOKEN set, mutations allowed from loopback only")

    if config.host == "0.0.0.0":
        logger.warning(
            "Dashboard exposed to network, set AOA_ADMIN_TOKEN to protect mutations"
        )

    yield

    # Shutdown: close the store
    store = getattr(app.state, "store", None)
    if store is not None:
        try:
            store.close()
        except Exception as e:
            logger.debug("Store close failed: %s", e)


def _startup_cors_origins() -> list[str]:
    """CORS origins from the same env vars the lifespan reads.

    A bad value falls back to the defaults so the module still imports;
    the lifespan raises on it at startup.
    """
    try:
        config = AnalyzerConfig.from_env()
    except ValueError as e:
        logger.warning("Invalid configuration, using default CORS origins: %s", e)
        config = AnalyzerConfig()
    return _build_allowed_origins(config.host, config.port)


app = FastAPI(
    title="autoload analyzer",
    description="Inspect and manage autoloaded options in a settings table.",
    version=__version__,
    lifespan=lifespan,
)

_cors_origins = _startup_cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials="*" not in _cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Exception handlers ---


@app.exception_handler(AutoloadError)
async def autoload_error_handler(request: Request, exc: AutoloadError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": {"message": str(exc), "code": "VALIDATION_ERROR"}},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {"message": "An internal error occurred", "code": "INTERNAL_ERROR"}
        },
    )


# --- Include route modules ---

from autoload_analyzer.api.routes import options, system  # noqa: E402

app.include_router(system.router, prefix="/api", tags=["system"])
app.include_router(options.router, prefix="/api", tags=["options"])
