"""
Application entry point — wires dependencies and starts the HTTP server.

Composition root: creates concrete adapters, injects them into the CRL
cache, and hands the cache to the FastAPI app served by uvicorn.

This is the ONLY place where concrete adapter classes are instantiated.
Everything else depends on Protocol interfaces.

Responsibilities:
  1. Configure structlog
  2. Load and validate configuration from environment
  3. Create the adapters (credentials, registry, encoder, artifact store)
  4. Validate the CA credentials once (fatal on failure)
  5. Restore the newest fresh CRL from disk
  6. Run uvicorn
"""

from __future__ import annotations

import logging
import sys
from typing import TypeAlias

import structlog
import uvicorn

from crl_server import __version__
from crl_server.adapters.artifact_store import FileArtifactStore
from crl_server.adapters.credentials import PemCredentialLoader
from crl_server.adapters.crl_encoder import X509CrlEncoder
from crl_server.adapters.registry import FileRevocationRegistry
from crl_server.cache import CrlCache
from crl_server.config import AppSettings
from crl_server.railway import ErrorCode


class StartupError(RuntimeError):
    """The service cannot start: there is no valid state to serve."""


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured logging.

    Human-readable console lines on stdout; the level filter is applied
    before any processor runs.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


_Adapters: TypeAlias = tuple[
    PemCredentialLoader,
    FileRevocationRegistry,
    X509CrlEncoder,
    FileArtifactStore,
]


def _create_adapters(settings: AppSettings) -> _Adapters:
    """Instantiate the four concrete adapters from application settings."""
    credentials = PemCredentialLoader(
        cert_file=settings.tls.cert_file,
        key_file=settings.tls.key_file,
    )
    registry = FileRevocationRegistry(path=settings.registry.path)
    encoder = X509CrlEncoder()
    store = FileArtifactStore(directory=settings.cache.directory)
    return credentials, registry, encoder, store


def build_cache(settings: AppSettings) -> CrlCache:
    """
    Create a ready-to-serve CrlCache.

    Creates the artifact directory, checks that the CA credentials load
    (raising StartupError if they do not) and restores the newest fresh
    artifact from disk.
    """
    log = structlog.get_logger()
    credentials, registry, encoder, store = _create_adapters(settings)

    try:
        store.ensure_directory()
    except OSError as e:
        raise StartupError(f"Cannot create cache directory {store.directory}: {e}") from e

    validation = credentials.load()
    if validation.is_failure():
        raise StartupError(validation.error().detail())
    log.info("app.credentials_validated")

    cache = CrlCache(
        credentials=credentials,
        registry=registry,
        encoder=encoder,
        store=store,
    )
    cache.restore()
    return cache


def main() -> None:
    """Wire dependencies and serve the CRL until interrupted."""
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"FATAL: {ErrorCode.CONFIGURATION_ERROR.value}: {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        log_level=settings.log_level,
        cert_file=str(settings.tls.cert_file),
        registry=str(settings.registry.path),
        cache_directory=str(settings.cache.directory),
    )

    try:
        cache = build_cache(settings)
    except StartupError as e:
        log.error("app.startup_failed", error=str(e))
        sys.exit(1)

    # Local import: crl_server.asgi imports from this module.
    from crl_server.asgi import create_app

    log.info(
        "app.listening",
        host=settings.server.host,
        port=settings.server.port,
        hot_reload="credentials and registry are re-read on every regeneration",
    )
    uvicorn.run(
        create_app(cache=cache),
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
