import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI

from astrawrite.core.database import create_tables
from astrawrite.core.logging import _initialize_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and the database schema before serving requests."""
  from astrawrite.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("astrawrite.core.lifespan")

  try:
    _initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
  except RuntimeError:
    # Keep serving with default logging when the log directory is not writable.
    logger.warning("Logging setup failed; continuing with default handlers.", exc_info=True)

  if settings.pg_dsn:
    logger.info("Ensuring database tables on %s", _redact_dsn(settings.pg_dsn))
    await create_tables()
  else:
    logger.info("No database configured; using in-memory storage.")

  if not settings.demo_user or not settings.demo_pass:
    logger.warning("ASTRAWRITE_DEMO_USER/ASTRAWRITE_DEMO_PASS are not set; every login will be rejected.")

  yield


def _redact_dsn(raw: str | None) -> str:
  """Redact credentials from a DSN while keeping host/db visible."""
  if not raw:
    return "<unset>"

  parsed = urlparse(raw)
  if not parsed.scheme:
    return "<invalid>"

  user = parsed.username or ""
  host = parsed.hostname or ""
  port = f":{parsed.port}" if parsed.port else ""
  netloc = f"{user}@{host}{port}" if user else f"{host}{port}"
  database = parsed.path.lstrip("/")
  path = f"/{database}" if database else ""
  return f"{parsed.scheme}://{netloc}{path}"
