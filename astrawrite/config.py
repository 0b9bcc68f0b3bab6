"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from astrawrite.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class Settings:
  """Typed settings for the AstraWrite service."""

  environment: str
  allowed_origins: tuple[str, ...]
  debug: bool
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  demo_user: str | None
  demo_pass: str | None
  session_secret: str
  pg_dsn: str | None
  article_throttle_seconds: float
  bulk_throttle_seconds: float
  cluster_throttle_seconds: float
  expected_length_small: int
  expected_length_medium: int
  expected_length_large: int
  gemini_text_model: str
  gemini_stream_model: str
  gemini_image_model: str
  openrouter_model: str
  openrouter_base_url: str
  openrouter_http_referer: str | None
  openrouter_title: str | None
  wordpress_timeout_seconds: float


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  # Mirror the local UI dev server when nothing is configured.
  if not raw:
    return ("http://localhost:3000",)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("ASTRAWRITE_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("ASTRAWRITE_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _parse_positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _parse_interval_ms(name: str, default: str) -> float:
  """Read a millisecond interval and return it in seconds."""

  value = int(os.getenv(name, default))
  if value < 0:
    raise ValueError(f"{name} must be zero or a positive integer.")
  return value / 1000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("ASTRAWRITE_ENV", "development").lower()

  # Toggle verbose error output and diagnostics in non-production environments.
  debug = _parse_bool(os.getenv("ASTRAWRITE_DEBUG"))

  log_max_bytes = _parse_positive_int("ASTRAWRITE_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("ASTRAWRITE_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("ASTRAWRITE_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Production deployments must not fall back to the development session secret.
  session_secret = _optional_str(os.getenv("ASTRAWRITE_SESSION_SECRET"))
  if session_secret is None:
    if environment in {"production", "prod"}:
      raise ValueError("ASTRAWRITE_SESSION_SECRET must be set in production.")
    session_secret = "astrawrite-dev-session-secret"

  wordpress_timeout_seconds = float(os.getenv("ASTRAWRITE_WORDPRESS_TIMEOUT_SECONDS", "60"))
  if wordpress_timeout_seconds <= 0:
    raise ValueError("ASTRAWRITE_WORDPRESS_TIMEOUT_SECONDS must be positive.")

  return Settings(
    environment=environment,
    allowed_origins=_parse_origins(os.getenv("ASTRAWRITE_ALLOWED_ORIGINS")),
    debug=debug,
    log_dir=(os.getenv("ASTRAWRITE_LOG_DIR") or "./logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("ASTRAWRITE_LOG_HTTP_4XX")),
    demo_user=_optional_str(os.getenv("ASTRAWRITE_DEMO_USER")),
    demo_pass=_optional_str(os.getenv("ASTRAWRITE_DEMO_PASS")),
    session_secret=session_secret,
    pg_dsn=_optional_str(os.getenv("ASTRAWRITE_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL")),
    article_throttle_seconds=_parse_interval_ms("ASTRAWRITE_ARTICLE_THROTTLE_MS", "500"),
    bulk_throttle_seconds=_parse_interval_ms("ASTRAWRITE_BULK_THROTTLE_MS", "400"),
    cluster_throttle_seconds=_parse_interval_ms("ASTRAWRITE_CLUSTER_THROTTLE_MS", "400"),
    expected_length_small=_parse_positive_int("ASTRAWRITE_EXPECTED_LENGTH_SMALL", "2500"),
    expected_length_medium=_parse_positive_int("ASTRAWRITE_EXPECTED_LENGTH_MEDIUM", "4000"),
    expected_length_large=_parse_positive_int("ASTRAWRITE_EXPECTED_LENGTH_LARGE", "6000"),
    gemini_text_model=os.getenv("ASTRAWRITE_GEMINI_TEXT_MODEL", "gemini-2.5-flash"),
    gemini_stream_model=os.getenv("ASTRAWRITE_GEMINI_STREAM_MODEL", "gemini-2.5-pro"),
    gemini_image_model=os.getenv("ASTRAWRITE_GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image"),
    openrouter_model=os.getenv("ASTRAWRITE_OPENROUTER_MODEL", "google/gemini-2.0-flash-exp:free"),
    openrouter_base_url=(os.getenv("ASTRAWRITE_OPENROUTER_BASE_URL") or "https://openrouter.ai/api/v1").strip(),
    openrouter_http_referer=_optional_str(os.getenv("OPENROUTER_HTTP_REFERER")),
    openrouter_title=_optional_str(os.getenv("OPENROUTER_TITLE")),
    wordpress_timeout_seconds=wordpress_timeout_seconds,
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring web-runtime configuration."""
  debug = _parse_bool(os.getenv("ASTRAWRITE_DEBUG"))
  pg_dsn = _optional_str(os.getenv("ASTRAWRITE_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL"))
  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn)


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value
