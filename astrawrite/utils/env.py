"""Load a local ``.env`` file into the process environment."""

from __future__ import annotations

import os
from pathlib import Path

ENV_FILE_VARIABLE = "ASTRAWRITE_ENV_FILE"


def default_env_path() -> Path:
  """Return ``$ASTRAWRITE_ENV_FILE`` when set, otherwise ``.env`` at the project root."""
  configured = os.getenv(ENV_FILE_VARIABLE)
  if configured:
    return Path(configured).expanduser()
  return Path(__file__).resolve().parents[2] / ".env"


def parse_env_line(line: str) -> tuple[str, str] | None:
  """Return the (name, value) of one assignment, or None for blanks, comments and junk."""
  line = line.strip()
  if not line or line.startswith("#"):
    return None

  name, sep, value = line.removeprefix("export ").partition("=")
  name = name.strip()
  if not sep or not name:
    return None

  value = value.strip()
  if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
    return name, value[1:-1]
  # Unquoted values may end with an inline comment.
  return name, value.split(" #", 1)[0].rstrip()


def load_env_file(path: Path, *, override: bool = False) -> list[str]:
  """Copy assignments from ``path`` into ``os.environ`` and return the names that were set.

  Variables already present in the environment win unless ``override`` is set.
  A missing file loads nothing.
  """
  if not path.is_file():
    return []

  loaded: list[str] = []
  for raw_line in path.read_text(encoding="utf-8").splitlines():
    pair = parse_env_line(raw_line)
    if pair is None:
      continue
    name, value = pair
    if not override and name in os.environ:
      continue
    os.environ[name] = value
    loaded.append(name)
  return loaded
