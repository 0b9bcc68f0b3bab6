"""Recover the JSON payload from a model reply."""

from __future__ import annotations

import json
import re
from typing import Any

_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_VALUE_START_RE = re.compile(r"[{\[]")
_DECODER = json.JSONDecoder()
_MISSING = object()


def parse_json_with_fallback(raw: str) -> Any:
  """Parse a model reply that should be JSON but may arrive wrapped in prose.

  The reply is tried as-is first. After that the body of a fenced ```json block
  (when present) is scanned for the first object or array that decodes, and as
  a last resort the same scan runs again with trailing commas removed. The
  original decode error is raised when nothing parses.
  """
  text = raw.strip()
  try:
    return json.loads(text)
  except json.JSONDecodeError as exc:
    first_error = exc

  fenced = _FENCED_BLOCK_RE.search(text)
  if fenced is not None:
    text = fenced.group(1).strip()

  for candidate in (text, _TRAILING_COMMA_RE.sub(r"\1", text)):
    value = _first_json_value(candidate)
    if value is not _MISSING:
      return value

  raise first_error


def _first_json_value(text: str) -> Any:
  # Brackets in surrounding prose fail to decode and are skipped.
  for match in _VALUE_START_RE.finditer(text):
    try:
      value, _end = _DECODER.raw_decode(text, match.start())
    except json.JSONDecodeError:
      continue
    return value
  return _MISSING
