"""Storage interfaces and in-process store for provider API keys."""

from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from astrawrite.schema.api_keys import ApiKeyConfig


class ApiKeysRepository(Protocol):
  """Repository contract for provider key persistence."""

  async def list_keys(self) -> list[ApiKeyConfig]:
    """Return all keys in insertion order."""

  async def get(self, key_id: str) -> ApiKeyConfig | None:
    """Fetch one key by identifier."""

  async def add(self, record: ApiKeyConfig) -> None:
    """Persist a new key."""

  async def save(self, record: ApiKeyConfig) -> None:
    """Overwrite an existing key record."""

  async def delete(self, key_id: str) -> bool:
    """Remove a key; return False when it did not exist."""


class InMemoryApiKeysRepository(ApiKeysRepository):
  """Keep provider keys in a dict, preserving insertion order."""

  def __init__(self) -> None:
    self._keys: dict[str, ApiKeyConfig] = {}

  async def list_keys(self) -> list[ApiKeyConfig]:
    return [replace(record) for record in self._keys.values()]

  async def get(self, key_id: str) -> ApiKeyConfig | None:
    record = self._keys.get(key_id)
    return replace(record) if record else None

  async def add(self, record: ApiKeyConfig) -> None:
    self._keys[record.id] = replace(record)

  async def save(self, record: ApiKeyConfig) -> None:
    if record.id not in self._keys:
      raise KeyError(record.id)
    self._keys[record.id] = replace(record)

  async def delete(self, key_id: str) -> bool:
    return self._keys.pop(key_id, None) is not None
