"""Postgres-backed repository for provider API keys."""

from __future__ import annotations

from sqlalchemy import select

from astrawrite.core.database import get_session_factory
from astrawrite.schema.api_keys import ApiKeyConfig
from astrawrite.schema.sql import ApiKey
from astrawrite.storage.api_keys_repo import ApiKeysRepository


class PostgresApiKeysRepository(ApiKeysRepository):
  """Persist provider keys to Postgres using SQLAlchemy."""

  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def list_keys(self) -> list[ApiKeyConfig]:
    async with self._session_factory() as session:
      result = await session.execute(select(ApiKey).order_by(ApiKey.created_at.asc(), ApiKey.id.asc()))
      return [self._model_to_record(row) for row in result.scalars().all()]

  async def get(self, key_id: str) -> ApiKeyConfig | None:
    async with self._session_factory() as session:
      row = await session.get(ApiKey, key_id)
      return self._model_to_record(row) if row else None

  async def add(self, record: ApiKeyConfig) -> None:
    async with self._session_factory() as session:
      session.add(
        ApiKey(
          id=record.id,
          label=record.label,
          key=record.key,
          provider=record.provider,
          usage_count=record.usage_count,
          articles_generated=record.articles_generated,
          last_used=record.last_used,
          is_active=record.is_active,
          created_at=record.created_at,
        )
      )
      await session.commit()

  async def save(self, record: ApiKeyConfig) -> None:
    async with self._session_factory() as session:
      row = await session.get(ApiKey, record.id)
      if row is None:
        raise KeyError(record.id)
      row.label = record.label
      row.key = record.key
      row.provider = record.provider
      row.usage_count = record.usage_count
      row.articles_generated = record.articles_generated
      row.last_used = record.last_used
      row.is_active = record.is_active
      await session.commit()

  async def delete(self, key_id: str) -> bool:
    async with self._session_factory() as session:
      row = await session.get(ApiKey, key_id)
      if row is None:
        return False
      await session.delete(row)
      await session.commit()
      return True

  @staticmethod
  def _model_to_record(row: ApiKey) -> ApiKeyConfig:
    return ApiKeyConfig(
      id=row.id,
      label=row.label,
      key=row.key,
      provider=row.provider,  # type: ignore[arg-type]
      usage_count=row.usage_count,
      articles_generated=row.articles_generated,
      last_used=row.last_used,
      is_active=row.is_active,
      created_at=row.created_at,
    )
