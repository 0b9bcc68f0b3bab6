"""Shared fixtures: settings, in-memory stores, a scripted model and an authenticated client."""

from __future__ import annotations

import os
import sys
from collections.abc import AsyncIterator, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

# Ensure required settings are available before importing the app.
os.environ["ASTRAWRITE_ALLOWED_ORIGINS"] = "http://localhost"
os.environ["ASTRAWRITE_DEMO_USER"] = "demo@astrawrite.test"
os.environ["ASTRAWRITE_DEMO_PASS"] = "demo-pass"
os.environ["ASTRAWRITE_SESSION_SECRET"] = "test-session-secret"
os.environ.pop("ASTRAWRITE_PG_DSN", None)
os.environ.pop("DATABASE_URL", None)

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from astrawrite.ai.providers import AIModel, SimpleModelResponse, StructuredModelResponse  # noqa: E402
from astrawrite.api import deps  # noqa: E402
from astrawrite.config import Settings, get_settings  # noqa: E402
from astrawrite.main import app  # noqa: E402
from astrawrite.services.generation import reset_generation_state  # noqa: E402
from astrawrite.storage.api_keys_repo import InMemoryApiKeysRepository  # noqa: E402
from astrawrite.storage.factory import reset_repositories  # noqa: E402
from astrawrite.storage.memory_jobs_repo import InMemoryJobsRepository  # noqa: E402

DEMO_EMAIL = "demo@astrawrite.test"
DEMO_PASSWORD = "demo-pass"


class FakeModel(AIModel):
  """Scripted model that replays fixed chunks and records every prompt it receives."""

  name = "fake-model"
  supports_structured_output = True
  supports_images = True

  def __init__(
    self,
    chunks: Sequence[str] = ("<p>Hello ", "world</p>"),
    *,
    text: str = "Generated Title",
    structured: dict[str, Any] | None = None,
    image_url: str | None = None,
    fail_after: int | None = None,
  ) -> None:
    self.chunks = list(chunks)
    self.text = text
    self.structured = structured or {}
    self.image_url = image_url
    self.fail_after = fail_after
    self.prompts: list[str] = []
    self.stream_calls: list[dict[str, Any]] = []

  async def generate(self, prompt: str, *, system_instruction: str | None = None) -> SimpleModelResponse:
    self.prompts.append(prompt)
    return SimpleModelResponse(content=self.text)

  async def stream(self, prompt: str, *, system_instruction: str | None = None, web_search: bool = False) -> AsyncIterator[str]:
    self.stream_calls.append({"prompt": prompt, "system_instruction": system_instruction, "web_search": web_search})
    for index, chunk in enumerate(self.chunks):
      if self.fail_after is not None and index >= self.fail_after:
        raise RuntimeError("stream interrupted")
      yield chunk
    if self.fail_after is not None and self.fail_after >= len(self.chunks):
      raise RuntimeError("stream interrupted")

  async def generate_structured(self, prompt: str, schema: dict[str, Any]) -> StructuredModelResponse:
    self.prompts.append(prompt)
    return StructuredModelResponse(content=self.structured)

  async def generate_image(self, prompt: str, *, aspect_ratio: str = "16:9") -> str:
    self.prompts.append(prompt)
    if self.image_url is None:
      raise RuntimeError("image generation unavailable")
    return self.image_url


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def settings() -> Settings:
  """Settings with throttling disabled so every chunk produces a snapshot."""
  return replace(get_settings(), article_throttle_seconds=0.0, bulk_throttle_seconds=0.0, cluster_throttle_seconds=0.0)


@pytest.fixture
def jobs_repo() -> InMemoryJobsRepository:
  return InMemoryJobsRepository()


@pytest.fixture
def keys_repo() -> InMemoryApiKeysRepository:
  return InMemoryApiKeysRepository()


@pytest.fixture
def fake_model() -> FakeModel:
  return FakeModel()


@pytest.fixture
def make_model():
  """Return the FakeModel class so tests can script their own responses."""
  return FakeModel


@pytest.fixture(autouse=True)
def _reset_process_state():
  reset_generation_state()
  reset_repositories()
  deps._key_service = None
  yield
  reset_generation_state()
  reset_repositories()
  deps._key_service = None
  app.dependency_overrides.clear()


@pytest.fixture
async def anonymous_client(jobs_repo: InMemoryJobsRepository, keys_repo: InMemoryApiKeysRepository, settings: Settings) -> AsyncIterator[AsyncClient]:
  app.dependency_overrides[deps.get_jobs_repo] = lambda: jobs_repo
  app.dependency_overrides[deps.get_keys_repo] = lambda: keys_repo
  app.dependency_overrides[get_settings] = lambda: settings
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
    yield client


@pytest.fixture
async def async_client(anonymous_client: AsyncClient) -> AsyncClient:
  """Client holding a signed-in session cookie."""
  response = await anonymous_client.post("/api/login", json={"email": DEMO_EMAIL, "password": DEMO_PASSWORD})
  assert response.status_code == 200
  return anonymous_client
