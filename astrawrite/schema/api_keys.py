"""Domain model for provider API keys."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from astrawrite.utils.ids import now_millis

AiProvider = Literal["GEMINI", "OPENROUTER"]


@dataclass
class ApiKeyConfig:
  """A stored provider key with its usage counters."""

  id: str
  label: str
  key: str
  provider: AiProvider
  usage_count: int = 0
  articles_generated: int = 0
  last_used: int | None = None
  is_active: bool = False
  created_at: int = field(default_factory=now_millis)

  @property
  def masked_key(self) -> str:
    """Return the key with everything but the last four characters hidden."""
    if len(self.key) <= 4:
      return "*" * len(self.key)
    return f"{'*' * 8}{self.key[-4:]}"
