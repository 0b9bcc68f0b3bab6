"""Domain models for content generation jobs."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from astrawrite.utils.ids import now_millis

JobStatus = Literal["generating", "completed", "error"]
JobKind = Literal["article", "image", "seo-report"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "error"})


@dataclass
class GenerationJob:
  """One content-generation request in flight or completed."""

  id: str
  title: str = ""
  content: str = ""
  status: JobStatus = "generating"
  progress: int = 0
  kind: JobKind = "article"
  created_at: int = field(default_factory=now_millis)
  image_url: str | None = None
  wp_url: str | None = None
  metadata: dict[str, Any] = field(default_factory=dict)

  @property
  def is_terminal(self) -> bool:
    return self.status in TERMINAL_STATUSES

  def to_dict(self) -> dict[str, Any]:
    """Return a JSON-friendly copy of the job."""
    return asdict(self)
