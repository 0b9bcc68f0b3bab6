"""Topic cluster planning and sequential execution with interlinking."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from astrawrite.ai.prompts import TOPIC_CLUSTER_SCHEMA, build_article_prompt, build_system_instruction, build_topic_cluster_prompt
from astrawrite.ai.providers.base import AIModel
from astrawrite.config import Settings
from astrawrite.jobs.aggregator import FinishCallback, StreamAggregator, maybe_await, stream_source
from astrawrite.jobs.article import persist_job_failure, store_snapshots, store_terminal_state, strip_code_fences
from astrawrite.jobs.models import GenerationJob
from astrawrite.jobs.progress import estimator_for_size
from astrawrite.schema.article import ArticleConfig
from astrawrite.storage.jobs_repo import JobsRepository
from astrawrite.utils.ids import generate_job_id, generate_run_id, now_millis

logger = logging.getLogger(__name__)

PageType = Literal["Pillar", "Cluster"]
CLUSTER_PROGRESS_CAP = 95

STATUS_PENDING = "Pending"
STATUS_WRITING = "Writing..."
STATUS_COMPLETED = "Completed"
STATUS_FAILED = "Failed"


class InvalidClusterPlanError(ValueError):
  """Raised when a topic cluster plan lacks a pillar page or clusters."""


@dataclass(frozen=True)
class ClusterPage:
  """One page of a topic cluster."""

  title: str
  keyword: str
  page_type: PageType = "Cluster"
  link_to_pillar_anchor: str = ""
  cross_link_suggestion: str = ""


def _require_text(data: dict[str, Any], key: str, context: str) -> str:
  value = data.get(key)
  if not isinstance(value, str) or not value.strip():
    raise InvalidClusterPlanError(f"{context} is missing '{key}'.")
  return value.strip()


@dataclass(frozen=True)
class ClusterPlan:
  """A pillar page and the cluster pages that support it."""

  pillar: ClusterPage
  clusters: tuple[ClusterPage, ...]
  topic: str = ""

  @classmethod
  def from_model_output(cls, data: Any, *, topic: str = "") -> ClusterPlan:
    """Validate the camelCase plan shape returned by the model."""
    if not isinstance(data, dict):
      raise InvalidClusterPlanError("Cluster plan must be a JSON object.")

    pillar_data = data.get("pillarPage")
    clusters_data = data.get("clusters")
    if not isinstance(pillar_data, dict):
      raise InvalidClusterPlanError("Cluster plan has no pillar page.")
    if not isinstance(clusters_data, list) or not clusters_data:
      raise InvalidClusterPlanError("Cluster plan has no cluster pages.")

    pillar = ClusterPage(title=_require_text(pillar_data, "title", "Pillar page"), keyword=_require_text(pillar_data, "keyword", "Pillar page"), page_type="Pillar")
    clusters = []
    for position, raw in enumerate(clusters_data, start=1):
      if not isinstance(raw, dict):
        raise InvalidClusterPlanError(f"Cluster {position} must be an object.")
      context = f"Cluster {position}"
      clusters.append(
        ClusterPage(
          title=_require_text(raw, "title", context),
          keyword=_require_text(raw, "keyword", context),
          link_to_pillar_anchor=str(raw.get("linkToPillarAnchor") or "").strip(),
          cross_link_suggestion=str(raw.get("crossLinkSuggestion") or "").strip(),
        )
      )
    return cls(pillar=pillar, clusters=tuple(clusters), topic=topic)

  def to_dict(self) -> dict[str, Any]:
    return {
      "topic": self.topic,
      "pillarPage": {"title": self.pillar.title, "keyword": self.pillar.keyword},
      "clusters": [{"title": page.title, "keyword": page.keyword, "linkToPillarAnchor": page.link_to_pillar_anchor, "crossLinkSuggestion": page.cross_link_suggestion} for page in self.clusters],
    }


def build_queue(plan: ClusterPlan) -> list[ClusterPage]:
  """Return the pillar page followed by the cluster pages in plan order."""
  return [plan.pillar, *plan.clusters]


def interlinking_instruction(plan: ClusterPlan, page: ClusterPage) -> str:
  """Return the linking requirement for a cluster page; pillar pages get none."""
  if page.page_type != "Cluster":
    return ""
  return (
    f'\n\nIMPORTANT INTERLINKING: You MUST include a hyperlink to the Pillar Page ("{plan.pillar.title}") '
    f'using the anchor text "{page.link_to_pillar_anchor}". Also try to link to "{page.cross_link_suggestion}".'
  )


def build_cluster_article_config(plan: ClusterPlan, page: ClusterPage) -> ArticleConfig:
  return ArticleConfig(
    main_keyword=page.keyword,
    title=page.title,
    tone="Authoritative",
    details_to_include=interlinking_instruction(plan, page),
    include_images=False,
    image_style="Minimalist",
    intro_hook="Question",
    include_quotes=False,
    connect_to_web=True,
  )


async def generate_topic_cluster(model: AIModel, topic: str) -> ClusterPlan:
  """Ask the model for a cluster plan and validate it."""
  response = await model.generate_structured(build_topic_cluster_prompt(topic), TOPIC_CLUSTER_SCHEMA)
  return ClusterPlan.from_model_output(response.content, topic=topic)


@dataclass
class ClusterLogEntry:
  title: str
  page_type: PageType
  status: str = STATUS_PENDING
  job_id: str | None = None
  error: str | None = None


@dataclass
class ClusterRun:
  """Observable state of one cluster execution."""

  id: str
  plan: ClusterPlan
  entries: list[ClusterLogEntry]
  started_at: int = field(default_factory=now_millis)
  finished_at: int | None = None

  @classmethod
  def create(cls, plan: ClusterPlan) -> ClusterRun:
    return cls(id=generate_run_id(), plan=plan, entries=[ClusterLogEntry(title=page.title, page_type=page.page_type) for page in build_queue(plan)])

  @property
  def is_finished(self) -> bool:
    return self.finished_at is not None

  def to_dict(self) -> dict[str, Any]:
    return {"id": self.id, "plan": self.plan.to_dict(), "entries": [asdict(entry) for entry in self.entries], "started_at": self.started_at, "finished_at": self.finished_at}


class ClusterRunner:
  """Write every page of a cluster plan in order."""

  def __init__(self, *, jobs_repo: JobsRepository, settings: Settings, clock: Callable[[], float] = time.monotonic) -> None:
    self._jobs_repo = jobs_repo
    self._aggregator = StreamAggregator(
      on_snapshot=store_snapshots(jobs_repo),
      on_finish=store_terminal_state(jobs_repo),
      throttle_interval=settings.cluster_throttle_seconds,
      estimate_progress=estimator_for_size("Small", settings, cap=CLUSTER_PROGRESS_CAP),
      finalize=strip_code_fences,
      clock=clock,
    )

  async def run(self, plan: ClusterPlan, model: AIModel, *, state: ClusterRun | None = None, on_job_finished: FinishCallback | None = None) -> ClusterRun:
    state = state or ClusterRun.create(plan)
    logger.info("Cluster run %s started: pillar '%s' with %d clusters", state.id, plan.pillar.title, len(plan.clusters))

    try:
      for page, entry in zip(build_queue(plan), state.entries, strict=True):
        entry.status = STATUS_WRITING
        job = GenerationJob(id=generate_job_id(), title=page.title, kind="article", metadata={"type": page.page_type})
        entry.job_id = job.id
        try:
          await self._jobs_repo.save(job)
          config = build_cluster_article_config(plan, page)
          chunks = model.stream(build_article_prompt(config), system_instruction=build_system_instruction(config), web_search=config.connect_to_web)
          await self._aggregator.start(job, stream_source(chunks))
          if job.status == "completed" and on_job_finished is not None:
            await maybe_await(on_job_finished(job))
        except Exception as exc:  # noqa: BLE001
          logger.warning("Cluster page '%s' failed: %s", page.title, exc)
          entry.error = str(exc)
          await persist_job_failure(job, self._jobs_repo)

        entry.status = STATUS_COMPLETED if job.status == "completed" else STATUS_FAILED
    finally:
      for entry in state.entries:
        if entry.status not in {STATUS_COMPLETED, STATUS_FAILED}:
          entry.status = STATUS_FAILED
      state.finished_at = now_millis()

    return state
