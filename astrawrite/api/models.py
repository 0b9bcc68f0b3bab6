from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

from astrawrite.jobs.bulk import BulkItem, BulkOptions, BulkRun, parse_bulk_input
from astrawrite.jobs.cluster import ClusterPlan, ClusterRun
from astrawrite.jobs.models import GenerationJob, JobKind, JobStatus
from astrawrite.schema.api_keys import AiProvider, ApiKeyConfig
from astrawrite.schema.article import ArticleSize
from astrawrite.schema.wordpress import PostStatus, PostType, WordPressConfig

MAX_TOOL_TEXT_CHARS = 100_000
MAX_KEYWORDS_PER_REQUEST = 100

# Names and keywords that drive generation; surrounding whitespace is dropped before the length check.
PlanText = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]


class ApiModel(BaseModel):
  """Base for request/response bodies exchanged with the UI in camelCase."""

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(ApiModel):
  email: StrictStr
  password: StrictStr


class SuccessResponse(ApiModel):
  success: bool = True


class ApiKeyCreateRequest(ApiModel):
  label: StrictStr = Field(min_length=1, max_length=100)
  key: StrictStr = Field(min_length=1)
  provider: AiProvider


class ApiKeyResponse(ApiModel):
  """A stored key as shown to the UI; the secret is always masked."""

  id: str
  label: str
  masked_key: str
  provider: AiProvider
  usage_count: int
  articles_generated: int
  last_used: int | None = None
  is_active: bool

  @classmethod
  def from_record(cls, record: ApiKeyConfig) -> ApiKeyResponse:
    return cls(
      id=record.id,
      label=record.label,
      masked_key=record.masked_key,
      provider=record.provider,
      usage_count=record.usage_count,
      articles_generated=record.articles_generated,
      last_used=record.last_used,
      is_active=record.is_active,
    )


class JobResponse(ApiModel):
  id: str
  title: str
  content: str
  status: JobStatus
  progress: int
  kind: JobKind
  created_at: int
  image_url: str | None = None
  wp_url: str | None = None
  metadata: dict[str, Any] = Field(default_factory=dict)

  @classmethod
  def from_job(cls, job: GenerationJob) -> JobResponse:
    return cls.model_validate(job.to_dict())


class JobListResponse(ApiModel):
  items: list[JobResponse]


class JobUpdateRequest(ApiModel):
  title: StrictStr | None = None
  content: StrictStr | None = None
  wp_url: StrictStr | None = None


class TitleRequest(ApiModel):
  keyword: StrictStr = Field(min_length=1, max_length=300)


class TitleResponse(ApiModel):
  title: str


class ImageRequest(ApiModel):
  prompt: StrictStr = Field(min_length=1, max_length=2000)
  aspect_ratio: StrictStr = "16:9"


class RewriteRequest(ApiModel):
  text: StrictStr = Field(min_length=1, max_length=MAX_TOOL_TEXT_CHARS)
  mode: StrictStr = "Standard"
  language: StrictStr = "English (US)"


class TextRequest(ApiModel):
  text: StrictStr = Field(min_length=1, max_length=MAX_TOOL_TEXT_CHARS)


class TextResponse(ApiModel):
  text: str


class ContentAnalysisRequest(ApiModel):
  content: StrictStr = Field(min_length=1, max_length=MAX_TOOL_TEXT_CHARS)
  keyword: StrictStr | None = None


class SeoAnalysisResponse(ApiModel):
  score: int = 0
  readability_level: str = ""
  keyword_density: str = ""
  actionable_tips: list[str] = Field(default_factory=list)
  missing_keywords: list[str] = Field(default_factory=list)


class MetaTagsResponse(ApiModel):
  title: str = ""
  description: str = ""
  slug: str = ""


class KeywordRequest(ApiModel):
  keyword: StrictStr = Field(min_length=1, max_length=300)


class KeywordListRequest(ApiModel):
  keywords: list[PlanText] = Field(min_length=1, max_length=MAX_KEYWORDS_PER_REQUEST)


class CompetitorAnalysisRequest(ApiModel):
  keyword: StrictStr = Field(min_length=1, max_length=300)
  content: StrictStr | None = Field(default=None, max_length=MAX_TOOL_TEXT_CHARS)


class SuperPageRequest(ApiModel):
  keyword: StrictStr = Field(min_length=1, max_length=300)
  competitor_url: StrictStr | None = Field(default=None, max_length=2000)


class FaqAnswersRequest(ApiModel):
  questions: list[PlanText] = Field(min_length=1, max_length=MAX_KEYWORDS_PER_REQUEST)


class OptimizeContentRequest(ApiModel):
  content: StrictStr = Field(min_length=1, max_length=MAX_TOOL_TEXT_CHARS)
  keywords: list[PlanText] = Field(min_length=1, max_length=MAX_KEYWORDS_PER_REQUEST)


class BrandVoiceResponse(ApiModel):
  """A writing voice derived from a sample; ``system_instruction`` feeds ``brandVoiceInstruction``."""

  name: str = "Custom Voice"
  description: str = ""
  archetype: str = "Unknown"
  system_instruction: str = ""


class KeywordMetricsResponse(ApiModel):
  volume: str = ""
  difficulty: int = 0
  cpc: str = ""
  competition: str = ""
  intent: str = ""


class KeywordRow(ApiModel):
  term: str
  volume: str = ""
  difficulty: int = 0
  cpc: str = ""
  competition: str = ""


class KeywordListResponse(ApiModel):
  keywords: list[KeywordRow] = Field(default_factory=list)


class KeywordResearchResponse(KeywordListResponse):
  questions: list[str] = Field(default_factory=list)


class CompetitorSummary(ApiModel):
  title: str
  url: str = ""


class CompetitorAnalysisResponse(ApiModel):
  avg_word_count: int = 0
  avg_image_count: int = 0
  common_keywords: list[str] = Field(default_factory=list)
  missing_topics: list[str] = Field(default_factory=list)
  actionable_advice: str = ""
  top_competitors: list[CompetitorSummary] = Field(default_factory=list)


class OutlineSection(ApiModel):
  type: Literal["h2", "h3"] = "h2"
  heading: str
  intent: str = ""


class SuperPageStructureResponse(ApiModel):
  structure: list[OutlineSection] = Field(default_factory=list)


class FaqEntry(ApiModel):
  question: str
  answer: str


class FaqAnswersResponse(ApiModel):
  faqs: list[FaqEntry] = Field(default_factory=list)


class SeoTerm(ApiModel):
  term: str
  target_count: int = 1


class SeoGuidelinesResponse(ApiModel):
  terms: list[SeoTerm] = Field(default_factory=list)


class TopicClusterRequest(ApiModel):
  topic: StrictStr = Field(min_length=1, max_length=300)


class ClusterPageModel(ApiModel):
  title: PlanText
  keyword: PlanText
  link_to_pillar_anchor: str = ""
  cross_link_suggestion: str = ""


class PillarPageModel(ApiModel):
  title: PlanText
  keyword: PlanText


class ClusterPlanModel(ApiModel):
  """Topic cluster plan exchanged with the UI; also the body of an execute request."""

  topic: str = ""
  pillar_page: PillarPageModel
  clusters: list[ClusterPageModel] = Field(min_length=1)

  @classmethod
  def from_plan(cls, plan: ClusterPlan) -> ClusterPlanModel:
    return cls.model_validate(plan.to_dict())

  def to_plan(self) -> ClusterPlan:
    return ClusterPlan.from_model_output(self.model_dump(by_alias=True), topic=self.topic)


class ClusterLogEntryModel(ApiModel):
  title: str
  page_type: str
  status: str
  job_id: str | None = None
  error: str | None = None


class ClusterRunResponse(ApiModel):
  id: str
  plan: ClusterPlanModel
  entries: list[ClusterLogEntryModel]
  started_at: int
  finished_at: int | None = None

  @classmethod
  def from_run(cls, run: ClusterRun) -> ClusterRunResponse:
    return cls.model_validate(run.to_dict())


class BulkItemModel(ApiModel):
  keyword: PlanText
  title: StrictStr | None = None


class BulkOptionsModel(ApiModel):
  language: StrictStr = "English (US)"
  article_size: ArticleSize = "Medium"
  include_images: bool = True
  humanize: bool = True
  connect_to_web: bool = True
  auto_publish: bool = False
  post_type: PostType = "posts"
  post_status: PostStatus = "draft"
  interval_minutes: float = Field(default=0, ge=0, le=24 * 60)

  def to_options(self) -> BulkOptions:
    return BulkOptions(**self.model_dump())


class BulkRequest(ApiModel):
  """Start a bulk run from pasted CSV text or explicit items."""

  input: StrictStr | None = None
  items: list[BulkItemModel] | None = None
  options: BulkOptionsModel = Field(default_factory=BulkOptionsModel)
  wordpress: WordPressConfig | None = None

  @model_validator(mode="after")
  def require_some_input(self) -> BulkRequest:
    if not self.input and not self.items:
      raise ValueError("Provide keyword rows in 'input' or 'items'.")
    return self

  def to_items(self) -> list[BulkItem]:
    if self.items:
      return [BulkItem(keyword=item.keyword.strip(), title=(item.title or "").strip() or None) for item in self.items]
    return parse_bulk_input(self.input or "")


class BulkLogEntryModel(ApiModel):
  keyword: str
  title: str | None = None
  status: str
  job_id: str | None = None
  wp_url: str | None = None
  error: str | None = None


class BulkRunResponse(ApiModel):
  id: str
  options: BulkOptionsModel
  entries: list[BulkLogEntryModel]
  started_at: int
  finished_at: int | None = None
  next_start_at: int | None = None

  @classmethod
  def from_run(cls, run: BulkRun) -> BulkRunResponse:
    return cls.model_validate(run.to_dict())


class WordPressPostRequest(ApiModel):
  title: StrictStr = Field(min_length=1)
  content: StrictStr
  status: PostStatus | None = None
  post_type: PostType | None = None
  image_url: StrictStr | None = None
  config: WordPressConfig


class WordPressPostResponse(ApiModel):
  link: str
