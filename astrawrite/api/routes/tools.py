from typing import Any, TypeVar

from fastapi import APIRouter, Depends
from pydantic import ValidationError

from astrawrite.ai import prompts
from astrawrite.ai.providers import AIModel, StructuredOutputError
from astrawrite.api.deps import get_jobs_repo, get_key_service, get_text_model
from astrawrite.api.models import (
  ApiModel,
  BrandVoiceResponse,
  ClusterPlanModel,
  CompetitorAnalysisRequest,
  CompetitorAnalysisResponse,
  ContentAnalysisRequest,
  FaqAnswersRequest,
  FaqAnswersResponse,
  KeywordListRequest,
  KeywordListResponse,
  KeywordMetricsResponse,
  KeywordRequest,
  KeywordResearchResponse,
  MetaTagsResponse,
  OptimizeContentRequest,
  RewriteRequest,
  SeoAnalysisResponse,
  SeoGuidelinesResponse,
  SuperPageRequest,
  SuperPageStructureResponse,
  TextRequest,
  TextResponse,
  TopicClusterRequest,
)
from astrawrite.config import Settings, get_settings
from astrawrite.core.security import get_session_user
from astrawrite.services import generation as generation_service
from astrawrite.services.api_keys import ApiKeyService
from astrawrite.storage.jobs_repo import JobsRepository

router = APIRouter(dependencies=[Depends(get_session_user)])

ToolResponse = TypeVar("ToolResponse", bound=ApiModel)


@router.post("/rewrite", response_model=TextResponse)
async def rewrite(payload: RewriteRequest, model: AIModel = Depends(get_text_model)) -> TextResponse:  # noqa: B008
  text = await generation_service.run_text_tool(model, prompts.build_rewrite_prompt(payload.text, payload.mode, payload.language))
  return TextResponse(text=text)


@router.post("/humanize", response_model=TextResponse)
async def humanize(payload: TextRequest, model: AIModel = Depends(get_text_model)) -> TextResponse:  # noqa: B008
  return TextResponse(text=await generation_service.run_text_tool(model, prompts.build_humanize_prompt(payload.text)))


@router.post("/continue-writing", response_model=TextResponse)
async def continue_writing(payload: TextRequest, model: AIModel = Depends(get_text_model)) -> TextResponse:  # noqa: B008
  return TextResponse(text=await generation_service.run_text_tool(model, prompts.build_continue_prompt(payload.text)))


@router.post("/seo-analysis", response_model=SeoAnalysisResponse)
async def seo_analysis(  # noqa: B008
  payload: ContentAnalysisRequest,
  model: AIModel = Depends(get_text_model),  # noqa: B008
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
  key_service: ApiKeyService = Depends(get_key_service),  # noqa: B008
) -> SeoAnalysisResponse:
  """Score content for SEO and record the report."""
  report = await generation_service.analyze_seo(model, payload.content, payload.keyword, jobs_repo=jobs_repo, key_service=key_service)
  return SeoAnalysisResponse.model_validate(report)


@router.post("/meta-tags", response_model=MetaTagsResponse)
async def meta_tags(payload: ContentAnalysisRequest, model: AIModel = Depends(get_text_model)) -> MetaTagsResponse:  # noqa: B008
  return _tool_result(MetaTagsResponse, await generation_service.generate_meta_tags(model, payload.content, payload.keyword))


@router.post("/topic-cluster", response_model=ClusterPlanModel)
async def topic_cluster(  # noqa: B008
  payload: TopicClusterRequest,
  key_service: ApiKeyService = Depends(get_key_service),  # noqa: B008
  settings: Settings = Depends(get_settings),  # noqa: B008
) -> ClusterPlanModel:
  """Plan a pillar page with supporting cluster articles."""
  plan = await generation_service.plan_topic_cluster(payload.topic, key_service=key_service, settings=settings)
  return ClusterPlanModel.from_plan(plan)


def _tool_result(response_model: type[ToolResponse], data: dict[str, Any]) -> ToolResponse:
  try:
    return response_model.model_validate(data)
  except ValidationError as e:
    raise StructuredOutputError(f"The model returned an invalid {response_model.__name__}.") from e


@router.post("/brand-voice", response_model=BrandVoiceResponse)
async def brand_voice(payload: TextRequest, model: AIModel = Depends(get_text_model)) -> BrandVoiceResponse:  # noqa: B008
  """Derive a reusable brand voice from a writing sample."""
  data = await generation_service.run_structured_tool(model, prompts.build_brand_voice_prompt(payload.text), prompts.BRAND_VOICE_SCHEMA)
  return _tool_result(BrandVoiceResponse, data)


@router.post("/keyword-metrics", response_model=KeywordMetricsResponse)
async def keyword_metrics(payload: KeywordRequest, model: AIModel = Depends(get_text_model)) -> KeywordMetricsResponse:  # noqa: B008
  data = await generation_service.run_structured_tool(model, prompts.build_keyword_metrics_prompt(payload.keyword), prompts.KEYWORD_METRICS_SCHEMA)
  return _tool_result(KeywordMetricsResponse, data)


@router.post("/bulk-keyword-metrics", response_model=KeywordListResponse)
async def bulk_keyword_metrics(payload: KeywordListRequest, model: AIModel = Depends(get_text_model)) -> KeywordListResponse:  # noqa: B008
  data = await generation_service.run_structured_tool(model, prompts.build_bulk_keyword_metrics_prompt(payload.keywords), prompts.BULK_KEYWORD_METRICS_SCHEMA)
  return _tool_result(KeywordListResponse, data)


@router.post("/keyword-research", response_model=KeywordResearchResponse)
async def keyword_research(payload: KeywordRequest, model: AIModel = Depends(get_text_model)) -> KeywordResearchResponse:  # noqa: B008
  """Related keywords with metrics plus the questions people ask."""
  data = await generation_service.run_structured_tool(model, prompts.build_keyword_research_prompt(payload.keyword), prompts.KEYWORD_RESEARCH_SCHEMA)
  return _tool_result(KeywordResearchResponse, data)


@router.post("/competitor-analysis", response_model=CompetitorAnalysisResponse)
async def competitor_analysis(payload: CompetitorAnalysisRequest, model: AIModel = Depends(get_text_model)) -> CompetitorAnalysisResponse:  # noqa: B008
  data = await generation_service.run_structured_tool(model, prompts.build_competitor_analysis_prompt(payload.keyword, payload.content), prompts.COMPETITOR_ANALYSIS_SCHEMA)
  return _tool_result(CompetitorAnalysisResponse, data)


@router.post("/super-page-structure", response_model=SuperPageStructureResponse)
async def super_page_structure(payload: SuperPageRequest, model: AIModel = Depends(get_text_model)) -> SuperPageStructureResponse:  # noqa: B008
  data = await generation_service.run_structured_tool(model, prompts.build_super_page_structure_prompt(payload.keyword, payload.competitor_url), prompts.SUPER_PAGE_STRUCTURE_SCHEMA)
  return _tool_result(SuperPageStructureResponse, data)


@router.post("/faq-answers", response_model=FaqAnswersResponse)
async def faq_answers(payload: FaqAnswersRequest, model: AIModel = Depends(get_text_model)) -> FaqAnswersResponse:  # noqa: B008
  data = await generation_service.run_structured_tool(model, prompts.build_faq_answers_prompt(payload.questions), prompts.FAQ_ANSWERS_SCHEMA)
  return _tool_result(FaqAnswersResponse, data)


@router.post("/optimize-keywords", response_model=TextResponse)
async def optimize_keywords(payload: OptimizeContentRequest, model: AIModel = Depends(get_text_model)) -> TextResponse:  # noqa: B008
  """Work missing keywords into existing content."""
  return TextResponse(text=await generation_service.run_text_tool(model, prompts.build_optimize_keywords_prompt(payload.content, payload.keywords)))


@router.post("/seo-guidelines", response_model=SeoGuidelinesResponse)
async def seo_guidelines(payload: KeywordRequest, model: AIModel = Depends(get_text_model)) -> SeoGuidelinesResponse:  # noqa: B008
  data = await generation_service.run_structured_tool(model, prompts.build_seo_guidelines_prompt(payload.keyword), prompts.SEO_GUIDELINES_SCHEMA)
  return _tool_result(SeoGuidelinesResponse, data)
