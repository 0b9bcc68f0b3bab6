import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from astrawrite.ai.prompts import build_article_prompt, build_system_instruction
from astrawrite.ai.providers import AIModel
from astrawrite.api.deps import get_jobs_repo, get_key_service, get_stream_model, get_text_model
from astrawrite.api.models import ImageRequest, JobResponse, TitleRequest, TitleResponse
from astrawrite.core.security import get_session_user
from astrawrite.jobs.article import generate_title
from astrawrite.schema.article import ArticleConfig
from astrawrite.services import generation as generation_service
from astrawrite.services.api_keys import ApiKeyService
from astrawrite.storage.jobs_repo import JobsRepository

router = APIRouter(dependencies=[Depends(get_session_user)])
logger = logging.getLogger("astrawrite.api.routes.generation")


async def _relay(chunks: AsyncIterator[str], keyword: str) -> AsyncIterator[str]:
  """Forward model chunks; a mid-stream failure ends the body after logging."""
  try:
    async for chunk in chunks:
      yield chunk
  except Exception:  # noqa: BLE001
    # Headers are already sent, so the client sees a truncated body.
    logger.error("Article stream for '%s' failed mid-response", keyword, exc_info=True)


@router.post("/stream")
async def stream_article(config: ArticleConfig, model: AIModel = Depends(get_stream_model)) -> StreamingResponse:  # noqa: B008
  """Stream raw article text as the model produces it."""
  chunks = model.stream(build_article_prompt(config), system_instruction=build_system_instruction(config), web_search=config.connect_to_web)
  return StreamingResponse(_relay(chunks, config.main_keyword), media_type="text/plain; charset=utf-8")


@router.post("/title", response_model=TitleResponse)
async def suggest_title(payload: TitleRequest, model: AIModel = Depends(get_text_model)) -> TitleResponse:  # noqa: B008
  return TitleResponse(title=await generate_title(model, payload.keyword))


@router.post("/image", response_model=JobResponse)
async def create_image(  # noqa: B008
  payload: ImageRequest,
  model: AIModel = Depends(get_text_model),  # noqa: B008
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
  key_service: ApiKeyService = Depends(get_key_service),  # noqa: B008
) -> JobResponse:
  """Generate an image and store it in the history."""
  job = await generation_service.create_image(model, payload.prompt, payload.aspect_ratio, jobs_repo=jobs_repo, key_service=key_service)
  return JobResponse.from_job(job)
