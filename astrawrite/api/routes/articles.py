import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response, status

from astrawrite.api.deps import get_jobs_repo, get_key_service
from astrawrite.api.models import JobListResponse, JobResponse, JobUpdateRequest
from astrawrite.config import Settings, get_settings
from astrawrite.core.security import get_session_user
from astrawrite.schema.article import ArticleConfig
from astrawrite.services import generation as generation_service
from astrawrite.services.api_keys import ApiKeyService
from astrawrite.storage.jobs_repo import JobsRepository

router = APIRouter(dependencies=[Depends(get_session_user)])
logger = logging.getLogger("astrawrite.api.routes.articles")

_JOB_NOT_FOUND_MSG = "Job not found."


@router.post("", response_model=JobResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_article(  # noqa: B008
  config: ArticleConfig,
  background_tasks: BackgroundTasks,
  editor_id: str = Query(default=generation_service.DEFAULT_EDITOR_ID, alias="editorId", min_length=1, max_length=100),  # noqa: B008
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
  key_service: ApiKeyService = Depends(get_key_service),  # noqa: B008
  settings: Settings = Depends(get_settings),  # noqa: B008
) -> JobResponse:
  """Start generating an article on an editor; poll the job for progress."""
  job = await generation_service.start_article(config, editor_id=editor_id, jobs_repo=jobs_repo, key_service=key_service, settings=settings, background_tasks=background_tasks)
  return JobResponse.from_job(job)


@router.get("", response_model=JobListResponse)
async def list_articles(  # noqa: B008
  limit: int = Query(default=50, ge=1, le=200),  # noqa: B008
  offset: int = Query(default=0, ge=0),  # noqa: B008
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
) -> JobListResponse:
  """List the generation history, newest first."""
  jobs = await jobs_repo.list_jobs(limit=limit, offset=offset)
  return JobListResponse(items=[JobResponse.from_job(job) for job in jobs])


@router.get("/{job_id}", response_model=JobResponse)
async def get_article(job_id: str, jobs_repo: JobsRepository = Depends(get_jobs_repo)) -> JobResponse:  # noqa: B008
  job = await jobs_repo.get(job_id)
  if job is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_JOB_NOT_FOUND_MSG)
  return JobResponse.from_job(job)


@router.patch("/{job_id}", response_model=JobResponse)
async def update_article(job_id: str, payload: JobUpdateRequest, jobs_repo: JobsRepository = Depends(get_jobs_repo)) -> JobResponse:  # noqa: B008
  """Apply manual edits to a finished job."""
  job = await jobs_repo.get(job_id)
  if job is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_JOB_NOT_FOUND_MSG)
  # The generator owns the content until the job reaches a terminal status.
  if not job.is_terminal:
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Job is still generating.")

  updated = await jobs_repo.update(job_id, title=payload.title, content=payload.content, wp_url=payload.wp_url)
  if updated is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_JOB_NOT_FOUND_MSG)
  return JobResponse.from_job(updated)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(job_id: str, jobs_repo: JobsRepository = Depends(get_jobs_repo)) -> Response:  # noqa: B008
  if not await jobs_repo.delete(job_id):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_JOB_NOT_FOUND_MSG)
  logger.info("Deleted job %s", job_id)
  return Response(status_code=status.HTTP_204_NO_CONTENT)
