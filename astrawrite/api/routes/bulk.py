from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from astrawrite.api.deps import get_jobs_repo, get_key_service
from astrawrite.api.models import BulkRequest, BulkRunResponse
from astrawrite.config import Settings, get_settings
from astrawrite.core.security import get_session_user
from astrawrite.services import generation as generation_service
from astrawrite.services.api_keys import ApiKeyService
from astrawrite.storage.jobs_repo import JobsRepository

router = APIRouter(dependencies=[Depends(get_session_user)])


@router.post("", response_model=BulkRunResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_bulk(  # noqa: B008
  payload: BulkRequest,
  background_tasks: BackgroundTasks,
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
  key_service: ApiKeyService = Depends(get_key_service),  # noqa: B008
  settings: Settings = Depends(get_settings),  # noqa: B008
) -> BulkRunResponse:
  """Queue a keyword list for sequential generation."""
  items = payload.to_items()
  if not items:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No keywords found in the input.")

  run = await generation_service.start_bulk(items, payload.options.to_options(), wordpress=payload.wordpress, jobs_repo=jobs_repo, key_service=key_service, settings=settings, background_tasks=background_tasks)
  return BulkRunResponse.from_run(run)


@router.get("/{run_id}", response_model=BulkRunResponse)
async def get_bulk_run(run_id: str) -> BulkRunResponse:
  run = generation_service.get_bulk_run(run_id)
  if run is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bulk run not found.")
  return BulkRunResponse.from_run(run)
