from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from astrawrite.api.deps import get_jobs_repo, get_key_service
from astrawrite.api.models import ClusterPlanModel, ClusterRunResponse
from astrawrite.config import Settings, get_settings
from astrawrite.core.security import get_session_user
from astrawrite.services import generation as generation_service
from astrawrite.services.api_keys import ApiKeyService
from astrawrite.storage.jobs_repo import JobsRepository

router = APIRouter(dependencies=[Depends(get_session_user)])


@router.post("/execute", response_model=ClusterRunResponse, status_code=status.HTTP_202_ACCEPTED)
async def execute_cluster(  # noqa: B008
  plan: ClusterPlanModel,
  background_tasks: BackgroundTasks,
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
  key_service: ApiKeyService = Depends(get_key_service),  # noqa: B008
  settings: Settings = Depends(get_settings),  # noqa: B008
) -> ClusterRunResponse:
  """Write the pillar page and every cluster page of a plan in order."""
  run = await generation_service.start_cluster(plan.to_plan(), jobs_repo=jobs_repo, key_service=key_service, settings=settings, background_tasks=background_tasks)
  return ClusterRunResponse.from_run(run)


@router.get("/{run_id}", response_model=ClusterRunResponse)
async def get_cluster_run(run_id: str) -> ClusterRunResponse:
  run = generation_service.get_cluster_run(run_id)
  if run is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cluster run not found.")
  return ClusterRunResponse.from_run(run)
