from fastapi import APIRouter, Depends, Response, status

from astrawrite.api.deps import get_key_service
from astrawrite.api.models import ApiKeyCreateRequest, ApiKeyResponse
from astrawrite.core.security import get_session_user
from astrawrite.services.api_keys import ApiKeyService

router = APIRouter(dependencies=[Depends(get_session_user)])


@router.get("", response_model=list[ApiKeyResponse])
async def list_keys(key_service: ApiKeyService = Depends(get_key_service)) -> list[ApiKeyResponse]:  # noqa: B008
  """List stored provider keys with the secret masked."""
  return [ApiKeyResponse.from_record(record) for record in await key_service.list_keys()]


@router.post("", response_model=ApiKeyResponse, status_code=status.HTTP_201_CREATED)
async def add_key(payload: ApiKeyCreateRequest, key_service: ApiKeyService = Depends(get_key_service)) -> ApiKeyResponse:  # noqa: B008
  """Store a new provider key; the first key becomes active."""
  record = await key_service.add(payload.label, payload.key, payload.provider)
  return ApiKeyResponse.from_record(record)


@router.delete("/{key_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_key(key_id: str, key_service: ApiKeyService = Depends(get_key_service)) -> Response:  # noqa: B008
  await key_service.delete(key_id)
  return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/select/{key_id}", response_model=ApiKeyResponse)
async def select_key(key_id: str, key_service: ApiKeyService = Depends(get_key_service)) -> ApiKeyResponse:  # noqa: B008
  """Make one key the active key."""
  return ApiKeyResponse.from_record(await key_service.select(key_id))
