from fastapi import APIRouter, Depends

from astrawrite.api.models import WordPressPostRequest, WordPressPostResponse
from astrawrite.config import Settings, get_settings
from astrawrite.core.security import get_session_user
from astrawrite.services.wordpress import WordPressPublisher

router = APIRouter(dependencies=[Depends(get_session_user)])


@router.post("/post", response_model=WordPressPostResponse)
async def publish_post(payload: WordPressPostRequest, settings: Settings = Depends(get_settings)) -> WordPressPostResponse:  # noqa: B008
  """Publish an article to the WordPress site given in the request."""
  publisher = WordPressPublisher(payload.config, timeout=settings.wordpress_timeout_seconds)
  link = await publisher.publish(payload.title, payload.content, payload.image_url, post_type=payload.post_type, status=payload.status)
  return WordPressPostResponse(link=link)
