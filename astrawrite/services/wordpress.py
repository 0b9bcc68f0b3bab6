"""Publish finished articles to a WordPress site over its REST API."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from html import escape
from typing import Any

import httpx

from astrawrite.schema.wordpress import PostStatus, PostType, WordPressConfig

logger = logging.getLogger(__name__)

_DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class WordPressPublishError(RuntimeError):
  """Raised when a post cannot be published to WordPress."""


class WordPressConfigurationError(WordPressPublishError):
  """Raised when the site URL, username or application password is missing."""


def _decode_data_url(image_url: str) -> tuple[str, bytes] | None:
  """Return (mime type, bytes) for a base64 data URL, or None for remote URLs."""
  match = _DATA_URL_PATTERN.match(image_url)
  if match is None:
    return None
  try:
    return match.group("mime"), base64.b64decode(match.group("data"), validate=True)
  except (binascii.Error, ValueError) as e:
    raise WordPressPublishError(f"Image data URL is not valid base64: {e}") from e


def _json_body(response: httpx.Response) -> dict[str, Any]:
  """Decode a REST response that must be a JSON object."""
  try:
    body = response.json()
  except ValueError as e:
    logger.error("WordPress returned a non-JSON body (%s): %.200s", response.headers.get("content-type", "unknown"), response.text)
    raise WordPressPublishError("WordPress returned an invalid response.") from e
  if not isinstance(body, dict):
    logger.error("WordPress returned %s instead of an object", type(body).__name__)
    raise WordPressPublishError("WordPress returned an invalid response.")
  return body


def _image_filename(title: str, mime_type: str) -> str:
  stem = _UNSAFE_FILENAME_CHARS.sub("-", title).strip("-").lower()[:80] or "image"
  extension = mime_type.split("/", 1)[1].split("+", 1)[0]
  return f"{stem}.{extension}"


class WordPressPublisher:
  """Post articles to one WordPress site using an application password."""

  def __init__(self, config: WordPressConfig, *, timeout: float = 60.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
    self.config = config
    self._timeout = timeout
    self._transport = transport

  @property
  def base_url(self) -> str:
    return self.config.url.rstrip("/")

  def _build_client(self) -> httpx.AsyncClient:
    auth = httpx.BasicAuth(self.config.username, self.config.application_password)
    return httpx.AsyncClient(base_url=self.base_url, auth=auth, timeout=self._timeout, transport=self._transport, trust_env=False)

  async def publish(self, title: str, content: str, image_url: str | None = None, *, post_type: PostType | None = None, status: PostStatus | None = None) -> str:
    """Create a post (or page) and return its public link.

    A data URL image is uploaded to the media library and attached as the
    featured image. A remote image URL is embedded at the top of the content.
    """
    if not self.config.is_configured:
      raise WordPressConfigurationError("WordPress configuration is missing.")

    post_type = post_type or self.config.default_post_type
    status = status or self.config.default_status
    payload: dict[str, Any] = {"title": title, "content": content, "status": status}

    try:
      async with self._build_client() as client:
        if image_url:
          decoded = _decode_data_url(image_url)
          if decoded is None:
            if image_url not in content:
              payload["content"] = f'<img src="{image_url}" alt="{escape(title, quote=True)}" />\n{content}'
          else:
            payload["featured_media"] = await self._upload_media(client, title, *decoded)

        logger.info("Publishing %s '%s' to %s as %s", post_type, title, self.base_url, status)
        response = await client.post(f"/wp-json/wp/v2/{post_type}", json=payload)
        response.raise_for_status()

    except httpx.HTTPStatusError as e:
      logger.error("WordPress returned %s for '%s': %s", e.response.status_code, title, e.response.text)
      raise WordPressPublishError(f"WordPress rejected the post ({e.response.status_code}).") from e
    except httpx.RequestError as e:
      logger.error("Failed to reach WordPress at %s: %s", self.base_url, e)
      raise WordPressPublishError(f"Failed to reach WordPress: {e}") from e

    link = _json_body(response).get("link")
    if not link:
      raise WordPressPublishError("WordPress response did not include a post link.")
    return str(link)

  async def _upload_media(self, client: httpx.AsyncClient, title: str, mime_type: str, data: bytes) -> int:
    headers = {"Content-Type": mime_type, "Content-Disposition": f'attachment; filename="{_image_filename(title, mime_type)}"'}
    response = await client.post("/wp-json/wp/v2/media", content=data, headers=headers)
    response.raise_for_status()
    media_id = _json_body(response).get("id")
    if media_id is None:
      raise WordPressPublishError("WordPress media upload did not return an id.")
    logger.debug("Uploaded featured image %s for '%s'", media_id, title)
    return int(media_id)
