from __future__ import annotations

import base64
import json

import httpx
import pytest

from astrawrite.schema.wordpress import WordPressConfig
from astrawrite.services.wordpress import WordPressConfigurationError, WordPressPublisher, WordPressPublishError

CONFIG = WordPressConfig(url="https://blog.test/", username="editor", application_password="abcd efgh")


class WordPressStub:
  """Record requests and answer like the WordPress REST API."""

  def __init__(self, *, post_status: int = 201, link: str | None = "https://blog.test/hello") -> None:
    self.requests: list[httpx.Request] = []
    self.post_status = post_status
    self.link = link

  def __call__(self, request: httpx.Request) -> httpx.Response:
    self.requests.append(request)
    if request.url.path == "/wp-json/wp/v2/media":
      return httpx.Response(201, json={"id": 42})
    body = {"id": 7, "link": self.link} if self.link else {"id": 7}
    return httpx.Response(self.post_status, json=body)


def _publisher(stub: WordPressStub, config: WordPressConfig = CONFIG) -> WordPressPublisher:
  return WordPressPublisher(config, transport=httpx.MockTransport(stub))


@pytest.mark.anyio
async def test_publish_posts_with_basic_auth_and_defaults() -> None:
  stub = WordPressStub()

  link = await _publisher(stub).publish("Hello", "<p>Body</p>")

  assert link == "https://blog.test/hello"
  request = stub.requests[0]
  assert request.url == "https://blog.test/wp-json/wp/v2/posts"
  expected_auth = base64.b64encode(b"editor:abcd efgh").decode()
  assert request.headers["authorization"] == f"Basic {expected_auth}"
  assert json.loads(request.content) == {"title": "Hello", "content": "<p>Body</p>", "status": "draft"}


@pytest.mark.anyio
async def test_publish_uses_requested_post_type_and_status() -> None:
  stub = WordPressStub()

  await _publisher(stub).publish("About", "<p>Page</p>", post_type="pages", status="publish")

  assert stub.requests[0].url.path == "/wp-json/wp/v2/pages"
  assert json.loads(stub.requests[0].content)["status"] == "publish"


@pytest.mark.anyio
async def test_publish_uploads_data_url_as_featured_media() -> None:
  stub = WordPressStub()
  image = "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()

  await _publisher(stub).publish("Coffee Guide!", "<p>Body</p>", image)

  media_request, post_request = stub.requests
  assert media_request.url.path == "/wp-json/wp/v2/media"
  assert media_request.content == b"png-bytes"
  assert media_request.headers["content-type"] == "image/png"
  assert 'filename="coffee-guide.png"' in media_request.headers["content-disposition"]
  assert json.loads(post_request.content)["featured_media"] == 42


@pytest.mark.anyio
async def test_publish_embeds_remote_image_once() -> None:
  stub = WordPressStub()
  publisher = _publisher(stub)

  await publisher.publish("Title", "<p>Body</p>", "https://cdn.test/hero.jpg")
  await publisher.publish("Title", '<img src="https://cdn.test/hero.jpg" /><p>Body</p>', "https://cdn.test/hero.jpg")

  first, second = (json.loads(request.content)["content"] for request in stub.requests)
  assert first.startswith('<img src="https://cdn.test/hero.jpg" alt="Title" />')
  assert second.count("https://cdn.test/hero.jpg") == 1


@pytest.mark.anyio
async def test_publish_requires_complete_configuration() -> None:
  stub = WordPressStub()
  with pytest.raises(WordPressConfigurationError):
    await _publisher(stub, WordPressConfig(url="https://blog.test")).publish("T", "C")
  assert stub.requests == []


@pytest.mark.anyio
async def test_publish_wraps_http_errors() -> None:
  with pytest.raises(WordPressPublishError, match=r"rejected the post \(401\)"):
    await _publisher(WordPressStub(post_status=401)).publish("T", "C")


@pytest.mark.anyio
async def test_publish_wraps_transport_errors() -> None:
  def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)

  publisher = WordPressPublisher(CONFIG, transport=httpx.MockTransport(_unreachable))
  with pytest.raises(WordPressPublishError, match="Failed to reach WordPress"):
    await publisher.publish("T", "C")


@pytest.mark.anyio
async def test_publish_requires_link_in_response() -> None:
  with pytest.raises(WordPressPublishError, match="did not include a post link"):
    await _publisher(WordPressStub(link=None)).publish("T", "C")


@pytest.mark.anyio
async def test_publish_rejects_html_body_on_success_status() -> None:
  def _cached_page(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text="<html>ok</html>", headers={"content-type": "text/html"})

  publisher = WordPressPublisher(CONFIG, transport=httpx.MockTransport(_cached_page))
  with pytest.raises(WordPressPublishError, match="invalid response"):
    await publisher.publish("T", "C")


@pytest.mark.anyio
async def test_media_upload_rejects_non_object_json() -> None:
  def _list_body(request: httpx.Request) -> httpx.Response:
    return httpx.Response(201, json=[{"id": 42}])

  publisher = WordPressPublisher(CONFIG, transport=httpx.MockTransport(_list_body))
  image = "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()
  with pytest.raises(WordPressPublishError, match="invalid response"):
    await publisher.publish("T", "C", image)
