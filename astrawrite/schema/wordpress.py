"""WordPress site credentials and publishing defaults."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

PostStatus = Literal["draft", "publish"]
PostType = Literal["posts", "pages"]


class WordPressConfig(BaseModel):
  """Connection details for one WordPress site using an application password."""

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

  url: str = ""
  username: str = ""
  application_password: str = ""
  default_status: PostStatus = "draft"
  default_post_type: PostType = "posts"

  @property
  def is_configured(self) -> bool:
    return bool(self.url and self.username and self.application_password)
