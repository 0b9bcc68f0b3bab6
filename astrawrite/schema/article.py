"""Article generation options shared by the API and the generation runners."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ArticleSize = Literal["Small", "Medium", "Large"]

# Target word ranges advertised for each size tier.
SIZE_WORD_RANGES: dict[str, tuple[int, int]] = {"Small": (1200, 2400), "Medium": (2400, 3600), "Large": (3600, 5000)}


class ArticleConfig(BaseModel):
  """Options record for one article generation request."""

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

  main_keyword: str = Field(min_length=1)
  title: str = ""
  language: str = "English (US)"
  article_size: ArticleSize = "Medium"
  tone: str = "Professional"
  brand_voice_instruction: str | None = None
  point_of_view: str = "Third Person"
  target_country: str = "United States"
  article_type: str = "Blog Post"
  readability: str = "University"
  ai_content_cleaning: str = "Standard Removal"
  humanize: bool = False
  details_to_include: str = ""
  include_images: bool = True
  image_style: str = "Photo-realistic"
  images_count: int = Field(default=1, ge=0, le=10)
  image_size: str = "16:9"
  include_youtube: bool = False
  youtube_count: int = Field(default=0, ge=0, le=10)
  keywords_to_include: str = ""
  intro_hook: str = "Statistical"
  include_table_of_contents: bool = True
  include_h3: bool = True
  include_h4: bool = True
  include_h5: bool = False
  include_lists: bool = True
  include_tables: bool = True
  include_italics: bool = True
  include_quotes: bool = True
  include_key_takeaways: bool = True
  include_conclusion: bool = True
  include_faq: bool = Field(default=True, alias="includeFAQ")
  include_bold: bool = True
  connect_to_web: bool = False
  wp_status: Literal["draft", "publish"] | None = None
  wp_post_type: Literal["posts", "pages"] | None = None
