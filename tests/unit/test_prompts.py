from __future__ import annotations

import pytest

from astrawrite.ai.prompts import (
  ARTICLE_SYSTEM_INSTRUCTION,
  BRAND_VOICE_SCHEMA,
  BULK_KEYWORD_METRICS_SCHEMA,
  COMPETITOR_ANALYSIS_SCHEMA,
  FAQ_ANSWERS_SCHEMA,
  KEYWORD_METRICS_SCHEMA,
  KEYWORD_RESEARCH_SCHEMA,
  SEO_GUIDELINES_SCHEMA,
  SUPER_PAGE_STRUCTURE_SCHEMA,
  build_article_prompt,
  build_brand_voice_prompt,
  build_bulk_keyword_metrics_prompt,
  build_competitor_analysis_prompt,
  build_faq_answers_prompt,
  build_image_prompt,
  build_keyword_metrics_prompt,
  build_keyword_research_prompt,
  build_optimize_keywords_prompt,
  build_seo_analysis_prompt,
  build_seo_guidelines_prompt,
  build_super_page_structure_prompt,
  build_system_instruction,
)
from astrawrite.schema.article import ArticleConfig


def test_article_prompt_reflects_options() -> None:
  config = ArticleConfig(
    main_keyword="home espresso",
    title="Home Espresso 101",
    article_size="Large",
    tone="Witty",
    keywords_to_include="grinder, tamper",
    include_faq=False,
    include_tables=True,
    connect_to_web=True,
  )

  prompt = build_article_prompt(config)

  assert prompt.splitlines()[0] == 'Write a complete article titled "Home Espresso 101".'
  assert "Tone: Witty" in prompt
  assert "Length: 3600-5000 words" in prompt
  assert "grinder, tamper" in prompt
  assert "comparison table" in prompt
  assert "FAQ" not in prompt
  assert "current web information" in prompt


def test_article_config_accepts_camel_case_payload() -> None:
  config = ArticleConfig.model_validate({"mainKeyword": "tea", "articleSize": "Small", "includeFAQ": False, "unknownField": 1})
  assert config.main_keyword == "tea"
  assert config.article_size == "Small"
  assert config.include_faq is False


def test_system_instruction_appends_brand_voice() -> None:
  assert build_system_instruction(ArticleConfig(main_keyword="x")) == ARTICLE_SYSTEM_INSTRUCTION
  assert build_system_instruction(ArticleConfig(main_keyword="x", brand_voice_instruction="Playful")).endswith("Brand voice:\nPlayful")


def test_tool_prompts() -> None:
  assert build_image_prompt("Coffee", "Anime") == 'Hero image for article: "Coffee". Style: Anime'
  assert 'for the keyword "espresso"' in build_seo_analysis_prompt("<p>x</p>", "espresso")
  assert build_seo_analysis_prompt("<p>x</p>", None).startswith("Analyze this content. ")


def test_keyword_list_prompts_keep_order() -> None:
  metrics = build_bulk_keyword_metrics_prompt(["green tea", "oolong"])
  assert metrics.endswith("- green tea\n- oolong")
  faqs = build_faq_answers_prompt(["Is tea healthy?", "How hot should water be?"])
  assert faqs.endswith("- Is tea healthy?\n- How hot should water be?")
  assert "grinder, tamper" in build_optimize_keywords_prompt("<p>Espresso</p>", ["grinder", "tamper"])


def test_optional_context_in_research_prompts() -> None:
  assert "Benchmark this draft" not in build_competitor_analysis_prompt("espresso", None)
  assert build_competitor_analysis_prompt("espresso", "<p>My draft</p>").endswith("<p>My draft</p>")
  assert "https://rival.test/guide" in build_super_page_structure_prompt("espresso", "https://rival.test/guide")
  assert "Cover everything" not in build_super_page_structure_prompt("espresso", None)
  assert '"espresso"' in build_keyword_metrics_prompt("espresso")
  assert '"espresso"' in build_keyword_research_prompt("espresso")
  assert '"espresso"' in build_seo_guidelines_prompt("espresso")
  assert build_brand_voice_prompt("We keep it short.").endswith("We keep it short.")


@pytest.mark.parametrize(
  "schema",
  [BRAND_VOICE_SCHEMA, KEYWORD_METRICS_SCHEMA, BULK_KEYWORD_METRICS_SCHEMA, KEYWORD_RESEARCH_SCHEMA, COMPETITOR_ANALYSIS_SCHEMA, SUPER_PAGE_STRUCTURE_SCHEMA, FAQ_ANSWERS_SCHEMA, SEO_GUIDELINES_SCHEMA],
)
def test_tool_schemas_are_objects_requiring_their_properties(schema) -> None:
  assert schema["type"] == "object"
  assert set(schema["required"]) <= set(schema["properties"])
