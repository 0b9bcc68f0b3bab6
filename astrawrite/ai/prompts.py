"""Prompt builders for article generation and the content tools."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from astrawrite.schema.article import SIZE_WORD_RANGES, ArticleConfig

ARTICLE_SYSTEM_INSTRUCTION = (
  "You are an expert SEO content writer. Write original, well-researched long-form articles. "
  "Return clean semantic HTML (h2, h3, p, ul, ol, table, blockquote, strong, em) without <html>, <head> or <body> tags. "
  "Never wrap the output in markdown code fences."
)

_STRUCTURE_TOGGLES: tuple[tuple[str, str], ...] = (
  ("include_table_of_contents", "a table of contents after the introduction"),
  ("include_key_takeaways", "a key takeaways box near the top"),
  ("include_h3", "H3 subheadings"),
  ("include_h4", "H4 subheadings where useful"),
  ("include_h5", "H5 subheadings where useful"),
  ("include_lists", "bulleted and numbered lists"),
  ("include_tables", "at least one comparison table"),
  ("include_quotes", "relevant blockquotes"),
  ("include_bold", "bold text for key phrases"),
  ("include_italics", "italics for emphasis"),
  ("include_faq", "an FAQ section with 4-6 questions"),
  ("include_conclusion", "a conclusion section"),
)


def _is_set(value: str | None) -> bool:
  return bool(value) and value != "None"


def build_article_prompt(config: ArticleConfig) -> str:
  """Render the full article request from an options record."""

  min_words, max_words = SIZE_WORD_RANGES[config.article_size]
  lines = [
    f'Write a complete article titled "{config.title or config.main_keyword}".',
    f"Main keyword: {config.main_keyword}",
    f"Language: {config.language}",
    f"Tone: {config.tone}",
    f"Length: {min_words}-{max_words} words",
    f"Target country: {config.target_country}",
  ]

  if _is_set(config.point_of_view):
    lines.append(f"Point of view: {config.point_of_view}")
  if _is_set(config.article_type):
    lines.append(f"Article type: {config.article_type}")
  if _is_set(config.readability):
    lines.append(f"Readability level: {config.readability}")
  if config.intro_hook:
    lines.append(f"Open with a {config.intro_hook.lower()} hook.")
  if config.keywords_to_include.strip():
    lines.append(f"Naturally include these keywords: {config.keywords_to_include.strip()}")
  if config.include_youtube and config.youtube_count > 0:
    lines.append(f"Suggest {config.youtube_count} relevant YouTube video placements as HTML comments.")
  if config.humanize:
    lines.append("Write in a natural, human voice with varied sentence length; avoid generic AI phrasing.")
  if config.ai_content_cleaning and not config.ai_content_cleaning.startswith("No "):
    lines.append(f"AI word cleaning: {config.ai_content_cleaning}. Avoid words such as 'delve', 'tapestry', 'landscape'.")
  if config.connect_to_web:
    lines.append("Use current web information and cite recent statistics with their sources.")

  structure = [label for attribute, label in _STRUCTURE_TOGGLES if getattr(config, attribute)]
  if structure:
    lines.append("Structure: include " + "; ".join(structure) + ".")

  if config.details_to_include.strip():
    lines.append(f"Additional details: {config.details_to_include.strip()}")

  return "\n".join(lines)


def build_system_instruction(config: ArticleConfig) -> str:
  """Combine the base writer instruction with an optional brand voice."""
  if config.brand_voice_instruction:
    return f"{ARTICLE_SYSTEM_INSTRUCTION}\n\nBrand voice:\n{config.brand_voice_instruction}"
  return ARTICLE_SYSTEM_INSTRUCTION


def build_title_prompt(keyword: str) -> str:
  return f'Suggest 5 click-worthy, SEO-optimized titles for "{keyword}". Return only the best one as plain text without quotes.'


def build_image_prompt(title: str, style: str) -> str:
  return f'Hero image for article: "{title}". Style: {style}'


def build_rewrite_prompt(text: str, mode: str, language: str = "English (US)") -> str:
  return f"Rewrite the following text in {language} using the '{mode}' style. Keep the meaning and any HTML markup.\n\n{text}"


def build_humanize_prompt(text: str) -> str:
  return f"Rewrite the following text so it reads as natural human writing. Keep facts and HTML markup unchanged.\n\n{text}"


def build_continue_prompt(text: str) -> str:
  return f"Continue writing the following text for one or two more paragraphs in the same style. Return only the continuation.\n\n{text}"


def build_seo_analysis_prompt(content: str, keyword: str | None) -> str:
  target = f' for the keyword "{keyword}"' if keyword else ""
  return f"Analyze this content{target}. Provide a score (0-100), readability level, keyword density, actionable tips and missing keywords.\n\n{content}"


def build_meta_tags_prompt(content: str, keyword: str | None) -> str:
  target = f' targeting "{keyword}"' if keyword else ""
  return f"Write an SEO title (max 60 characters), meta description (max 155 characters) and URL slug{target} for this content.\n\n{content}"


def build_topic_cluster_prompt(topic: str) -> str:
  return (
    f'Plan a topic cluster for "{topic}": one pillar page and 5-8 supporting cluster articles. '
    "For each cluster give the anchor text it should use to link to the pillar and one other cluster title it should cross-link."
  )


def build_brand_voice_prompt(sample: str) -> str:
  return (
    "Analyze the writing style of the sample below. Name the voice, describe it in one or two sentences, "
    "pick the brand archetype it fits (for example Sage, Hero, Jester, Caregiver) and write a system instruction "
    "that would make a writer reproduce this voice.\n\n"
    f"{sample}"
  )


def build_keyword_metrics_prompt(keyword: str) -> str:
  return (
    f'Estimate SEO metrics for the keyword "{keyword}": monthly search volume (for example "12K"), '
    "ranking difficulty from 0 to 100, cost per click in USD, competition level and search intent."
  )


def build_bulk_keyword_metrics_prompt(keywords: Sequence[str]) -> str:
  listing = "\n".join(f"- {keyword}" for keyword in keywords)
  return f"Estimate monthly search volume, difficulty (0-100), CPC in USD and competition for each keyword. Return one entry per keyword in the same order.\n\n{listing}"


def build_keyword_research_prompt(keyword: str) -> str:
  return (
    f'Act as a keyword planner for "{keyword}". List 15-20 related keywords with estimated monthly volume, '
    'difficulty (0-100), CPC and competition, plus 5-8 questions people also ask about the topic.'
  )


def build_competitor_analysis_prompt(keyword: str, content: str | None) -> str:
  prompt = (
    f'Analyze the top 3 ranking articles for "{keyword}". Report their average word count and image count, '
    "the keywords they share, the subtopics a new article would need to compete, one paragraph of actionable advice, "
    "and the title and URL of each competitor."
  )
  if content:
    prompt += f"\n\nBenchmark this draft against them and list the topics it is missing:\n\n{content}"
  return prompt


def build_super_page_structure_prompt(keyword: str, competitor_url: str | None) -> str:
  prompt = f'Design the heading outline of a comprehensive "super page" that can outrank everything for "{keyword}". Give each section its level (h2 or h3), heading and search intent.'
  if competitor_url:
    prompt += f" Cover everything the page at {competitor_url} covers and go further."
  return prompt


def build_faq_answers_prompt(questions: Sequence[str]) -> str:
  listing = "\n".join(f"- {question}" for question in questions)
  return f"Answer each question in 2-3 concise sentences suitable for an FAQ section and FAQ schema markup. Keep the questions unchanged and in order.\n\n{listing}"


def build_optimize_keywords_prompt(content: str, keywords: Sequence[str]) -> str:
  return (
    f"Revise the content below so it naturally includes these keywords: {', '.join(keywords)}. "
    "Do not stuff keywords. Keep the structure, facts and HTML markup. Return only the revised content.\n\n"
    f"{content}"
  )


def build_seo_guidelines_prompt(keyword: str) -> str:
  return f'List 10-15 terms a well-optimized article about "{keyword}" should use, each with how many times it should appear.'


SEO_ANALYSIS_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {
    "score": {"type": "integer"},
    "readabilityLevel": {"type": "string"},
    "keywordDensity": {"type": "string"},
    "actionableTips": {"type": "array", "items": {"type": "string"}},
    "missingKeywords": {"type": "array", "items": {"type": "string"}},
  },
  "required": ["score", "readabilityLevel", "keywordDensity", "actionableTips", "missingKeywords"],
}

META_TAGS_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {"title": {"type": "string"}, "description": {"type": "string"}, "slug": {"type": "string"}},
  "required": ["title", "description", "slug"],
}

TOPIC_CLUSTER_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {
    "pillarPage": {"type": "object", "properties": {"title": {"type": "string"}, "keyword": {"type": "string"}}, "required": ["title", "keyword"]},
    "clusters": {
      "type": "array",
      "items": {
        "type": "object",
        "properties": {"title": {"type": "string"}, "keyword": {"type": "string"}, "linkToPillarAnchor": {"type": "string"}, "crossLinkSuggestion": {"type": "string"}},
        "required": ["title", "keyword", "linkToPillarAnchor"],
      },
    },
  },
  "required": ["pillarPage", "clusters"],
}

BRAND_VOICE_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {"name": {"type": "string"}, "description": {"type": "string"}, "archetype": {"type": "string"}, "systemInstruction": {"type": "string"}},
  "required": ["name", "description", "archetype", "systemInstruction"],
}

_COMPETITION = {"type": "string", "enum": ["Low", "Medium", "High"]}

KEYWORD_METRICS_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {
    "volume": {"type": "string"},
    "difficulty": {"type": "integer"},
    "cpc": {"type": "string"},
    "competition": _COMPETITION,
    "intent": {"type": "string", "enum": ["Informational", "Transactional", "Commercial", "Navigational"]},
  },
  "required": ["volume", "difficulty", "cpc", "competition", "intent"],
}

_KEYWORD_ROW = {
  "type": "object",
  "properties": {"term": {"type": "string"}, "volume": {"type": "string"}, "difficulty": {"type": "integer"}, "cpc": {"type": "string"}, "competition": _COMPETITION},
  "required": ["term", "volume", "difficulty"],
}

BULK_KEYWORD_METRICS_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {"keywords": {"type": "array", "items": _KEYWORD_ROW}},
  "required": ["keywords"],
}

KEYWORD_RESEARCH_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {"keywords": {"type": "array", "items": _KEYWORD_ROW}, "questions": {"type": "array", "items": {"type": "string"}}},
  "required": ["keywords", "questions"],
}

COMPETITOR_ANALYSIS_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {
    "avgWordCount": {"type": "integer"},
    "avgImageCount": {"type": "integer"},
    "commonKeywords": {"type": "array", "items": {"type": "string"}},
    "missingTopics": {"type": "array", "items": {"type": "string"}},
    "actionableAdvice": {"type": "string"},
    "topCompetitors": {"type": "array", "items": {"type": "object", "properties": {"title": {"type": "string"}, "url": {"type": "string"}}, "required": ["title", "url"]}},
  },
  "required": ["avgWordCount", "avgImageCount", "commonKeywords", "missingTopics", "actionableAdvice", "topCompetitors"],
}

SUPER_PAGE_STRUCTURE_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {
    "structure": {
      "type": "array",
      "items": {
        "type": "object",
        "properties": {"type": {"type": "string", "enum": ["h2", "h3"]}, "heading": {"type": "string"}, "intent": {"type": "string"}},
        "required": ["type", "heading", "intent"],
      },
    },
  },
  "required": ["structure"],
}

FAQ_ANSWERS_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {"faqs": {"type": "array", "items": {"type": "object", "properties": {"question": {"type": "string"}, "answer": {"type": "string"}}, "required": ["question", "answer"]}}},
  "required": ["faqs"],
}

SEO_GUIDELINES_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {"terms": {"type": "array", "items": {"type": "object", "properties": {"term": {"type": "string"}, "targetCount": {"type": "integer"}}, "required": ["term", "targetCount"]}}},
  "required": ["terms"],
}
