from __future__ import annotations

import json

import pytest

from astrawrite.ai.json_parser import parse_json_with_fallback
from astrawrite.ai.providers.base import AIModel


def test_parse_json_strict_input() -> None:
  assert parse_json_with_fallback('{"score": 80}') == {"score": 80}


def test_parse_json_ignores_surrounding_chatter() -> None:
  raw = 'Here is the plan:\n{"pillarPage": {"title": "A {braced} title"}, "clusters": []}\nHope this helps!'
  assert parse_json_with_fallback(raw) == {"pillarPage": {"title": "A {braced} title"}, "clusters": []}


def test_parse_json_drops_trailing_commas() -> None:
  assert parse_json_with_fallback('{"tips": ["a", "b",],}') == {"tips": ["a", "b"]}


def test_parse_json_raises_when_nothing_parses() -> None:
  with pytest.raises(json.JSONDecodeError):
    parse_json_with_fallback("no json here")


def test_strip_json_fences() -> None:
  assert AIModel.strip_json_fences('```json\n{"a": 1}\n```') == '{"a": 1}'


def test_parse_json_reads_fenced_block_inside_prose() -> None:
  raw = 'Sure! Here are the tags:\n```json\n{"title": "Tea", "slug": "tea"}\n```\nLet me know if you need more.'
  assert parse_json_with_fallback(raw) == {"title": "Tea", "slug": "tea"}


def test_parse_json_skips_brackets_in_leading_prose() -> None:
  assert parse_json_with_fallback('Scores [see below]: {"score": 72, "tips": []}') == {"score": 72, "tips": []}


def test_parse_json_returns_top_level_arrays() -> None:
  assert parse_json_with_fallback('Metrics:\n[{"term": "tea", "difficulty": 30}]') == [{"term": "tea", "difficulty": 30}]
