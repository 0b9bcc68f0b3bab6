"""Schema package exports."""

from .article import ArticleConfig, ArticleSize
from .wordpress import WordPressConfig

__all__ = ["ArticleConfig", "ArticleSize", "WordPressConfig"]
