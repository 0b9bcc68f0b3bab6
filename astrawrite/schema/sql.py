from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from astrawrite.core.database import Base


class GeneratedContent(Base):
  __tablename__ = "generated_content"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  title: Mapped[str] = mapped_column(Text, nullable=False, default="")
  content: Mapped[str] = mapped_column(Text, nullable=False, default="")
  kind: Mapped[str] = mapped_column(String, nullable=False, index=True)
  status: Mapped[str] = mapped_column(String, nullable=False, index=True)
  progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
  wp_url: Mapped[str | None] = mapped_column(Text, nullable=True)
  metadata_json: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
  created_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)


class ApiKey(Base):
  __tablename__ = "api_keys"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  label: Mapped[str] = mapped_column(String, nullable=False)
  key: Mapped[str] = mapped_column(Text, nullable=False)
  provider: Mapped[str] = mapped_column(String, nullable=False)
  usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  articles_generated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  last_used: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
  created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
