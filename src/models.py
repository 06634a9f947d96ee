"""Data models for the news diary and chat handlers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Source(str, Enum):
    """Where the entries of a news response came from."""

    AI = "ai"
    FALLBACK_EMPTY_RSS = "fallback-empty-rss"
    FALLBACK_AI_ERROR = "fallback-ai-error"
    FALLBACK_AI_EMPTY = "fallback-ai-empty"
    FALLBACK_AI_FORMAT = "fallback-ai-format"
    FALLBACK_ERROR = "fallback-error"


class Stage(str, Enum):
    """Pipeline stage reached when the response was built."""

    INIT = "init"
    FETCH_RSS = "fetch-rss"
    CALL_AI = "call-ai"
    COMPLETE = "complete"


@dataclass
class ArticleRecord:
    """A single news item extracted from the feed."""

    title: str
    link: str


@dataclass
class ResponseMeta:
    """Diagnostic metadata attached to every news response."""

    rss_url: str
    model: str
    source: Source = Source.FALLBACK_ERROR
    stage: Stage = Stage.INIT
    article_count: int = 0
    error: str | None = None
    error_type: str | None = None
    status: int | None = None
    fallback_reason: str | None = None
    raw_content_preview: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON shape, omitting unset fields."""
        data: dict[str, Any] = {
            "rssUrl": self.rss_url,
            "model": self.model,
            "source": self.source.value,
            "stage": self.stage.value,
            "articleCount": self.article_count,
        }
        optional = {
            "error": self.error,
            "errorType": self.error_type,
            "status": self.status,
            "fallbackReason": self.fallback_reason,
            "rawContentPreview": self.raw_content_preview,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data


@dataclass
class NewsDiary:
    """Entries produced by the news pipeline plus their metadata."""

    entries: list[str]
    meta: ResponseMeta

    @property
    def used_fallback(self) -> bool:
        return self.meta.source is not Source.AI


@dataclass
class ChatMessage:
    """One turn of a chat thread."""

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ChatRequest:
    """Validated chat request body."""

    messages: list[ChatMessage] = field(default_factory=list)
