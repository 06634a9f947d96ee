"""Royal news diary: persona rewrite requests, response normalization, fallback."""

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .fireworks import FireworksClient
from .logging_config import create_execution_logger
from .models import ArticleRecord
from .prompts import (
    NEWS_DIARY_SYSTEM_PROMPT,
    NEWS_DIARY_TEMPLATE_FILE,
    load_prompt_template,
    news_user_prompt,
)

MAX_ENTRIES = 3

# A single fenced block; the body may not contain another fence
CODE_FENCE_PATTERN = re.compile(
    r"^```[\w-]*[ \t]*\n?((?:(?!```).)*?)\n?```$", re.DOTALL
)

FALLBACK_TEMPLATES = (
    'Royal Diary, Entry {number}: The headlines proclaim "{title}" — and once '
    "again the whole world is talking about me. The fake news tried to spin it, "
    "but everyone knows it was a tremendous victory. Nobody has ever seen "
    "winning like this. Believe me!",
    'Dear Diary, today they wrote "{title}" — a beautiful headline, maybe the '
    "most beautiful ever written. My enemies are very upset, very sad. The "
    "people love it, and the crowds are bigger than ever.",
    'Royal Proclamation {number}: I read "{title}" from my golden throne and '
    "smiled — they said it couldn't be done. We did it, and we did it big. "
    "History will call this the greatest week of all time.",
)

GENERIC_FALLBACK_ENTRY = (
    "Dear Diary, the news wires are quiet today — clearly still recovering "
    "from my tremendous winning streak. I spent the day being magnificent, as "
    "usual. Tomorrow brings even bigger victories. Believe me!"
)


class DiaryWriter:
    """Asks the generation service to rewrite headlines as diary entries."""

    def __init__(self, client: FireworksClient, execution_id: str | None = None):
        self.client = client
        self.logger = create_execution_logger("diary_writer", execution_id)
        self.system_prompt = load_prompt_template(
            NEWS_DIARY_TEMPLATE_FILE, NEWS_DIARY_SYSTEM_PROMPT, self.logger
        )

    def build_messages(self, articles: list[ArticleRecord]) -> list[dict[str, str]]:
        """Build the system and user messages for up to three articles."""
        article_summary = "\n\n".join(
            f"Item {index}\nTitle: {article.title}\nLink: {article.link}"
            for index, article in enumerate(articles[:MAX_ENTRIES], start=1)
        )
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": news_user_prompt(article_summary)},
        ]

    def write_entries(self, articles: list[ArticleRecord]) -> str:
        """Return the raw model content for the given articles.

        Raises:
            GenerationError: If the service answers with a non-success status
            EmptyGenerationError: If the service returns no content
        """
        self.logger.info("Requesting diary entries", articles_count=len(articles))
        return self.client.complete(
            self.build_messages(articles),
            temperature=self.client.config.temperature,
        )


class ContentShape(str, Enum):
    """Shapes the model content can take."""

    ARRAY = "array"
    ENTRIES_OBJECT = "entries-object"
    OBJECT = "object"
    SCALAR = "scalar"
    RAW_TEXT = "raw-text"


@dataclass(frozen=True)
class ParsedContent:
    """Model content classified by shape, with the values to stringify."""

    shape: ContentShape
    values: tuple[Any, ...]


def strip_code_fence(raw: str) -> str:
    """Remove a Markdown code fence wrapping the whole payload."""
    text = raw.strip()
    match = CODE_FENCE_PATTERN.match(text)
    return match.group(1).strip() if match else text


def parse_content(raw: str) -> ParsedContent:
    """Classify raw model content into exactly one ``ContentShape``.

    A code fence is only unwrapped when its body is JSON; anything else is
    kept verbatim as raw text.
    """
    try:
        parsed = json.loads(strip_code_fence(raw))
    except (ValueError, RecursionError):
        return ParsedContent(ContentShape.RAW_TEXT, (raw.strip(),))

    if isinstance(parsed, list):
        return ParsedContent(ContentShape.ARRAY, tuple(parsed))

    if isinstance(parsed, dict):
        entries = parsed.get("entries")
        if isinstance(entries, list):
            return ParsedContent(ContentShape.ENTRIES_OBJECT, tuple(entries))

        flattened = []
        for value in parsed.values():
            if isinstance(value, list):
                flattened.extend(value)
            else:
                flattened.append(value)
        return ParsedContent(ContentShape.OBJECT, tuple(flattened))

    return ParsedContent(ContentShape.SCALAR, (parsed,))


def stringify(value: Any) -> str:
    """Render a JSON value as entry text; non-strings render as their JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def normalize_entries(raw: str) -> list[str]:
    """Turn model content of any shape into trimmed, non-empty entries.

    Never raises: unparseable content becomes a single raw-text entry and
    content without usable values yields an empty list.
    """
    if not isinstance(raw, str):
        raw = "" if raw is None else str(raw)

    parsed = parse_content(raw)
    entries = (stringify(value).strip() for value in parsed.values)
    return [entry for entry in entries if entry]


def fallback_entries(articles: list[ArticleRecord]) -> list[str]:
    """Templated entries for up to three articles, or one generic entry."""
    if not articles:
        return [GENERIC_FALLBACK_ENTRY]

    return [
        FALLBACK_TEMPLATES[index % len(FALLBACK_TEMPLATES)].format(
            number=index + 1, title=article.title
        )
        for index, article in enumerate(articles[:MAX_ENTRIES])
    ]
