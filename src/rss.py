"""RSS feed fetching and article extraction."""

import re

import requests

from .config import FeedConfig
from .errors import FeedFetchError
from .logging_config import create_execution_logger
from .models import ArticleRecord

ITEM_PATTERN = re.compile(r"<item\b[^>]*>(.*?)</item\s*>", re.IGNORECASE | re.DOTALL)
CDATA_PATTERN = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
ENTITY_ONLY_PATTERN = re.compile(r"^(?:\s|&#?\w+;)*$")

# &amp; goes last so "&amp;lt;" decodes to "&lt;" and not "<"
HTML_ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&amp;", "&"),
)


class FeedProcessor:
    """Fetches the news feed and turns it into article records."""

    def __init__(
        self,
        config: FeedConfig | None = None,
        timeout: int | None = None,
        execution_id: str | None = None,
    ):
        """Initialize FeedProcessor with configuration.

        Args:
            config: Feed configuration (URL, User-Agent, article cap)
            timeout: HTTP request timeout in seconds, None for the client default
            execution_id: Execution ID for logging context
        """
        self.config = config or FeedConfig()
        self.timeout = timeout
        self.logger = create_execution_logger("feed_processor", execution_id)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

    def fetch_articles(self) -> list[ArticleRecord]:
        """Download the configured feed and extract its first articles.

        Raises:
            FeedFetchError: If the feed answers with a non-success status
            requests.RequestException: If the download itself fails
        """
        raw_feed = self.fetch_feed(self.config.url)
        articles = extract_articles(raw_feed)[: self.config.max_articles]
        self.logger.info(
            f"Extracted {len(articles)} articles",
            rss_url=self.config.url,
            articles_count=len(articles),
        )
        return articles

    def fetch_feed(self, feed_url: str) -> str:
        """Download raw feed markup."""
        self.logger.info("Downloading feed content", rss_url=feed_url)
        response = self.session.get(feed_url, timeout=self.timeout)

        if not response.ok:
            self.logger.error(
                f"Feed answered with status {response.status_code}",
                rss_url=feed_url,
                status_code=response.status_code,
            )
            raise FeedFetchError(response.status_code, response.text)

        self.logger.info(
            "Feed downloaded successfully",
            rss_url=feed_url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return response.text


def extract_articles(raw_feed: str) -> list[ArticleRecord]:
    """Extract every ``<item>`` block with a non-empty title, in feed order.

    The markup is matched with tolerant patterns instead of an XML parser, so
    feeds that are not well-formed still yield their items.
    """
    if not raw_feed:
        return []

    articles = []
    for match in ITEM_PATTERN.finditer(raw_feed):
        block = match.group(1)
        raw_title = get_tag(block, "title")
        if ENTITY_ONLY_PATTERN.match(raw_title):
            continue
        title = clean_text(raw_title)
        if not title:
            continue
        articles.append(
            ArticleRecord(title=title, link=clean_text(get_tag(block, "link")))
        )
    return articles


def get_tag(block: str, tag: str) -> str:
    """Return the raw inner markup of the first ``<tag>`` element in a block."""
    pattern = re.compile(
        rf"<{tag}\b[^>]*>(.*?)</{tag}\s*>", re.IGNORECASE | re.DOTALL
    )
    match = pattern.search(block)
    return match.group(1) if match else ""


def clean_text(value: str) -> str:
    """Unwrap CDATA sections, unescape entities outside them and trim."""
    if not value:
        return ""

    parts = []
    position = 0
    for match in CDATA_PATTERN.finditer(value):
        parts.append(decode_html(value[position : match.start()]))
        parts.append(match.group(1))
        position = match.end()
    parts.append(decode_html(value[position:]))
    return "".join(parts).strip()


def decode_html(value: str) -> str:
    """Unescape the five standard HTML entities."""
    if not value:
        return ""

    for entity, char in HTML_ENTITIES:
        value = value.replace(entity, char)
    return value
