"""Lambda handler serving the royal news diary."""

import json
import os
from datetime import UTC, datetime
from typing import Any

import boto3

from .config import Config, MetricsConfig
from .diary import MAX_ENTRIES, DiaryWriter, fallback_entries, normalize_entries
from .errors import (
    ConfigurationError,
    EmptyGenerationError,
    GenerationError,
    MethodNotAllowedError,
)
from .fireworks import FireworksClient
from .logging_config import ExecutionLogger, create_execution_logger, setup_structured_logging
from .models import ArticleRecord, NewsDiary, ResponseMeta, Source, Stage
from .rss import FeedProcessor

setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))

JSON_HEADERS = {"Content-Type": "application/json"}
ERROR_PREVIEW_LIMIT = 1000
CONTENT_PREVIEW_LIMIT = 200


def news_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Build the news diary for a GET request.

    Content-generation failures are absorbed into fallback entries and
    reported in ``meta``; only a wrong method (405) or missing configuration
    (500) produce an error status.

    Args:
        event: Lambda proxy event
        context: Lambda context object

    Returns:
        Lambda proxy response with ``entries``, ``updatedAt`` and ``meta``
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("news_handler", execution_id)
    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )

    try:
        require_method(event, "GET")
        config = Config()
        generation_config = config.get_generation_config(execution_id)
    except MethodNotAllowedError as e:
        main_logger.warning(str(e))
        main_logger.log_execution_end(success=False, status_code=405)
        return json_response(405, {"error": "Method Not Allowed"})
    except ConfigurationError as e:
        main_logger.error(f"Configuration error: {e}", error=str(e))
        main_logger.log_execution_end(success=False, status_code=500)
        return json_response(500, {"error": str(e)})

    main_logger.info("Configuration initialized", rss_url=config.rss_url)

    feed_processor = FeedProcessor(config.get_feed_config(), execution_id=execution_id)
    diary_writer = DiaryWriter(
        FireworksClient(generation_config, execution_id=execution_id),
        execution_id=execution_id,
    )
    diary = build_news_diary(feed_processor, diary_writer, main_logger)

    send_cloudwatch_metrics(diary, config.get_metrics_config(), execution_id)

    main_logger.log_execution_end(
        success=not diary.used_fallback,
        source=diary.meta.source.value,
        stage=diary.meta.stage.value,
    )
    return json_response(
        200,
        {
            "entries": diary.entries,
            "updatedAt": iso_timestamp(),
            "meta": diary.meta.to_dict(),
        },
    )


def build_news_diary(
    feed_processor: FeedProcessor,
    diary_writer: DiaryWriter,
    logger: ExecutionLogger,
) -> NewsDiary:
    """
    Run the fetch, generate and normalize pipeline.

    Every failure after configuration is turned into templated entries, so the
    result always holds at least one entry and fully populated metadata.
    """
    meta = ResponseMeta(
        rss_url=feed_processor.config.url,
        model=diary_writer.client.config.model_id,
    )
    articles: list[ArticleRecord] = []

    def fallback(source: Source, reason: str) -> NewsDiary:
        meta.source = source
        meta.article_count = len(articles)
        logger.log_fallback(source.value, meta.stage.value, reason)
        return NewsDiary(entries=fallback_entries(articles), meta=meta)

    try:
        meta.stage = Stage.FETCH_RSS
        logger.log_stage(meta.stage.value, rss_url=meta.rss_url)
        articles = feed_processor.fetch_articles()
        meta.article_count = len(articles)

        if not articles:
            return fallback(Source.FALLBACK_EMPTY_RSS, "Feed contained no articles")

        meta.stage = Stage.CALL_AI
        logger.log_stage(meta.stage.value)
        try:
            content = diary_writer.write_entries(articles)
        except GenerationError as e:
            meta.status = e.status
            meta.error = e.body[:ERROR_PREVIEW_LIMIT]
            return fallback(
                Source.FALLBACK_AI_ERROR, f"Generation service returned {e.status}"
            )
        except EmptyGenerationError as e:
            meta.error = str(e)
            return fallback(Source.FALLBACK_AI_EMPTY, str(e))

        entries = normalize_entries(content)
        if not entries:
            meta.fallback_reason = "Model response contained no usable entries"
            meta.raw_content_preview = content[:CONTENT_PREVIEW_LIMIT]
            return fallback(Source.FALLBACK_AI_FORMAT, meta.fallback_reason)

        meta.stage = Stage.COMPLETE
        meta.source = Source.AI
        logger.log_stage(meta.stage.value, source=meta.source.value)
        return NewsDiary(entries=entries[:MAX_ENTRIES], meta=meta)

    except Exception as e:
        logger.error(
            f"Unexpected error building news diary: {e}",
            stage=meta.stage.value,
            error=str(e),
        )
        meta.error = str(e) or type(e).__name__
        meta.error_type = type(e).__name__
        status = getattr(e, "status", None)
        if isinstance(status, int):
            meta.status = status
        return fallback(Source.FALLBACK_ERROR, meta.error)


def require_method(event: dict[str, Any], allowed: str) -> None:
    """Raise MethodNotAllowedError unless the event uses ``allowed``.

    Events without an HTTP method (direct invocations) are accepted.
    """
    method = (event or {}).get("httpMethod")
    if method and str(method).upper() != allowed:
        raise MethodNotAllowedError(method, allowed)


def json_response(status_code: int, body: dict[str, Any]) -> dict[str, Any]:
    """Lambda proxy response with a JSON body."""
    return {
        "statusCode": status_code,
        "headers": dict(JSON_HEADERS),
        "body": json.dumps(body, ensure_ascii=False),
    }


def iso_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def send_cloudwatch_metrics(
    diary: NewsDiary, metrics_config: MetricsConfig, execution_id: str
) -> None:
    """
    Send per-invocation diary metrics to CloudWatch.

    Args:
        diary: Pipeline result
        metrics_config: Namespace, region and on/off switch
        execution_id: Execution ID for logging context
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)
    metrics = {
        "articles_fetched": diary.meta.article_count,
        "entries_served": len(diary.entries),
        "source": diary.meta.source.value,
        "stage": diary.meta.stage.value,
    }
    metrics_logger.log_metrics(metrics)

    if not metrics_config.enabled:
        return

    try:
        cloudwatch = boto3.client("cloudwatch", region_name=metrics_config.region)
        dimensions = [{"Name": "Source", "Value": diary.meta.source.value}]
        metric_data = [
            {
                "MetricName": "ArticlesFetched",
                "Value": diary.meta.article_count,
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "EntriesServed",
                "Value": len(diary.entries),
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "FallbackUsed",
                "Value": 1 if diary.used_fallback else 0,
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "AiSuccess",
                "Value": 0 if diary.used_fallback else 1,
                "Unit": "Count",
                "Dimensions": dimensions,
            },
        ]
        cloudwatch.put_metric_data(
            Namespace=metrics_config.namespace, MetricData=metric_data
        )
        metrics_logger.info(
            "Successfully sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace=metrics_config.namespace,
        )
    except Exception as e:
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
        # Don't raise - metrics failure shouldn't break the response
