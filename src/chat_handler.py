"""Lambda handler proxying chat threads to the persona model."""

import json
import os
from datetime import UTC, datetime
from typing import Any

from .config import Config
from .errors import (
    ConfigurationError,
    EmptyGenerationError,
    GenerationError,
    InvalidRequestError,
    MethodNotAllowedError,
)
from .fireworks import FireworksClient
from .logging_config import create_execution_logger, setup_structured_logging
from .models import ChatMessage, ChatRequest
from .news_handler import json_response, require_method
from .prompts import CHAT_SYSTEM_PROMPT, CHAT_TEMPLATE_FILE, load_prompt_template

setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))

CHAT_ROLES = ("user", "assistant")


def chat_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Forward the caller's chat thread behind the persona system prompt.

    Args:
        event: Lambda proxy event with a JSON body ``{"messages": [...]}``
        context: Lambda context object

    Returns:
        Lambda proxy response with ``{"reply": ...}`` or ``{"error": ...}``
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("chat_handler", execution_id)
    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
    )

    try:
        require_method(event, "POST")
        generation_config = Config().get_generation_config(execution_id)
        chat_request = parse_chat_request((event or {}).get("body"))
    except MethodNotAllowedError as e:
        main_logger.warning(str(e))
        main_logger.log_execution_end(success=False, status_code=405)
        return json_response(405, {"error": "Method Not Allowed"})
    except ConfigurationError as e:
        main_logger.error(f"Configuration error: {e}", error=str(e))
        main_logger.log_execution_end(success=False, status_code=500)
        return json_response(500, {"error": str(e)})
    except InvalidRequestError as e:
        main_logger.warning(f"Failed to parse request body: {e}", error=str(e))
        main_logger.log_execution_end(success=False, status_code=400)
        return json_response(400, {"error": "Invalid request body."})

    system_prompt = load_prompt_template(CHAT_TEMPLATE_FILE, CHAT_SYSTEM_PROMPT, main_logger)
    messages = [{"role": "system", "content": system_prompt}]
    messages.extend(message.to_dict() for message in chat_request.messages)

    try:
        client = FireworksClient(generation_config, execution_id=execution_id)
        reply = client.complete(messages).strip()
    except GenerationError as e:
        main_logger.error(
            f"Fireworks chat error: {e.status}", status_code=e.status, error=e.body
        )
        main_logger.log_execution_end(success=False, status_code=502)
        return json_response(
            502,
            {"error": "Failed to fetch response from Fireworks AI.", "details": e.body},
        )
    except EmptyGenerationError:
        main_logger.log_execution_end(success=False, status_code=502)
        return json_response(502, {"error": "Empty response from Fireworks AI."})
    except Exception as e:
        main_logger.error(f"Unexpected error contacting Fireworks AI: {e}", error=str(e))
        main_logger.log_execution_end(success=False, status_code=500)
        return json_response(500, {"error": "Unexpected error retrieving response."})

    main_logger.log_execution_end(success=True, reply_length=len(reply))
    return json_response(200, {"reply": reply})


def parse_chat_request(body: str | None) -> ChatRequest:
    """Parse the request body, keeping only well-formed user/assistant turns.

    Raises:
        InvalidRequestError: If the body is not valid JSON
    """
    if not body:
        return ChatRequest()

    try:
        payload = json.loads(body)
    except (ValueError, TypeError) as e:
        raise InvalidRequestError(str(e)) from e

    raw_messages = payload.get("messages") if isinstance(payload, dict) else None
    if not isinstance(raw_messages, list):
        return ChatRequest()

    messages = [
        ChatMessage(role=message["role"], content=message["content"])
        for message in raw_messages
        if isinstance(message, dict)
        and message.get("role") in CHAT_ROLES
        and isinstance(message.get("content"), str)
    ]
    return ChatRequest(messages=messages)
