"""Slash command ingress - validate, deduplicate, enqueue, acknowledge."""

import json
from typing import Any, Optional
from pydantic import ValidationError
from src.models.command import SlashCommand
from src.services.chat_client import ChatClient
from src.services.command_pipeline import EXECUTE_COMMAND_JOB
from src.services.event_guard import DuplicateEventGuard, generate_event_id
from src.services.job_queue import JobDispatcher
from src.utils.logging import get_structured_logger, mask_user_id, sanitize_message_text

logger = get_structured_logger(__name__)

HELP_WORDS = ("", "help")


def usage_text(command: str, locale: Optional[str]) -> str:
    if locale == "ja-JP":
        return f"*使い方*\n* {command} [url|検索ワード]\n* {command} help"
    return f"*Usage*\n* {command} [url|word]\n* {command} help"


def wait_text(locale: Optional[str]) -> str:
    if locale == "ja-JP":
        return "しばらくお待ちください。"
    return "Please wait."


def json_response(status: int, body: Optional[dict[str, Any]], headers: Optional[dict[str, str]] = None) -> dict:
    """Vercel-style response dict; a None body means an empty acknowledgment."""
    response_headers = {"Content-Type": "application/json"} if body is not None else {}
    response_headers.update(headers or {})
    return {
        "statusCode": status,
        "headers": response_headers,
        "body": json.dumps(body, ensure_ascii=False) if body is not None else "",
    }


def ephemeral(text: str) -> dict:
    return json_response(200, {"response_type": "ephemeral", "text": text})


async def resolve_locale(chat_client: ChatClient, user_id: str) -> Optional[str]:
    """User's Slack locale, or None when the lookup fails."""
    try:
        return await chat_client.get_user_locale(user_id)
    except Exception as e:
        logger.warning("Locale lookup failed, using default", slack_user_id=mask_user_id(user_id), error=str(e))
        return None


async def handle_slash_command(
    form: dict,
    guard: DuplicateEventGuard,
    dispatcher: JobDispatcher,
    chat_client: ChatClient,
) -> dict:
    """
    Fast phase of a slash command.

    Only validates, deduplicates and enqueues; the work itself runs later in
    the job processor. A duplicate delivery gets an empty 200.
    """
    try:
        command = SlashCommand.from_form(form)
    except ValidationError as e:
        logger.warning("Malformed slash command", error=str(e))
        return json_response(400, {"error": "malformed slash command"})

    event_id = generate_event_id(form)
    if not await guard.accept(event_id):
        return json_response(200, None, {"X-Slack-Ignored-Retry": "true"})

    locale = await resolve_locale(chat_client, command.user_id)

    logger.info(
        "Slash command received",
        command=command.command,
        channel_id=command.channel_id,
        slack_user_id=mask_user_id(command.user_id),
        text_preview=sanitize_message_text(command.text, max_length=100),
        locale=locale,
        event_id=event_id,
    )

    if command.text in HELP_WORDS:
        return ephemeral(usage_text(command.command, locale))

    try:
        await dispatcher.enqueue(EXECUTE_COMMAND_JOB, {"command": command.model_dump(), "locale": locale})
    except Exception:
        await guard.release(event_id)
        raise
    return ephemeral(wait_text(locale))
