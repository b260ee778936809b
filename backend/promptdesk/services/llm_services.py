import logging
from functools import lru_cache
from typing import Any, BinaryIO, Dict, List

import openai
from openai import OpenAI

from promptdesk.config import get_settings
from promptdesk.services.errors import UpstreamError

log = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _get_client() -> OpenAI:
    settings = get_settings()
    log.info(
        "Completion client: base_url=%s key_set=%s",
        settings.completion_base_url,
        bool(settings.completion_api_key),
    )
    # max_retries=0: a failed attempt fails the request
    return OpenAI(
        api_key=settings.completion_api_key,
        base_url=settings.completion_base_url,
        timeout=settings.completion_timeout,
        max_retries=0,
    )


def complete_chat(messages: List[Dict[str, str]]) -> str:
    """One blocking completion request; returns the first choice's text."""
    settings = get_settings()
    if not settings.completion_api_key:
        raise UpstreamError("Completion endpoint not configured")

    try:
        response = _get_client().chat.completions.create(
            model=settings.completion_model,
            messages=messages,
        )
    except openai.APITimeoutError as exc:
        raise UpstreamError("Completion endpoint timed out") from exc
    except openai.RateLimitError as exc:
        raise UpstreamError("Completion endpoint rate limited the request") from exc
    except openai.APIStatusError as exc:
        raise UpstreamError(f"Completion endpoint returned {exc.status_code}") from exc
    except openai.APIError as exc:
        raise UpstreamError(f"Completion endpoint error: {type(exc).__name__}") from exc

    choices = getattr(response, "choices", None)
    if not choices:
        raise UpstreamError("Completion response had no choices")
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if not isinstance(content, str):
        raise UpstreamError("Completion response had no message content")
    return content


@lru_cache(maxsize=1)
def _get_files_client() -> OpenAI:
    return OpenAI(api_key=get_settings().openai_api_key, max_retries=0)


def delete_remote_file(file_id: str) -> bool:
    """Best effort; returns False when the remote copy could not be removed."""
    if not get_settings().openai_api_key:
        return False
    try:
        _get_files_client().files.delete(file_id)
    except openai.APIError as exc:
        log.warning("Remote delete failed for file_id=%s: %s", file_id, exc)
        return False
    return True


def upload_remote_file(file_name: str, fileobj: BinaryIO) -> Any:
    """Push a file to the OpenAI Files API; returns the created file object."""
    if not get_settings().openai_api_key:
        raise UpstreamError("OpenAI API key not configured")
    try:
        return _get_files_client().files.create(
            file=(file_name, fileobj),
            purpose="assistants",
        )
    except openai.APIError as exc:
        log.warning("Remote upload failed for %s: %s", file_name, exc)
        raise UpstreamError("Failed to upload file to OpenAI") from exc
