# money_manager/services/llm.py
#
# Ollama serves an OpenAI-compatible API under /v1, so the regular openai
# client talks to it. The api_key is required by the client but ignored by
# Ollama.

import logging
from typing import List, Optional

from openai import OpenAI, OpenAIError

from money_manager.config import LLM_STATUS_TIMEOUT_SEC, LLM_TIMEOUT_SEC, OLLAMA_API_URL, OLLAMA_MODEL

logger = logging.getLogger(__name__)


class LLMOfflineError(RuntimeError):
    """The model host is unreachable or returned nothing usable."""


def _client(timeout: float) -> OpenAI:
    return OpenAI(
        base_url=f"{OLLAMA_API_URL}/v1",
        api_key="ollama",
        timeout=timeout,
        max_retries=0,
    )


def list_models() -> List[str]:
    try:
        page = _client(LLM_STATUS_TIMEOUT_SEC).models.list()
    except OpenAIError as e:
        raise LLMOfflineError(str(e)) from e
    return [m.id for m in page.data]


def check_status() -> bool:
    try:
        list_models()
    except LLMOfflineError:
        return False
    return True


def query_llm(
    messages: List[dict],
    model: Optional[str] = None,
    max_tokens: int = 256,
    temperature: float = 0.7,
) -> str:
    model = model or OLLAMA_MODEL
    logger.info("Querying model %s", model)
    try:
        resp = _client(LLM_TIMEOUT_SEC).chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
    except OpenAIError as e:
        logger.warning("Model host call failed: %s", e)
        raise LLMOfflineError(str(e)) from e

    text = (resp.choices[0].message.content or "").strip() if resp.choices else ""
    if not text:
        raise LLMOfflineError("empty response from model host")
    return text
