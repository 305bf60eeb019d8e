"""Chat-model initialisation — single place to swap providers.

Any OpenAI-compatible ``/v1/chat/completions`` endpoint works: OpenRouter
(the default base URL), the OpenAI cloud (empty base URL), or a vLLM
server. ``ChatOpenAI`` is used unchanged for all of them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from langchain_openai import ChatOpenAI

from university_rag.config import settings

if TYPE_CHECKING:
    from university_rag.config import Settings

logger = logging.getLogger(__name__)


def get_llm(cfg: Settings = settings) -> ChatOpenAI:
    """Return the configured chat model.

    Retries are disabled: a failed generation call is a terminal error for
    the request. The per-call timeout comes from ``llm_timeout_seconds``.
    """
    kwargs: dict = {
        "model": cfg.llm_model_name,
        "temperature": cfg.llm_temperature,
        "timeout": cfg.llm_timeout_seconds,
        "max_retries": 0,
        # ChatOpenAI requires a non-empty key even for keyless local servers.
        "api_key": cfg.llm_api_key or "EMPTY",
    }
    if cfg.llm_base_url:
        logger.info("Using chat endpoint: %s", cfg.llm_base_url)
        kwargs["base_url"] = cfg.llm_base_url

    return ChatOpenAI(**kwargs)
