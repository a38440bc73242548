"""Language-model clients used for grounded answers."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from langchain_core.messages import BaseMessage

logger = logging.getLogger(__name__)

LLM_ERROR_TEXT = "I encountered an error while processing your request. Please try again."

_QUOTA_MARKERS = ("429", "quota", "rate limit")

_MACHINE_LEARNING_ANSWER = (
    "Machine learning is a subset of artificial intelligence that enables computers to learn "
    "and improve from experience without being explicitly programmed. It uses algorithms to "
    "identify patterns in data and make predictions or decisions."
)
_NEURAL_NETWORK_ANSWER = (
    "A neural network is a series of algorithms that attempts to recognize underlying "
    "relationships in a set of data through a process that mimics the way the human brain "
    "operates."
)
_GENERIC_CONTEXT_ANSWER = (
    "Based on the provided context, I can help answer your question. The information "
    "suggests this is related to AI and machine learning concepts."
)
_GENERIC_DIRECT_ANSWER = (
    "I understand your query. Let me provide you with a direct answer based on my knowledge."
)


@dataclass(frozen=True, slots=True)
class LLMReply:
    content: str


class LanguageModel(Protocol):
    """Chat-style text generator. Implementations never raise."""

    async def generate(self, messages: Sequence[BaseMessage]) -> LLMReply:
        """Generate a reply to the given prompt messages."""


class TemplateLanguageModel:
    """Deterministic local generator used offline and on quota exhaustion.

    Grounded prompts (those carrying a `Context:` block) are answered from the
    topic of the context; anything else gets a generic direct reply.
    """

    async def generate(self, messages: Sequence[BaseMessage]) -> LLMReply:
        prompt = "\n".join(_message_text(message) for message in messages)
        if "Context:" not in prompt:
            return LLMReply(content=_GENERIC_DIRECT_ANSWER)

        context = prompt.split("Context:", 1)[1].lower()
        if "machine learning" in context:
            return LLMReply(content=_MACHINE_LEARNING_ANSWER)
        if "neural network" in context:
            return LLMReply(content=_NEURAL_NETWORK_ANSWER)
        return LLMReply(content=_GENERIC_CONTEXT_ANSWER)


class ChatModelLanguageModel:
    """Adapts a LangChain chat model to the `LanguageModel` contract."""

    def __init__(self, chat_model: Any, *, fallback: LanguageModel | None = None) -> None:
        self.chat_model = chat_model
        self.fallback = fallback if fallback is not None else TemplateLanguageModel()

    async def generate(self, messages: Sequence[BaseMessage]) -> LLMReply:
        try:
            result = await self.chat_model.ainvoke(list(messages))
        except Exception as exc:
            if _is_quota_error(exc):
                logger.warning("Chat model rate limited, using template model: %s", exc)
                return await self.fallback.generate(messages)
            logger.error("Chat model invocation failed: %s", exc)
            return LLMReply(content=LLM_ERROR_TEXT)
        return LLMReply(content=_extract_content(result))


def create_language_model() -> LanguageModel:
    """Build the language model from environment settings.

    `OPENAI_API_KEY` enables the OpenAI chat model (`OPENAI_MODEL`, default
    gpt-4o-mini). `DISABLE_LLM_API=true` forces the template model, which is
    also used when no key is configured.
    """

    if os.getenv("DISABLE_LLM_API", "").strip().lower() == "true":
        logger.info("LLM API disabled, using template language model")
        return TemplateLanguageModel()

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        logger.info("No OPENAI_API_KEY configured, using template language model")
        return TemplateLanguageModel()

    from langchain_openai import ChatOpenAI

    model = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    logger.info("Using OpenAI chat model %s", model)
    return ChatModelLanguageModel(ChatOpenAI(model=model, temperature=0))


def _is_quota_error(exc: Exception) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _QUOTA_MARKERS)


def _message_text(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for item in content:
        if isinstance(item, dict) and "text" in item:
            parts.append(str(item["text"]))
        else:
            parts.append(str(item))
    return " ".join(parts)


def _extract_content(result: Any) -> str:
    if isinstance(result, BaseMessage):
        return _message_text(result).strip()
    content = getattr(result, "content", result)
    return str(content).strip()
