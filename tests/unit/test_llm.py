import asyncio

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from rag_delegator.llm import (
    LLM_ERROR_TEXT,
    ChatModelLanguageModel,
    LLMReply,
    TemplateLanguageModel,
    create_language_model,
)


class _ChatModel:
    def __init__(self, *, reply: object = None, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[list[object]] = []

    async def ainvoke(self, messages: list[object]) -> object:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply


def _grounded(context: str) -> list[object]:
    return [SystemMessage(content=f"Answer from context.\n\nContext:\n{context}"), HumanMessage(content="q")]


def test_template_model_answers_from_context_topic() -> None:
    model = TemplateLanguageModel()

    ml = asyncio.run(model.generate(_grounded("Question: What is machine learning?")))
    nn = asyncio.run(model.generate(_grounded("Question: How does a neural network work?")))
    other = asyncio.run(model.generate(_grounded("Question: What is a compiler?")))

    assert ml.content.startswith("Machine learning is a subset of artificial intelligence")
    assert nn.content.startswith("A neural network is a series of algorithms")
    assert other.content.startswith("Based on the provided context")


def test_template_model_without_context_gives_direct_reply() -> None:
    reply = asyncio.run(TemplateLanguageModel().generate([HumanMessage(content="hi")]))

    assert reply.content.startswith("I understand your query.")


def test_chat_model_reply_is_extracted() -> None:
    chat_model = _ChatModel(reply=AIMessage(content="  grounded answer "))
    model = ChatModelLanguageModel(chat_model)

    reply = asyncio.run(model.generate([HumanMessage(content="q")]))

    assert reply == LLMReply(content="grounded answer")
    assert len(chat_model.calls) == 1


def test_chat_model_list_content_is_joined() -> None:
    chat_model = _ChatModel(reply=AIMessage(content=[{"type": "text", "text": "part one"}, "two"]))

    reply = asyncio.run(ChatModelLanguageModel(chat_model).generate([HumanMessage(content="q")]))

    assert reply.content == "part one two"


@pytest.mark.parametrize("message", ["Error 429: Too Many Requests", "Quota exceeded", "rate limit hit"])
def test_quota_errors_degrade_to_template_model(message: str) -> None:
    model = ChatModelLanguageModel(_ChatModel(error=RuntimeError(message)))

    reply = asyncio.run(model.generate(_grounded("machine learning")))

    assert reply.content.startswith("Machine learning is a subset")


def test_other_errors_return_fixed_text() -> None:
    model = ChatModelLanguageModel(_ChatModel(error=ConnectionError("connection refused")))

    reply = asyncio.run(model.generate([HumanMessage(content="q")]))

    assert reply.content == LLM_ERROR_TEXT


def test_factory_uses_template_without_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("DISABLE_LLM_API", raising=False)

    assert isinstance(create_language_model(), TemplateLanguageModel)


def test_factory_respects_disable_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("DISABLE_LLM_API", "true")

    assert isinstance(create_language_model(), TemplateLanguageModel)
