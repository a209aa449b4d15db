"""LLM layer for the idea-validation pipeline.

Stages talk to language models through :class:`ChatLLM`, a thin async
adapter over a LangChain ``BaseChatModel``:

* ``complete(system, user)`` -- system + user prompt, used for planning
  and per-stage analysis.
* ``generate(prompt)`` -- single user prompt, used for synthesis.

Both return the plain response text.  Parsing is the caller's concern (see
:mod:`idea_validator.services.extraction`).
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from idea_validator.infrastructure.llm.factory import ChatModelFactory

logger = logging.getLogger(__name__)


def message_text(message: BaseMessage) -> str:
    """Flatten a chat message's content to a string.

    Some providers return a list of content blocks instead of a string.
    """
    content: Any = message.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts)


class ChatLLM:
    """Async text-in/text-out adapter over a LangChain chat model.

    Parameters
    ----------
    model:
        Any ``BaseChatModel`` (e.g. ``ChatOpenAI``, ``ChatGoogleGenerativeAI``).
    label:
        Short display name used in progress events, e.g. ``"GPT-4o-mini"``.
    """

    def __init__(self, model: BaseChatModel, label: str = "") -> None:
        self.model = model
        self.label = label or getattr(model, "model_name", "") or type(model).__name__

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        response = await self.model.ainvoke(
            [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        )
        text = message_text(response)
        logger.debug("%s: %d chars", self.label, len(text))
        return text

    async def generate(self, prompt: str) -> str:
        response = await self.model.ainvoke([HumanMessage(content=prompt)])
        text = message_text(response)
        logger.debug("%s: %d chars", self.label, len(text))
        return text

    def __repr__(self) -> str:
        return f"ChatLLM(label={self.label!r})"


__all__ = ["ChatLLM", "ChatModelFactory", "message_text"]
