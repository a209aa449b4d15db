"""Chat-model factory for the idea-validation pipeline.

Registry-based factory creating LangChain chat models by provider name.
Built-in providers are registered as lazy constructors so that the provider
integration package is imported only when that provider is requested.

Usage::

    factory = ChatModelFactory()
    planner = factory.create("openai", api_key="sk-...", model="gpt-4o-mini")
    synthesizer = factory.create("gemini", api_key="...", model="gemini-2.0-flash")
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)

ModelConstructor = Callable[..., BaseChatModel]

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "gemini": "gemini-2.0-flash",
}


class ChatModelFactory:
    """Registry-based factory for chat model instances.

    Parameters
    ----------
    auto_discover:
        If ``True`` (default), pre-register the built-in providers.
    """

    def __init__(self, auto_discover: bool = True) -> None:
        self._registry: dict[str, ModelConstructor] = {}

        if auto_discover:
            self._registry["openai"] = self._create_openai
            self._registry["gemini"] = self._create_gemini

    def register(
        self,
        name: str,
        constructor: ModelConstructor,
        overwrite: bool = False,
    ) -> None:
        """Register a model constructor under *name*.

        Raises
        ------
        ValueError
            If the name is already registered and ``overwrite`` is ``False``.
        """
        if name in self._registry and not overwrite:
            raise ValueError(
                f"Provider {name!r} is already registered. "
                f"Use overwrite=True to replace it."
            )
        self._registry[name] = constructor
        logger.debug("ChatModelFactory: registered provider %r", name)

    def create(self, provider_name: str, **kwargs: Any) -> BaseChatModel:
        """Create a chat model by provider name.

        Raises
        ------
        ValueError
            If the provider name is not registered.
        """
        constructor = self._registry.get(provider_name)
        if constructor is None:
            available = ", ".join(sorted(self._registry))
            raise ValueError(
                f"Unknown provider {provider_name!r}. "
                f"Available providers: {available}"
            )
        logger.info(
            "ChatModelFactory: creating %r with kwargs %s",
            provider_name,
            sorted(k for k in kwargs if k != "api_key"),
        )
        return constructor(**kwargs)

    @property
    def registered_providers(self) -> list[str]:
        return sorted(self._registry)

    @staticmethod
    def _create_openai(
        api_key: str = "",
        model: str = DEFAULT_MODELS["openai"],
        temperature: float = 0.3,
        **kwargs: Any,
    ) -> BaseChatModel:
        from langchain_openai import ChatOpenAI

        if api_key:
            kwargs["api_key"] = api_key
        return ChatOpenAI(model=model, temperature=temperature, **kwargs)

    @staticmethod
    def _create_gemini(
        api_key: str = "",
        model: str = DEFAULT_MODELS["gemini"],
        **kwargs: Any,
    ) -> BaseChatModel:
        from langchain_google_genai import ChatGoogleGenerativeAI

        if api_key:
            kwargs["google_api_key"] = api_key
        return ChatGoogleGenerativeAI(model=model, **kwargs)

    def __repr__(self) -> str:
        return f"ChatModelFactory(providers={self.registered_providers})"

    def __contains__(self, name: str) -> bool:
        return name in self._registry
