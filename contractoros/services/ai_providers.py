"""AI provider selection with ordered fallback.

Every provider is reached through its OpenAI-compatible chat completions
endpoint, so a single ``AsyncOpenAI`` client type (one instance per provider,
each with its own ``base_url``) covers Gemini, Claude and OpenAI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from openai import AsyncOpenAI, OpenAIError

from contractoros.core.config import Settings, settings
from contractoros.core.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
ANTHROPIC_BASE_URL = "https://api.anthropic.com/v1/"


@dataclass(frozen=True)
class ProviderConfig:
    name: str
    display_name: str
    model: str
    api_key: Optional[str]
    cost_per_1k_tokens: float
    priority: int
    base_url: Optional[str] = None
    enabled: bool = True

    @property
    def available(self) -> bool:
        return self.enabled and bool(self.api_key)


@dataclass(frozen=True)
class CompletionResult:
    content: str
    provider: str
    model: str
    input_tokens: int
    output_tokens: int
    estimated_cost: float

    @property
    def model_key(self) -> str:
        return f"{self.provider}:{self.model}"


def build_provider_configs(cfg: Settings = settings) -> list[ProviderConfig]:
    return [
        ProviderConfig(
            name="gemini",
            display_name="Gemini",
            model=cfg.gemini_model,
            api_key=cfg.gemini_api_key,
            cost_per_1k_tokens=0.0,
            priority=1,
            base_url=GEMINI_BASE_URL,
        ),
        ProviderConfig(
            name="claude",
            display_name="Claude",
            model=cfg.claude_model,
            api_key=cfg.anthropic_api_key,
            cost_per_1k_tokens=0.009,
            priority=2,
            base_url=ANTHROPIC_BASE_URL,
        ),
        ProviderConfig(
            name="openai",
            display_name="OpenAI",
            model=cfg.openai_model,
            api_key=cfg.openai_api_key,
            cost_per_1k_tokens=0.01,
            priority=3,
        ),
    ]


ClientFactory = Callable[[ProviderConfig], Any]


def _default_client_factory(provider: ProviderConfig) -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=provider.api_key,
        base_url=provider.base_url,
        timeout=settings.openai_timeout,
    )


class ProviderManager:
    def __init__(
        self,
        providers: Iterable[ProviderConfig] | None = None,
        *,
        primary: str | None = None,
        max_fallback_attempts: int | None = None,
        max_tokens: int | None = None,
        client_factory: ClientFactory | None = None,
    ):
        configs = list(providers) if providers is not None else build_provider_configs()
        self._providers = {p.name: p for p in configs}
        self.primary = primary or settings.ai_primary_provider
        self.max_fallback_attempts = (
            max_fallback_attempts
            if max_fallback_attempts is not None
            else settings.ai_max_fallback_attempts
        )
        self.max_tokens = max_tokens or settings.ai_max_tokens
        self._client_factory = client_factory or _default_client_factory
        self._clients: dict[str, Any] = {}

    def _available(self) -> list[ProviderConfig]:
        return sorted(
            (p for p in self._providers.values() if p.available), key=lambda p: p.priority
        )

    def get_provider(self, name: str) -> Optional[ProviderConfig]:
        return self._providers.get(name)

    def get_active_provider(self) -> Optional[ProviderConfig]:
        primary = self._providers.get(self.primary)
        if primary and primary.available:
            return primary
        available = self._available()
        return available[0] if available else None

    def get_fallback_chain(self, exclude: Optional[str] = None) -> list[ProviderConfig]:
        chain = [p for p in self._available() if p.name != exclude]
        return chain[: self.max_fallback_attempts]

    def estimate_cost(self, provider: str, tokens: int) -> float:
        config = self._providers.get(provider)
        if config is None:
            return 0.0
        return round(tokens / 1000 * config.cost_per_1k_tokens, 6)

    def _client(self, provider: ProviderConfig):
        if provider.name not in self._clients:
            self._clients[provider.name] = self._client_factory(provider)
        return self._clients[provider.name]

    async def _call(self, provider: ProviderConfig, messages: list[dict[str, str]]) -> CompletionResult:
        logger.info(
            "Calling %s model=%s, messages=%d", provider.name, provider.model, len(messages)
        )
        response = await self._client(provider).chat.completions.create(
            model=provider.model,
            messages=messages,
            max_tokens=self.max_tokens,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise UpstreamServiceError(f"Empty response from {provider.display_name}")

        usage = getattr(response, "usage", None)
        input_tokens = getattr(usage, "prompt_tokens", 0) or 0
        output_tokens = getattr(usage, "completion_tokens", 0) or 0
        return CompletionResult(
            content=content,
            provider=provider.name,
            model=provider.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            estimated_cost=self.estimate_cost(provider.name, input_tokens + output_tokens),
        )

    async def complete(self, messages: list[dict[str, str]]) -> CompletionResult:
        """Run ``messages`` through the active provider, falling back in priority order."""
        active = self.get_active_provider()
        if active is None:
            raise UpstreamServiceError("No AI provider is configured")

        chain = [active] + self.get_fallback_chain(exclude=active.name)
        errors: list[str] = []
        for provider in chain:
            try:
                return await self._call(provider, messages)
            except (OpenAIError, UpstreamServiceError) as exc:
                logger.warning("AI provider %s failed: %s", provider.name, exc)
                errors.append(f"{provider.name}: {exc}")

        logger.error("All AI providers failed: %s", "; ".join(errors))
        raise UpstreamServiceError("All AI providers failed")
