"""
Text generation through a chain of LLM providers.

Providers are tried in order (OpenRouter, local Ollama, Claude). Each call
is raced against a timeout; a provider that errors, times out or returns
nothing is skipped. When every provider fails a static fallback text is
returned, so ``generate`` never raises.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import List, Optional

import requests

from .config import config

try:
    import anthropic
    ANTHROPIC_AVAILABLE = True
except ImportError:
    ANTHROPIC_AVAILABLE = False

logger = logging.getLogger(__name__)

STATIC_FALLBACK_TEXT = (
    "AI coaching is temporarily unavailable. Train as programmed, "
    "prioritize sleep and hit your protein target."
)


class ProviderError(RuntimeError):
    """A provider call failed."""


@dataclass
class GenerationResponse:
    """Text returned by the provider chain."""
    text: str
    source: str
    used_fallback: bool = False


class TextProvider:
    """Base class for a single text-generation backend."""

    name = "provider"
    is_local = False

    def __init__(self, model: str, timeout_seconds: Optional[float] = None):
        self.model = model
        self.timeout_seconds = timeout_seconds or config.AI_TIMEOUT_SECONDS

    def available(self) -> bool:
        return True

    def complete(self, prompt: str, system_prompt: Optional[str], max_tokens: int) -> str:
        raise NotImplementedError


class OpenRouterProvider(TextProvider):
    """OpenAI-compatible chat completions on OpenRouter."""

    name = "openrouter"

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None,
                 base_url: Optional[str] = None, timeout_seconds: Optional[float] = None):
        super().__init__(model or config.OPENROUTER_MODEL, timeout_seconds)
        self.api_key = api_key if api_key is not None else config.OPENROUTER_API_KEY
        self.base_url = (base_url or config.OPENROUTER_BASE_URL).rstrip("/")

    def available(self) -> bool:
        return bool(self.api_key)

    def complete(self, prompt, system_prompt, max_tokens):
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "messages": messages,
                    "max_tokens": max_tokens,
                    "temperature": config.AI_TEMPERATURE,
                },
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"OpenRouter request failed: {e}") from e

        if response.status_code != 200:
            raise ProviderError(f"OpenRouter returned status {response.status_code}")
        try:
            return response.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Unexpected OpenRouter response: {e}") from e


class OllamaProvider(TextProvider):
    """Local Ollama server."""

    name = "ollama"
    is_local = True

    def __init__(self, model: Optional[str] = None, url: Optional[str] = None,
                 timeout_seconds: Optional[float] = None):
        super().__init__(model or config.OLLAMA_MODEL, timeout_seconds)
        self.url = (url or config.OLLAMA_URL).rstrip("/")

    def complete(self, prompt, system_prompt, max_tokens):
        # Ollama's generate endpoint takes a single prompt
        full_prompt = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
        try:
            response = requests.post(
                f"{self.url}/api/generate",
                json={
                    "model": self.model,
                    "prompt": full_prompt,
                    "stream": False,
                    "options": {
                        "temperature": config.AI_TEMPERATURE,
                        "num_predict": max_tokens,
                    },
                },
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.Timeout as e:
            raise ProviderError("Ollama request timed out") from e
        except requests.exceptions.ConnectionError as e:
            raise ProviderError("Cannot connect to Ollama") from e

        if response.status_code != 200:
            raise ProviderError(f"Ollama returned status {response.status_code}")
        try:
            return response.json().get("response", "")
        except ValueError as e:
            raise ProviderError(f"Unexpected Ollama response: {e}") from e


class ClaudeProvider(TextProvider):
    """Anthropic Claude API (requires the optional anthropic package)."""

    name = "claude"

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None,
                 timeout_seconds: Optional[float] = None):
        super().__init__(model or config.CLAUDE_MODEL, timeout_seconds)
        self.api_key = api_key if api_key is not None else config.ANTHROPIC_API_KEY
        self._client = None

    def available(self) -> bool:
        return ANTHROPIC_AVAILABLE and bool(self.api_key)

    def complete(self, prompt, system_prompt, max_tokens):
        if self._client is None:
            self._client = anthropic.Anthropic(api_key=self.api_key)
        kwargs = {}
        if system_prompt:
            kwargs["system"] = system_prompt
        try:
            message = self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=config.AI_TEMPERATURE,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
        except anthropic.APIError as e:
            raise ProviderError(f"Claude request failed: {e}") from e
        return "".join(block.text for block in message.content if getattr(block, "type", "") == "text")


def build_default_providers() -> List[TextProvider]:
    """Providers in configured priority order."""
    factories = {
        "openrouter": OpenRouterProvider,
        "ollama": OllamaProvider,
        "claude": ClaudeProvider,
    }
    return [factories[name]() for name in config.get_ai_providers()]


class TextGenerationService:
    """Run a prompt through the provider chain with a per-provider timeout."""

    def __init__(self, providers: Optional[List[TextProvider]] = None,
                 timeout_seconds: Optional[float] = None):
        self.providers = build_default_providers() if providers is None else providers
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger(__name__)

    def _call_with_timeout(self, provider: TextProvider, prompt, system_prompt, max_tokens) -> str:
        timeout = self.timeout_seconds or provider.timeout_seconds
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"ai-{provider.name}")
        future = executor.submit(provider.complete, prompt, system_prompt, max_tokens)
        try:
            return future.result(timeout=timeout)
        except FutureTimeout:
            # The worker keeps running; its result is discarded
            future.cancel()
            raise ProviderError(f"{provider.name} timed out after {timeout:g}s")
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def generate(self, prompt: str, system_prompt: Optional[str] = None,
                 max_tokens: int = 2048) -> GenerationResponse:
        """Generate text, falling through providers until one succeeds.

        Args:
            prompt: User prompt
            system_prompt: Optional system instructions
            max_tokens: Token budget for the completion

        Returns:
            GenerationResponse; ``used_fallback`` is set when every provider failed
        """
        for provider in self.providers:
            if not provider.available():
                self.logger.info(f"Skipping {provider.name}: not configured")
                continue
            try:
                text = self._call_with_timeout(provider, prompt, system_prompt, max_tokens)
            except ProviderError as e:
                self.logger.warning(f"{provider.name} failed: {e}")
                continue
            except Exception as e:
                self.logger.warning(f"{provider.name} raised {type(e).__name__}: {e}")
                continue

            if not text or not text.strip():
                self.logger.warning(f"{provider.name} returned empty text")
                continue

            self.logger.info(f"Generated {len(text)} chars via {provider.name}")
            return GenerationResponse(text=text, source=provider.name)

        self.logger.warning("All text providers failed, returning static fallback")
        return GenerationResponse(text=STATIC_FALLBACK_TEXT, source="static-fallback", used_fallback=True)
