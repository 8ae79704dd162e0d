"""
AI Gateway Client
=================
Sends a prompt to the configured generative AI provider and returns the
raw reply text.

Retry policy: an overloaded provider (HTTP 503, or Anthropic's 529) and
transport failures are retried up to ``max_attempts`` total attempts with
linear backoff (attempt x backoff_seconds). Any other non-success status is
raised immediately as UpstreamPermanentError. When every attempt fails the
gateway raises RetriesExhaustedError and leaves the degrade-or-fail decision
to the caller.
"""
import logging
import time

import requests

from classroom_ai.config import DEFAULT_BACKOFF_SECONDS, DEFAULT_MAX_ATTEMPTS, DEFAULT_MODELS, DEFAULT_TIMEOUT_SECONDS
from classroom_ai.errors import (
    ConfigurationError,
    RetriesExhaustedError,
    UpstreamPermanentError,
    UpstreamTransientError,
)

logger = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

# 529 is Anthropic's "overloaded" status
OVERLOADED_STATUS_CODES = frozenset({503, 529})


def _classify_status(status_code, body, provider):
    """Turn a non-success status into the matching upstream error."""
    message = f"{provider} API error: {status_code} - {body}"
    if status_code in OVERLOADED_STATUS_CODES:
        return UpstreamTransientError(message, status_code=status_code, body=body)
    return UpstreamPermanentError(message, status_code=status_code, body=body)


# =============================================================================
# PROVIDERS
# =============================================================================

class GeminiProvider:
    """Google Gemini through the REST generateContent endpoint."""
    name = "gemini"

    def __init__(self, api_key, model=None, timeout=DEFAULT_TIMEOUT_SECONDS, session=None):
        self.api_key = api_key
        self.model = model or DEFAULT_MODELS['gemini']
        self.timeout = timeout
        self.session = session or requests.Session()

    def complete(self, prompt, max_output_tokens, temperature):
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": max_output_tokens,
            },
        }
        try:
            response = self.session.post(
                GEMINI_ENDPOINT.format(model=self.model),
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamTransientError(f"Network error calling Gemini: {e}") from e

        if response.status_code != 200:
            raise _classify_status(response.status_code, response.text, "Gemini")

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise UpstreamPermanentError(
                "Invalid Gemini API response structure", status_code=response.status_code, body=response.text
            )
        if not text:
            raise UpstreamPermanentError("No response generated by AI", status_code=response.status_code)
        return text


class OpenAIProvider:
    """OpenAI chat completions. SDK retries are off; the gateway owns retrying."""
    name = "openai"

    def __init__(self, api_key, model=None, timeout=DEFAULT_TIMEOUT_SECONDS, client=None):
        import openai
        self._openai = openai
        self.model = model or DEFAULT_MODELS['openai']
        self.client = client or openai.OpenAI(api_key=api_key, max_retries=0, timeout=timeout)

    def complete(self, prompt, max_output_tokens, temperature):
        openai = self._openai
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_output_tokens,
                temperature=temperature,
            )
        except openai.APIConnectionError as e:
            raise UpstreamTransientError(f"Network error calling OpenAI: {e}") from e
        except openai.APIStatusError as e:
            raise _classify_status(e.status_code, str(e), "OpenAI") from e

        text = response.choices[0].message.content if response.choices else None
        if not text:
            raise UpstreamPermanentError("No response generated by AI")
        return text.strip()


class AnthropicProvider:
    """Anthropic messages API. SDK retries are off; the gateway owns retrying."""
    name = "anthropic"

    def __init__(self, api_key, model=None, timeout=DEFAULT_TIMEOUT_SECONDS, client=None):
        import anthropic
        self._anthropic = anthropic
        self.model = model or DEFAULT_MODELS['anthropic']
        self.client = client or anthropic.Anthropic(api_key=api_key, max_retries=0, timeout=timeout)

    def complete(self, prompt, max_output_tokens, temperature):
        anthropic = self._anthropic
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_output_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIConnectionError as e:
            raise UpstreamTransientError(f"Network error calling Anthropic: {e}") from e
        except anthropic.APIStatusError as e:
            raise _classify_status(e.status_code, str(e), "Anthropic") from e

        text = response.content[0].text if response.content else None
        if not text:
            raise UpstreamPermanentError("No response generated by AI")
        return text.strip()


PROVIDERS = {
    'gemini': GeminiProvider,
    'openai': OpenAIProvider,
    'anthropic': AnthropicProvider,
}


# =============================================================================
# GATEWAY
# =============================================================================

class AIGateway:
    """Provider call wrapped in the bounded retry loop."""

    def __init__(self, provider, max_attempts=DEFAULT_MAX_ATTEMPTS,
                 backoff_seconds=DEFAULT_BACKOFF_SECONDS, sleep=time.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.provider = provider
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    @classmethod
    def from_config(cls, config, **provider_kwargs):
        provider_cls = PROVIDERS.get(config.ai_provider)
        if provider_cls is None:
            raise ConfigurationError(f"Unsupported AI provider: {config.ai_provider}")
        provider = provider_cls(
            config.ai_api_key,
            model=config.ai_model,
            timeout=config.timeout_seconds,
            **provider_kwargs,
        )
        return cls(provider, max_attempts=config.max_attempts, backoff_seconds=config.backoff_seconds)

    @property
    def provider_name(self):
        return self.provider.name

    def generate(self, prompt, max_output_tokens=2048, temperature=0.3):
        """
        Send the prompt and return the reply text.

        Raises:
            UpstreamPermanentError: non-retryable provider failure
            RetriesExhaustedError: every attempt failed transiently
        """
        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self.provider.complete(prompt, max_output_tokens, temperature)
            except UpstreamTransientError as e:
                last_error = e
                if attempt < self.max_attempts:
                    delay = attempt * self.backoff_seconds
                    logger.warning(
                        "%s unavailable (%s), retrying in %.0f seconds (attempt %d/%d)",
                        self.provider.name, e, delay, attempt, self.max_attempts,
                    )
                    self._sleep(delay)

        logger.error("%s unavailable after %d attempts: %s", self.provider.name, self.max_attempts, last_error)
        raise RetriesExhaustedError(self.max_attempts, last_error)
