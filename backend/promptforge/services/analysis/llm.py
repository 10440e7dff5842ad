"""Async LLM provider interface and implementations.

Both google-genai and openai SDK clients are used synchronously and wrapped
with asyncio.to_thread. Only structured JSON generation is needed here.
"""
import asyncio
import json
import logging
import random
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Dict, Any, Tuple, Type

logger = logging.getLogger(__name__)


class LLMTimeoutError(TimeoutError):
    """Raised when an LLM call exceeds the provider timeout."""
    pass


DEFAULT_PROVIDER_TIMEOUT = 35.0


def _parse_json_text(text: str) -> Dict[str, Any]:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        text = text.strip()
        if text.startswith("```json"):
            text = text[7:]
        if text.endswith("```"):
            text = text[:-3]
        return json.loads(text.strip())


class BaseLLMProvider(ABC):
    """Abstract base class for async LLM providers."""

    # Override in subclasses with provider-specific retryable exception types
    RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (ConnectionError, TimeoutError)

    def __init__(self, api_key: str, model_name: str, temperature: float = 1.0,
                 timeout: float = DEFAULT_PROVIDER_TIMEOUT):
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self.timeout = timeout

    async def _with_retry(self, sync_fn, *args, max_retries: int = 2):
        """Wrap a sync LLM call with exponential backoff for transient errors.

        The caller still wraps this in asyncio.wait_for so the overall timeout
        covers every attempt.
        """
        for attempt in range(max_retries + 1):
            try:
                return await asyncio.to_thread(sync_fn, *args)
            except self.RETRYABLE_EXCEPTIONS as e:
                if attempt == max_retries:
                    raise
                delay = (2 ** (attempt + 1)) + random.uniform(0, 1)
                logger.warning(
                    "LLM call failed (attempt %d/%d), retrying in %.1fs: %s",
                    attempt + 1, max_retries + 1, delay, e,
                )
                await asyncio.sleep(delay)

    @abstractmethod
    def _sync_generate_json(self, prompt, system_prompt, json_schema) -> Dict[str, Any]:
        pass

    async def generate_json(
        self, prompt: str, system_prompt: Optional[str] = None,
        json_schema: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            return await asyncio.wait_for(
                self._with_retry(self._sync_generate_json, prompt, system_prompt, json_schema),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise LLMTimeoutError(f"LLM generate_json call timed out after {self.timeout}s")


class GeminiProvider(BaseLLMProvider):
    """Gemini provider using the google-genai SDK."""

    def __init__(
        self, api_key: Optional[str] = None,
        service_account_path: Optional[str] = None,
        model_name: str = "",
        temperature: float = 1.0,
        timeout: float = DEFAULT_PROVIDER_TIMEOUT,
    ):
        super().__init__(api_key or "", model_name, temperature, timeout)

        from google import genai
        from google.genai import errors as genai_errors
        self.RETRYABLE_EXCEPTIONS = (genai_errors.ServerError, ConnectionError, TimeoutError)

        if service_account_path:
            sa_path = Path(service_account_path)
            if not sa_path.exists():
                raise FileNotFoundError(f"Service account file not found: {sa_path}")
            from google.oauth2 import service_account as sa_module
            with open(sa_path) as f:
                sa_info = json.load(f)
            credentials = sa_module.Credentials.from_service_account_info(
                sa_info, scopes=["https://www.googleapis.com/auth/cloud-platform"],
            )
            self.client = genai.Client(
                vertexai=True, project=sa_info.get("project_id", ""), credentials=credentials,
            )
            self.auth_method = "service_account"
        elif api_key:
            self.client = genai.Client(api_key=api_key)
            self.auth_method = "api_key"
        else:
            raise ValueError("Either api_key or service_account_path must be provided")

    def _sync_generate_json(self, prompt, system_prompt, json_schema):
        from google.genai import types

        config_dict = {
            "temperature": self.temperature,
            "response_mime_type": "application/json",
        }
        if system_prompt:
            config_dict["system_instruction"] = system_prompt
        if json_schema:
            config_dict["response_json_schema"] = json_schema
        config = types.GenerateContentConfig(**config_dict)

        response = self.client.models.generate_content(
            model=self.model_name, contents=prompt, config=config,
        )
        return _parse_json_text(response.text)


class OpenAIProvider(BaseLLMProvider):
    """OpenAI chat-completions provider."""

    def __init__(self, api_key: str, model_name: str = "", temperature: float = 1.0,
                 timeout: float = DEFAULT_PROVIDER_TIMEOUT):
        super().__init__(api_key, model_name, temperature, timeout)
        from openai import OpenAI, RateLimitError, APIConnectionError
        self.client = OpenAI(api_key=api_key)
        self.RETRYABLE_EXCEPTIONS = (RateLimitError, APIConnectionError, ConnectionError, TimeoutError)

    def _sync_generate_json(self, prompt, system_prompt, json_schema):
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        params = {"model": self.model_name, "messages": messages, "temperature": self.temperature}
        if json_schema:
            params["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "structure_prompt", "schema": json_schema},
            }
        else:
            params["response_format"] = {"type": "json_object"}

        response = self.client.chat.completions.create(**params)
        return _parse_json_text(response.choices[0].message.content)


def create_llm_provider(
    provider: str, api_key: str = "", model_name: str = "",
    temperature: float = 0.2, service_account_path: str = "",
    timeout: float = DEFAULT_PROVIDER_TIMEOUT,
) -> BaseLLMProvider:
    """Plain constructor; credential choice is the caller's job."""
    if not model_name:
        raise ValueError("No analysis model configured")
    if provider == "gemini":
        kwargs = {"model_name": model_name, "temperature": temperature, "timeout": timeout}
        if api_key:
            kwargs["api_key"] = api_key
        elif service_account_path:
            kwargs["service_account_path"] = service_account_path
        return GeminiProvider(**kwargs)
    elif provider == "openai":
        return OpenAIProvider(
            api_key=api_key, model_name=model_name, temperature=temperature, timeout=timeout,
        )
    else:
        raise ValueError(f"Unknown LLM provider: {provider}")
