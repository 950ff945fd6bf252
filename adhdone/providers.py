# providers.py

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import Settings
from .errors import MalformedResponse, MissingCredential, RequestFailed
from .storage import CredentialStore

logger = logging.getLogger("adhdone.providers")


class ModelProvider(ABC):
    """Abstract base class for completion providers.

    A provider sends one request and returns the answer text exactly as the
    service produced it. Validation of that text is left to CompletionClient.
    """

    def __init__(self, model: str, api_key: Optional[str] = None, api_base: Optional[str] = None):
        """Initialize the model provider.

        Args:
            model (str): The model name to use.
            api_key (str, optional): API key for authentication.
            api_base (str, optional): Base URL for the API.
        """
        self.model = model
        self.api_key = api_key
        self.api_base = api_base

    @abstractmethod
    async def complete(
        self,
        messages: List[Dict[str, Any]],
        temperature: float,
        max_output_tokens: int,
    ) -> Any:
        """Send a chat-style request.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.
            temperature: Sampling temperature.
            max_output_tokens: Upper bound on generated tokens.

        Returns:
            The answer text, or whatever the service put at the answer
            location if it did not send text.

        Raises:
            RequestFailed: If the service rejected the request or was unreachable.
        """
        pass


def _extract_output_text(payload: Any) -> Any:
    """Return ``output[0].content[0].text`` from a Responses API payload, or None."""
    try:
        return payload["output"][0]["content"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None


class OpenAIProvider(ModelProvider):
    """OpenAI Responses API provider."""

    def __init__(self, model: str, api_key: Optional[str] = None, api_base: Optional[str] = None):
        super().__init__(model, api_key, api_base)
        self._client = None

    @property
    def client(self):
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(
                base_url=self.api_base,
                api_key=self.api_key,
                max_retries=0,
            )
        return self._client

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        temperature: float,
        max_output_tokens: int,
    ) -> Any:
        """POST /v1/responses and pull the first text item out of the answer."""
        import openai

        try:
            response = await self.client.responses.create(
                model=self.model,
                input=messages,
                temperature=temperature,
                max_output_tokens=max_output_tokens,
            )
        except openai.APIStatusError as e:
            body = e.body if isinstance(e.body, dict) else {}
            error = body.get("error", body)
            message = error.get("message") if isinstance(error, dict) else None
            raise RequestFailed(
                message or f"OpenAI request failed with status {e.status_code}",
                status_code=e.status_code,
            ) from e
        except openai.APIConnectionError as e:
            raise RequestFailed(f"OpenAI request failed: {e}") from e

        payload = response.model_dump() if hasattr(response, "model_dump") else response
        return _extract_output_text(payload)


class GeminiProvider(ModelProvider):
    """Google Gemini model provider implementation."""

    def __init__(self, model: str, api_key: Optional[str] = None, api_base: Optional[str] = None):
        super().__init__(model, api_key, api_base)
        self._client = None

    @property
    def client(self):
        """Lazy initialization of Gemini client."""
        if self._client is None:
            import google.generativeai as genai
            genai.configure(api_key=self.api_key)
            self._client = genai
        return self._client

    def _split_messages(self, messages: List[Dict[str, Any]]) -> Tuple[Optional[str], List[Dict[str, Any]]]:
        """Pull system messages out as a system instruction and convert the rest to Gemini format."""
        system_parts = []
        contents = []
        for message in messages:
            content = str(message.get("content", ""))
            if message.get("role") == "system":
                system_parts.append(content)
            elif message.get("role") == "assistant":
                contents.append({"role": "model", "parts": [{"text": content}]})
            else:
                contents.append({"role": "user", "parts": [{"text": content}]})
        return ("\n\n".join(system_parts) or None), contents

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        temperature: float,
        max_output_tokens: int,
    ) -> Any:
        """Generate content with Gemini in a worker thread."""
        system_instruction, contents = self._split_messages(messages)
        model = self.client.GenerativeModel(self.model, system_instruction=system_instruction)
        generation_config = {
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        }

        try:
            response = await asyncio.to_thread(
                model.generate_content,
                contents,
                generation_config=generation_config,
            )
        except Exception as e:
            code = getattr(e, "code", None)
            raise RequestFailed(
                f"Gemini request failed: {e}",
                status_code=code if isinstance(code, int) else None,
            ) from e

        try:
            return response.text
        except ValueError:
            # Blocked or empty candidates
            return None


def create_provider(
    model: str,
    api_key: Optional[str] = None,
    api_base: Optional[str] = None
) -> ModelProvider:
    """Factory function to create the appropriate model provider.

    Args:
        model (str): The model name (e.g., 'gpt-4o-mini', 'gemini-1.5-flash').
        api_key (str, optional): API key for authentication.
        api_base (str, optional): Base URL for the API.

    Returns:
        ModelProvider: The appropriate provider instance.
    """
    model_lower = model.lower()

    if model_lower.startswith("gemini"):
        return GeminiProvider(model, api_key, api_base)

    # OpenAI models, and the default for anything unrecognised
    return OpenAIProvider(model, api_key, api_base)


class CompletionClient:
    """
    Sends single chat-style requests to the completion service.

    The API key is read from the credential store on every call so that
    ``set_api_key`` takes effect immediately.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        settings: Settings,
        provider_factory: Callable[..., ModelProvider] = create_provider,
    ):
        self.credentials = credentials
        self.settings = settings
        self.provider_factory = provider_factory
        self._providers: Dict[Tuple[str, str], ModelProvider] = {}

    def _get_provider(self, model: str, api_key: str) -> ModelProvider:
        cache_key = (model, api_key)
        provider = self._providers.get(cache_key)
        if provider is None:
            # Drop providers built with a stale key
            self._providers = {k: v for k, v in self._providers.items() if k[1] == api_key}
            provider = self.provider_factory(model=model, api_key=api_key, api_base=self.settings.api_base)
            self._providers[cache_key] = provider
        return provider

    async def request_completion(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        temperature: float = 0.6,
        max_output_tokens: int = 600,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """
        Send one request and return the trimmed answer text.

        Args:
            messages: Chat messages, each with 'role' and 'content'
            model: Model name (defaults to the configured model)
            temperature: Sampling temperature
            max_output_tokens: Upper bound on generated tokens
            cancel_event: Setting this event abandons the request

        Returns:
            str: The answer text, stripped of surrounding whitespace

        Raises:
            MissingCredential: No API key is stored
            RequestFailed: The service rejected the request or was unreachable
            MalformedResponse: The answer carried no usable text
            asyncio.CancelledError: ``cancel_event`` was set first
        """
        api_key = self.credentials.get()
        if not api_key:
            raise MissingCredential("Missing OpenAI API key")

        model = model or self.settings.model
        provider = self._get_provider(model, api_key)
        logger.info(f"Requesting completion from {model} ({len(messages)} messages)")

        request = provider.complete(messages, temperature=temperature, max_output_tokens=max_output_tokens)
        if cancel_event is None:
            text = await request
        else:
            text = await self._cancellable(request, cancel_event)

        logger.debug(f"Completion response: {text!r}")
        if not isinstance(text, str) or not text.strip():
            raise MalformedResponse("OpenAI returned an unexpected response format")
        return text.strip()

    async def _cancellable(self, request, cancel_event: asyncio.Event) -> Any:
        if cancel_event.is_set():
            request.close()
            raise asyncio.CancelledError("Completion request cancelled")

        request_task = asyncio.ensure_future(request)
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({request_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()
            if not request_task.done():
                request_task.cancel()

        if request_task in done:
            return request_task.result()
        logger.info("Completion request cancelled by caller")
        raise asyncio.CancelledError("Completion request cancelled")
