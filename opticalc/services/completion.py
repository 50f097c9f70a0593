"""
Text-completion service used by the analysis flows.

A provider takes a formatted prompt plus a pydantic output schema and returns
a validated instance of that schema, or raises ServiceError. Two providers:
- OpenAI (chat completions in JSON mode, images edit for annotation)
- Plain HTTP JSON endpoint (``/complete`` and ``/annotate``)

There is no retry, caching or queueing: one request, one response or failure.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional, Type, TypeVar

import requests
from openai import OpenAI, OpenAIError
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from ..config import settings
from ..utils import parse_data_uri
from .errors import ServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

SYSTEM_PROMPT = (
    "You are an assistant for optical dispensing and optometry professionals. "
    "Always answer with a single valid JSON object matching this JSON schema, with no extra text:\n"
)


def strip_code_fences(content: str) -> str:
    """Remove a surrounding ```json ... ``` block if the model added one."""
    text = content.strip()
    if text.startswith("```"):
        lines = text.splitlines()
        lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines).strip()
    return text


def parse_structured_response(content: Optional[str], output_schema: Type[T], provider: str) -> T:
    if not content:
        raise ServiceError("Completion returned no output", provider=provider)
    try:
        data = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as e:
        logger.error(f"{provider} JSON parse error: {e}; content: {content[:500]}")
        raise ServiceError(f"Completion output is not valid JSON: {e}", provider=provider)
    return validate_output(data, output_schema, provider)


def validate_output(data, output_schema: Type[T], provider: str) -> T:
    try:
        return output_schema.model_validate(data)
    except SchemaValidationError as e:
        logger.error(f"{provider} output does not match {output_schema.__name__}: {e}")
        raise ServiceError(f"Completion output does not match {output_schema.__name__}", provider=provider)


class TextCompletionService(ABC):
    """Abstract text-completion capability."""
    provider = "abstract"

    @abstractmethod
    def complete(self, prompt: str, output_schema: Type[T], image_data_uri: Optional[str] = None) -> T:
        """Send ``prompt`` (and optionally an image) and return the structured result."""

    @abstractmethod
    def annotate_image(self, image_data_uri: str, instruction: str) -> str:
        """Return a data URI of the image annotated according to ``instruction``."""


class OpenAICompletionService(TextCompletionService):
    provider = "openai"

    def __init__(self, model: str = None, image_model: str = None, api_key: str = None,
                 timeout: int = None, client: OpenAI = None):
        self.model = model or settings.completion_model
        self.image_model = image_model or settings.image_model
        self.api_key = api_key or settings.openai_api_key
        self.timeout = timeout or settings.completion_timeout
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            try:
                self._client = OpenAI(api_key=self.api_key, timeout=self.timeout)
            except OpenAIError as e:
                logger.error(f"OpenAI client initialisation failed: {e}")
                raise ServiceError(f"OpenAI client is not configured: {e}", provider=self.provider)
        return self._client

    def complete(self, prompt: str, output_schema: Type[T], image_data_uri: Optional[str] = None) -> T:
        schema = json.dumps(output_schema.model_json_schema())
        if image_data_uri:
            user_content = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": image_data_uri}},
            ]
        else:
            user_content = prompt

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT + schema},
                    {"role": "user", "content": user_content},
                ],
                temperature=0.1,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error(f"OpenAI API call failed: {e}")
            raise ServiceError(f"OpenAI API call failed: {e}", provider=self.provider)

        if not response.choices:
            raise ServiceError("OpenAI returned no choices", provider=self.provider)
        content = response.choices[0].message.content
        logger.info(f"OpenAI completion received for {output_schema.__name__} ({len(content or '')} chars)")
        return parse_structured_response(content, output_schema, self.provider)

    def annotate_image(self, image_data_uri: str, instruction: str) -> str:
        mime, data = parse_data_uri(image_data_uri)
        ext = mime.split("/")[-1]
        try:
            response = self.client.images.edit(
                model=self.image_model,
                image=(f"image.{ext}", data, mime),
                prompt=instruction,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI image annotation failed: {e}")
            raise ServiceError(f"Image annotation failed: {e}", provider=self.provider)

        b64 = response.data[0].b64_json if response.data else None
        if not b64:
            raise ServiceError("Image annotation failed to produce an output.", provider=self.provider)
        return f"data:image/png;base64,{b64}"


class HttpCompletionService(TextCompletionService):
    """Client for a self-hosted completion endpoint speaking plain JSON."""
    provider = "http"

    def __init__(self, base_url: str = None, timeout: int = None, session: requests.Session = None):
        self.base_url = (base_url or settings.completion_base_url).rstrip("/")
        self.timeout = timeout or settings.completion_timeout
        self.session = session or requests.Session()

    def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.base_url}{path}"
        logger.info(f"Calling completion endpoint {url}")
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.warning(f"Completion endpoint timeout: {url}")
            raise ServiceError("Completion request timed out", provider=self.provider)
        except requests.exceptions.RequestException as e:
            logger.error(f"Completion endpoint error: {e}")
            raise ServiceError(f"Completion request failed: {e}", provider=self.provider)

        if response.status_code != 200:
            logger.error(f"Completion endpoint error: {response.status_code} - {response.text[:200]}")
            raise ServiceError(f"HTTP {response.status_code}: {response.text[:200]}", provider=self.provider)
        try:
            body = response.json()
        except ValueError:
            raise ServiceError("Completion endpoint returned a non-JSON body", provider=self.provider)
        if not isinstance(body, dict):
            logger.error(f"Completion endpoint returned {type(body).__name__}, expected an object")
            raise ServiceError("Completion endpoint returned a non-object body", provider=self.provider)
        return body

    def complete(self, prompt: str, output_schema: Type[T], image_data_uri: Optional[str] = None) -> T:
        payload = {
            "prompt": prompt,
            "schema": output_schema.model_json_schema(),
            "image_data_uri": image_data_uri,
        }
        output = self._post("/complete", payload).get("output")
        if isinstance(output, str):
            return parse_structured_response(output, output_schema, self.provider)
        if output is None:
            raise ServiceError("Completion returned no output", provider=self.provider)
        return validate_output(output, output_schema, self.provider)

    def annotate_image(self, image_data_uri: str, instruction: str) -> str:
        data = self._post("/annotate", {"image_data_uri": image_data_uri, "instruction": instruction})
        annotated = data.get("image_data_uri")
        if not annotated:
            raise ServiceError("Image annotation failed to produce an output.", provider=self.provider)
        return annotated


PROVIDERS = {
    "openai": OpenAICompletionService,
    "http": HttpCompletionService,
}

_completion_service: Optional[TextCompletionService] = None


def get_completion_service() -> TextCompletionService:
    """Get or create the configured completion service."""
    global _completion_service
    if _completion_service is None:
        provider = settings.completion_provider.lower()
        if provider not in PROVIDERS:
            raise ServiceError(f"Unknown completion provider '{provider}'", provider=provider)
        _completion_service = PROVIDERS[provider]()
        logger.info(f"Using {provider} completion service")
    return _completion_service
