"""
Completion Client Module

Sends a prompt to the hosted completions endpoint and returns the text of
the first choice. The OpenAI SDK builds and sends the request; the body is
read raw so status codes and malformed payloads surface as aisql errors.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

import httpx
import openai
from loguru import logger
from pydantic import BaseModel, ValidationError

from .config import AppConfig
from .exceptions import (
    CompletionHTTPError,
    CompletionParseError,
    CompletionRequestError,
    EmptyResponseError,
)


@dataclass(frozen=True)
class CompletionRequest:
    """Body of a POST to /completions"""
    model: str
    prompt: str
    temperature: float
    max_tokens: int

    def to_body(self) -> Dict[str, Any]:
        return asdict(self)


class Choice(BaseModel):
    text: str


class CompletionResponse(BaseModel):
    """The part of a completions response we read"""
    choices: List[Choice]


class CompletionClient:
    """
    Thin client for the legacy text completions API.

    One request per question, no retries. The SDK client is created on
    first use unless one is passed in.
    """

    def __init__(self, config: AppConfig, client: Optional[openai.OpenAI] = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> openai.OpenAI:
        """Lazy-loaded OpenAI client"""
        if self._client is None:
            self._client = openai.OpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                max_retries=0,
            )
        return self._client

    def build_request(self, prompt: str) -> CompletionRequest:
        return CompletionRequest(
            model=self.config.model,
            prompt=prompt,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )

    def get_completion(self, prompt: str) -> str:
        """
        Ask the completion service for SQL.

        Args:
            prompt: Full prompt text

        Returns:
            Text of the first choice, unmodified

        Raises:
            CompletionHTTPError: status other than 200 (body included)
            CompletionParseError: body is not the expected JSON
            EmptyResponseError: choices list is empty
            CompletionRequestError: request could not be sent
        """
        request = self.build_request(prompt)
        logger.debug(f"POST {self.config.base_url}/completions model={request.model}")

        try:
            raw = self.client.completions.with_raw_response.create(**request.to_body())
        except openai.APIStatusError as e:
            raise CompletionHTTPError(e.status_code, e.response.text) from e
        except (openai.APIConnectionError, httpx.HTTPError) as e:
            raise CompletionRequestError(f"Completion request failed: {e}") from e

        response = raw.http_response
        logger.debug(f"Completion service answered {response.status_code}")
        if response.status_code != 200:
            raise CompletionHTTPError(response.status_code, response.text)

        return self.parse_response(response.content)

    @staticmethod
    def parse_response(body: bytes) -> str:
        """Extract the first choice's text from a raw response body"""
        try:
            parsed = CompletionResponse.model_validate_json(body)
        except ValidationError as e:
            raise CompletionParseError(f"Unexpected completion response: {e}") from e

        if not parsed.choices:
            raise EmptyResponseError()
        return parsed.choices[0].text
