"""LLM client for making API calls to Google Gemini."""

import json
import time
from typing import Optional, Type, TypeVar

from google import genai
from google.genai import types
from pydantic import BaseModel, ValidationError
from loguru import logger

from marketgazer.config import config

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Substrings of transient API failures worth retrying
RETRYABLE_MARKERS = ['503', '429', 'UNAVAILABLE', 'overloaded', 'quota', 'RESOURCE_EXHAUSTED']


def is_retryable(error: Exception) -> bool:
    """Check whether an API error is transient (rate limit, overload)."""
    error_str = str(error)
    return any(marker in error_str for marker in RETRYABLE_MARKERS)


class LLMClient:
    """Client for interacting with Google Gemini API."""

    def __init__(self, client=None):
        """Initialize the Gemini client settings.

        Args:
            client: Optional pre-built genai client; created lazily otherwise
        """
        self._client = client
        self.model = config.gemini.model
        self.temperature = config.gemini.temperature
        self.max_retries = config.gemini.max_retries
        self.last_error: Optional[str] = None

    @property
    def client(self):
        if self._client is None:
            self._client = genai.Client(api_key=config.gemini.api_key)
        return self._client

    def generate_json(
        self,
        prompt: str,
        schema: Type[SchemaT],
        temperature: Optional[float] = None,
        max_retries: Optional[int] = None
    ) -> Optional[SchemaT]:
        """Send a prompt and validate the JSON reply against a schema.

        Args:
            prompt: Complete prompt text
            schema: Pydantic model the reply must match
            temperature: Sampling temperature (uses config if not provided)
            max_retries: Maximum number of attempts for transient errors

        Returns:
            Validated schema instance or None if failed
        """
        if max_retries is None:
            max_retries = self.max_retries
        if temperature is None:
            temperature = self.temperature

        last_error = None
        for attempt in range(max_retries):
            try:
                self.last_error = None
                if attempt > 0:
                    # Exponential backoff: 5s, 15s, 45s
                    wait_time = 5 * (3 ** (attempt - 1))
                    logger.info(f"Retry attempt {attempt + 1}/{max_retries} after {wait_time}s delay...")
                    time.sleep(wait_time)

                logger.info(f"Sending {schema.__name__} request to Gemini ({self.model})...")

                response = self.client.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        temperature=temperature,
                        response_mime_type="application/json"
                    )
                )

                content = response.text
                logger.debug(f"Raw LLM response: {content}")

                parsed = schema.model_validate(json.loads(content))
                logger.info(f"Received valid {schema.__name__}")
                return parsed

            except json.JSONDecodeError as e:
                # Don't retry JSON errors - they won't fix themselves
                logger.error(f"Failed to parse LLM response as JSON: {e}")
                self.last_error = f"Invalid JSON from model: {e}"
                return None

            except ValidationError as e:
                logger.error(f"LLM response does not match {schema.__name__}: {e}")
                self.last_error = f"Response did not match schema: {e}"
                return None

            except Exception as e:
                last_error = e
                self.last_error = str(e)

                if is_retryable(e) and attempt < max_retries - 1:
                    logger.warning(f"Retryable error on attempt {attempt + 1}: {e}")
                    continue

                logger.error(f"Error calling LLM API (attempt {attempt + 1}): {e}")
                if not is_retryable(e):
                    return None

        logger.error(f"All {max_retries} retry attempts failed. Last error: {last_error}")
        self.last_error = str(last_error) if last_error else "Unknown LLM error"
        return None

    def test_connection(self) -> bool:
        """Test the API connection.

        Returns:
            True if connection successful
        """
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents="Say 'connected' in one word."
            )
            content = response.text.strip()
            logger.info(f"Gemini connection test: {content}")
            return True

        except Exception as e:
            logger.error(f"Gemini connection failed: {e}")
            return False
