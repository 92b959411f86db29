import os
import time
import logging
import traceback
from dataclasses import dataclass
from typing import Dict, List, Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables at the very start
load_dotenv()

DEFAULT_BASE_URL = 'https://openrouter.ai/api/v1'
DEFAULT_MODEL = 'tngtech/deepseek-r1t2-chimera:free'
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


@dataclass
class Completion:
    content: str
    tokens_used: int
    latency_ms: int
    model: str


class LLMClient:
    """Thin OpenRouter chat-completions client with retry and error mapping."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        retry_delay: float = 2,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else os.getenv('OPENROUTER_API_KEY', '')
        self.base_url = (base_url or os.getenv('OPENROUTER_BASE_URL') or DEFAULT_BASE_URL).rstrip('/')
        self.model = model or os.getenv('OPENROUTER_MODEL') or DEFAULT_MODEL
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = session or requests.Session()

        if not self.is_configured():
            logger.warning("OPENROUTER_API_KEY not configured - AI features disabled, heuristics only")

    def is_configured(self) -> bool:
        return bool(self.api_key) and self.api_key.startswith('sk-or-')

    def handle_api_error(self, error: Exception, service: str = "OpenRouter") -> Exception:
        """Map a transport or HTTP failure onto the exception callers expect."""
        if isinstance(error, requests.exceptions.Timeout):
            logger.error(f"{service} API request timed out")
            return TimeoutError(f"{service} request timed out. Please try again.")

        status = getattr(getattr(error, 'response', None), 'status_code', None)
        if status == 401:
            logger.error(f"Invalid {service} API key")
            return ValueError(f"Invalid {service} API key. Please check your configuration.")
        if status == 429:
            logger.error(f"{service} API rate limit exceeded")
            return RuntimeError(f"{service} rate limit exceeded. Please try again later.")

        logger.error(f"Unexpected {service} API error: {str(error)}")
        logger.debug(f"API error details: {traceback.format_exc()}")
        if status:
            return RuntimeError(f"{service} API error: {status}")
        return RuntimeError(f"Unexpected error with {service} API: {str(error)}")

    @staticmethod
    def _is_retryable(error: Exception) -> bool:
        if isinstance(error, (requests.exceptions.Timeout, requests.exceptions.ConnectionError)):
            return True
        status = getattr(getattr(error, 'response', None), 'status_code', None)
        return status in RETRYABLE_STATUS

    def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 2000,
        feature: str = 'unknown',
    ) -> Completion:
        """Execute a chat completion with exponential-backoff retries."""
        if not self.is_configured():
            raise RuntimeError("AI service not configured. Set OPENROUTER_API_KEY in your environment.")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        for attempt in range(self.max_retries):
            start = time.monotonic()
            try:
                logger.info(f"[{feature}] Making API request (attempt {attempt + 1}/{self.max_retries})")
                response = self.session.post(
                    f"{self.base_url}/chat/completions",
                    headers=headers,
                    json=payload,
                    timeout=self.timeout,
                )
                response.raise_for_status()
                data = response.json()
                latency_ms = int((time.monotonic() - start) * 1000)

                if not isinstance(data, dict):
                    raise RuntimeError(f"Malformed response from {self.model}")
                choices = data.get('choices') or []
                if not isinstance(choices, list) or (choices and not isinstance(choices[0], dict)):
                    raise RuntimeError(f"Malformed response from {self.model}")
                message = choices[0].get('message') if choices else None
                content = message.get('content') if isinstance(message, dict) else None
                if not content or not isinstance(content, str):
                    raise RuntimeError(f"{self.model} returned an empty completion")

                usage = data.get('usage')
                tokens_used = usage.get('total_tokens', 0) if isinstance(usage, dict) else 0
                logger.info(f"[{feature}] AI request: {tokens_used} tokens, {latency_ms}ms")
                return Completion(content=content, tokens_used=tokens_used, latency_ms=latency_ms, model=self.model)

            except requests.exceptions.RequestException as e:
                if self._is_retryable(e) and attempt < self.max_retries - 1:
                    wait_time = self.retry_delay * (2 ** attempt)
                    logger.warning(f"Attempt {attempt + 1} failed ({str(e)}), retrying in {wait_time}s...")
                    time.sleep(wait_time)
                    continue
                raise self.handle_api_error(e) from e
            except ValueError as e:
                # Body was not JSON
                raise RuntimeError(f"Malformed response from {self.model}: {str(e)}") from e

        raise RuntimeError("All retry attempts failed")
