"""HTTP client for an Ollama server.

Uses httpx with configurable timeouts and tenacity for retry with
exponential backoff on 503 (model loading) and connection errors.
Serves both capabilities the pipeline consumes: vision prompts for OCR
and text prompts for structured extraction.
"""

import base64
import logging

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from smartocr.config import settings

logger = logging.getLogger(__name__)


class OllamaUnavailable(Exception):
    """Ollama is temporarily unavailable (retryable: 503, connection error, timeout)."""


class OllamaError(Exception):
    """Ollama returned a non-retryable error or an unusable body."""


class OllamaClient:
    """Ollama ``/api/generate`` client with retry and backoff."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int | None = None,
        connect_timeout: int | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
        retry_backoff: float | None = None,
    ):
        self._base_url = (base_url or settings.OLLAMA_URL).rstrip("/")
        self._retry_attempts = retry_attempts if retry_attempts is not None else settings.OLLAMA_RETRY_ATTEMPTS
        self._retry_delay = retry_delay if retry_delay is not None else settings.OLLAMA_RETRY_DELAY
        self._retry_backoff = retry_backoff if retry_backoff is not None else settings.OLLAMA_RETRY_BACKOFF

        read_timeout = timeout if timeout is not None else settings.OLLAMA_TIMEOUT_SECONDS
        conn_timeout = connect_timeout if connect_timeout is not None else settings.OLLAMA_CONNECT_TIMEOUT

        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=httpx.Timeout(
                connect=float(conn_timeout),
                read=float(read_timeout),
                write=30.0,
                pool=30.0,
            ),
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self):
        self._client.close()

    def __enter__(self) -> "OllamaClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def send_prompt(self, model: str, prompt: str) -> str:
        """Send a text-only prompt. Returns the model's raw response text."""
        _require(model, "model")
        _require(prompt, "prompt")

        payload = {"model": model, "prompt": prompt, "stream": False}
        return self._generate_with_retry(payload)

    def send_vision_prompt(self, model: str, prompt: str, image: bytes) -> str:
        """Send a prompt with one image attached. Returns the raw response text."""
        _require(model, "model")
        _require(prompt, "prompt")
        if not image:
            raise ValueError("image must not be empty")

        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "images": [base64.b64encode(image).decode()],
        }
        return self._generate_with_retry(payload)

    def _generate_with_retry(self, payload: dict) -> str:
        """Retry wrapper, configured per instance."""

        @retry(
            retry=retry_if_exception_type(OllamaUnavailable),
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(
                multiplier=self._retry_delay,
                exp_base=self._retry_backoff,
                max=60,
            ),
            reraise=True,
            before_sleep=lambda state: logger.warning(
                "Ollama unavailable, retrying in %.1fs (attempt %d/%d)",
                state.next_action.sleep,  # type: ignore[union-attr]
                state.attempt_number,
                self._retry_attempts,
            ),
        )
        def _do_generate() -> str:
            return self._send_generate(payload)

        return _do_generate()

    def _send_generate(self, payload: dict) -> str:
        """Send a single generate request."""
        # Privacy: log sizes only, never prompt or image content
        logger.info(
            "Ollama generate: model=%s prompt=%d chars images=%d",
            payload["model"],
            len(payload["prompt"]),
            len(payload.get("images", [])),
        )

        try:
            resp = self._client.post("/api/generate", json=payload)
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            logger.warning("Ollama connection failed: %s", e)
            raise OllamaUnavailable(f"Cannot connect to Ollama: {e}") from e
        except httpx.ReadTimeout as e:
            logger.warning("Ollama read timeout: %s", e)
            raise OllamaUnavailable(f"Ollama read timeout: {e}") from e
        except httpx.HTTPError as e:
            logger.error("Ollama HTTP error: %s", e)
            raise OllamaError(f"Ollama HTTP error: {e}") from e

        if resp.status_code == 503:
            detail = _error_detail(resp, "Service unavailable")
            logger.warning("Ollama returned 503: %s", detail)
            raise OllamaUnavailable(detail)

        if resp.status_code != 200:
            detail = _error_detail(resp, f"HTTP {resp.status_code}")
            logger.error("Ollama error %d: %s", resp.status_code, detail)
            raise OllamaError(f"Ollama request failed with status {resp.status_code}: {detail}")

        try:
            data = resp.json()
        except ValueError as e:
            raise OllamaError(f"Ollama returned a non-JSON body: {resp.text[:200]}") from e

        text = data.get("response") if isinstance(data, dict) else None
        if text is None:
            raise OllamaError(f"No response field in Ollama response: {resp.text[:200]}")

        logger.info("Ollama response: %d chars", len(text))
        return text

    def health(self) -> dict:
        """Check Ollama reachability. Returns a status dict, never raises."""
        try:
            resp = self._client.get("/api/tags", timeout=10.0)
            resp.raise_for_status()
            models = [m.get("name", "") for m in resp.json().get("models", [])]
            return {"status": "healthy", "ready": True, "models": models}
        except Exception as e:
            logger.warning("Ollama health check failed: %s", e)
            return {"status": "unreachable", "ready": False, "error": str(e)}


def _require(value: str, name: str) -> None:
    if not value:
        raise ValueError(f"{name} must not be empty")


def _error_detail(resp: httpx.Response, default: str) -> str:
    # Ollama reports failures as {"error": "..."}
    try:
        body = resp.json()
    except ValueError:
        return resp.text or default
    if isinstance(body, dict):
        return body.get("error") or body.get("detail") or default
    return default
