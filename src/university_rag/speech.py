"""Text-to-speech passthrough to the Hugging Face Inference API.

The hosted TTS models answer HTTP 503 with ``{"estimated_time": <s>}``
while they are cold. The client waits and retries a bounded number of
times on that signal only; every other failure is returned immediately.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

import requests

from university_rag.errors import InputError, SpeechError

logger = logging.getLogger(__name__)

MODEL_LOADING_STATUS = 503


class SpeechClient:
    """Synthesise short utterances to WAV audio.

    Parameters
    ----------
    api_key:
        Hugging Face API token.
    allowed_models:
        Model ids callers may request.
    endpoint:
        Base URL; the model id is appended as a path segment.
    max_chars:
        Text is trimmed to this many characters before sending.
    max_attempts:
        Total attempts, including the first, when the model is loading.
    default_wait, max_wait:
        Seconds to sleep between attempts when the server gives no estimate,
        and the cap applied to the server's estimate.
    timeout:
        Per-request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        *,
        allowed_models: Sequence[str],
        endpoint: str = "https://api-inference.huggingface.co/models",
        max_chars: int = 400,
        max_attempts: int = 3,
        default_wait: float = 2.5,
        max_wait: float = 8.0,
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self.allowed_models = tuple(allowed_models)
        self.endpoint = endpoint.rstrip("/")
        self.max_chars = max_chars
        self.max_attempts = max(1, max_attempts)
        self.default_wait = default_wait
        self.max_wait = max_wait
        self.timeout = timeout
        self._session = session or requests.Session()

    def synthesize(self, text: str, model: str) -> bytes:
        """Return WAV bytes for *text* spoken by *model*.

        Raises
        ------
        InputError
            Blank text or a model outside ``allowed_models``.
        SpeechError
            Missing API key, transport failure, non-2xx status after retries,
            or a JSON body where audio was expected.
        """
        if not isinstance(text, str) or not text.strip():
            raise InputError("text is required")
        if model not in self.allowed_models:
            raise InputError(f"Invalid model. Use one of: {', '.join(self.allowed_models)}")
        if not self._api_key:
            raise SpeechError("Missing Hugging Face API key")

        payload = text.strip()[: self.max_chars]
        url = f"{self.endpoint}/{model}"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "text/plain",
            "Accept": "audio/wav",
        }

        for attempt in range(1, self.max_attempts + 1):
            try:
                resp = self._session.post(
                    url, data=payload.encode("utf-8"), headers=headers, timeout=self.timeout
                )
            except requests.RequestException as exc:
                raise SpeechError(f"TTS request failed: {exc}") from exc

            if resp.ok or resp.status_code != MODEL_LOADING_STATUS:
                break
            if attempt < self.max_attempts:
                wait = self._wait_seconds(resp)
                logger.warning(
                    "TTS model %s loading, retry %d/%d (wait %.1fs)", model, attempt, self.max_attempts, wait
                )
                time.sleep(wait)

        if not resp.ok:
            raise SpeechError(f"TTS generation failed: {resp.status_code} {resp.text}")
        if "application/json" in resp.headers.get("content-type", ""):
            raise SpeechError(f"TTS returned non-audio response: {resp.text}")
        return resp.content

    def _wait_seconds(self, resp: requests.Response) -> float:
        try:
            estimated = float(resp.json().get("estimated_time"))
        except (ValueError, TypeError, AttributeError):
            return self.default_wait
        if estimated > 0:
            return min(estimated, self.max_wait)
        return self.default_wait
