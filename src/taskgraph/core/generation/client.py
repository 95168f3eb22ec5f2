"""
HTTP content generator for OpenAI-compatible chat-completion endpoints.

Retry policy:
    - Timeouts, transport errors and 5xx responses are retried
    - Up to ``max_retries`` retries (default 2) with linear backoff:
      ``backoff_seconds * attempt`` before attempt 2, 3, ...
    - 4xx responses fail immediately

Retries happen here, outside the graph engine; the engine only ever sees
the final list of records or an exception.
"""

import json
import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional

import httpx

from taskgraph.config import GeneratorConfig
from taskgraph.core.errors import (
    GenerationError,
    GenerationTimeoutError,
    InvalidGeneratorOutput,
)
from taskgraph.core.generation.base import ContentGenerator
from taskgraph.core.generation.models import GeneratedBatch
from taskgraph.core.generation.prompts import (
    SYSTEM_PROMPT,
    build_subtasks_prompt,
    build_tasks_prompt,
    build_update_prompt,
)

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_ENDPOINT = "/chat/completions"


class _RetryableError(Exception):
    def __init__(self, message: str, *, status_code: Optional[int] = None, timed_out: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.timed_out = timed_out


def extract_json(content: str, opening: str = "{") -> Optional[str]:
    """Extract a JSON object (or array, with ``opening="["``) from content.

    Handles replies wrapped in markdown code blocks or mixed with
    explanatory text.

    Args:
        content: Raw reply text
        opening: ``"{"`` for an object, ``"["`` for an array

    Returns:
        Extracted JSON string or None if not found
    """
    closing = "}" if opening == "{" else "]"

    # First, try to find JSON in code blocks
    code_block_pattern = r"```(?:json)?\s*([\s\S]*?)```"
    for match in re.findall(code_block_pattern, content):
        match = match.strip()
        if match.startswith(opening):
            return match

    start = content.find(opening)
    if start == -1:
        return None

    # Find matching closing bracket, skipping brackets inside JSON strings.
    depth = 0
    in_string = False
    escape = False
    for i, char in enumerate(content[start:], start):
        if escape:
            escape = False
            continue
        if char == "\\" and in_string:
            escape = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return content[start : i + 1]

    return None


def _parse_payload(content: str) -> Any:
    """Parse whichever JSON value, object or array, starts first in the reply."""
    array_at = content.find("[")
    object_at = content.find("{")
    opening = "[" if array_at != -1 and (object_at == -1 or array_at < object_at) else "{"
    raw = extract_json(content, opening)
    if raw is None:
        raise InvalidGeneratorOutput("Generator reply contains no JSON payload")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidGeneratorOutput(f"Generator reply is not valid JSON: {e.msg}") from e


class HttpContentGenerator(ContentGenerator):
    """Content generator backed by a chat-completion HTTP API.

    Args:
        config: Endpoint, model, credentials and retry settings
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        sleep: Function used to wait between attempts
    """

    def __init__(
        self,
        config: GeneratorConfig,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if config.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._config = config
        self._transport = transport
        self._sleep = sleep

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return headers

    def _request_once(self, payload: Dict[str, Any]) -> str:
        url = self._config.base_url.rstrip("/") + CHAT_COMPLETIONS_ENDPOINT
        try:
            with httpx.Client(timeout=self._config.timeout, transport=self._transport) as client:
                response = client.post(url, json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            raise _RetryableError(f"Request timed out: {e}", timed_out=True) from e
        except httpx.TransportError as e:
            raise _RetryableError(f"Transport error: {e}") from e

        if response.status_code >= 500:
            raise _RetryableError(
                f"Generator API error {response.status_code}: {self._error_message(response)}",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise GenerationError(
                f"Generator API error {response.status_code}: {self._error_message(response)}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
            return data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise InvalidGeneratorOutput(f"Unexpected generator response shape: {e}") from e

    def _error_message(self, response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text[:200] if response.text else "Unknown error"
        if isinstance(data, dict):
            error = data.get("error", data.get("message"))
            if isinstance(error, dict):
                error = error.get("message")
            if error:
                return str(error)
        return response.text[:200]

    def complete(self, prompt: str) -> str:
        """
        Send one prompt and return the reply text.

        Raises:
            GenerationTimeoutError: If every attempt timed out
            GenerationError: On 4xx, or when retries are exhausted otherwise
        """
        payload = {
            "model": self._config.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
        }

        attempts = self._config.max_retries + 1
        last_error: Optional[_RetryableError] = None
        for attempt in range(1, attempts + 1):
            try:
                return self._request_once(payload)
            except _RetryableError as e:
                last_error = e
                if attempt < attempts:
                    delay = self._config.backoff_seconds * attempt
                    logger.warning(
                        "Generator attempt %d/%d failed (%s); retrying in %.1fs",
                        attempt, attempts, e, delay,
                    )
                    self._sleep(delay)

        if last_error is not None and last_error.timed_out:
            raise GenerationTimeoutError(
                f"Generator did not respond within {self._config.timeout}s "
                f"after {attempts} attempt(s)",
                timeout=self._config.timeout,
                attempts=attempts,
            ) from last_error
        raise GenerationError(
            f"Generator request failed after {attempts} attempt(s): {last_error}",
            status_code=getattr(last_error, "status_code", None),
        ) from last_error

    def generate_tasks(
        self,
        brief: str,
        count: int,
        context: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        reply = self.complete(build_tasks_prompt(brief, count, context))
        payload = _parse_payload(reply)
        if isinstance(payload, list):
            payload = {"tasks": payload}
        if not isinstance(payload, dict) or not isinstance(payload.get("tasks"), list):
            raise InvalidGeneratorOutput("Generator reply does not contain a 'tasks' list")
        batch = GeneratedBatch.model_validate(payload)
        if len(batch.tasks) != count:
            logger.warning("Expected %d tasks, but received %d", count, len(batch.tasks))
        return batch.tasks

    def generate_subtasks(
        self,
        parent_context: Dict[str, Any],
        count: int,
        start_id: int = 1,
        additional_context: str = "",
    ) -> List[Dict[str, Any]]:
        reply = self.complete(build_subtasks_prompt(parent_context, count, start_id, additional_context))
        payload = _parse_payload(reply)
        if isinstance(payload, dict):
            payload = payload.get("subtasks")
        if not isinstance(payload, list):
            raise InvalidGeneratorOutput("Generator reply does not contain a subtask array")
        records = [entry for entry in payload if isinstance(entry, dict)]
        if len(records) != count:
            logger.warning(
                "Expected %d subtasks for task %s, but parsed %d",
                count, parent_context.get("id"), len(records),
            )
        return records

    def update_tasks(self, tasks: List[Dict[str, Any]], prompt: str) -> List[Dict[str, Any]]:
        reply = self.complete(build_update_prompt(tasks, prompt))
        payload = _parse_payload(reply)
        if isinstance(payload, dict):
            payload = payload.get("tasks")
        if not isinstance(payload, list):
            raise InvalidGeneratorOutput("Generator reply does not contain a task array")
        records = [entry for entry in payload if isinstance(entry, dict)]
        if len(records) != len(tasks):
            logger.warning("Sent %d task(s) for update, but parsed %d", len(tasks), len(records))
        return records


def build_generator(config: GeneratorConfig) -> ContentGenerator:
    """Create the configured content generator."""
    return HttpContentGenerator(config)
