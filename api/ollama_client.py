import time
from collections.abc import Iterator

import openai

from config.config import Config
from models.errors import TransportFailure, UpstreamUnavailable
from utils.logger import get_logger

from .base_client import BaseCompletionClient, CompletionResult, Messages, ModelDescriptor

logger = get_logger(__name__)

LOCAL_PLACEHOLDER_KEY = "ollama"


class OllamaClient(BaseCompletionClient):
    """
    Ollama client for local daemons and Ollama Cloud.

    Uses the OpenAI SDK against Ollama's OpenAI-compatible `/v1` endpoint.
    In cloud mode the API key travels as a Bearer token; locally the SDK
    still needs a non-empty key, so a placeholder is sent.
    """

    provider = "ollama"

    def __init__(self, config: Config, client: openai.OpenAI | None = None):
        """
        Args:
            config: Resolved process configuration
            client: Optional pre-built SDK client (tests inject a stub)
        """
        self.config = config
        self.client = client or openai.OpenAI(
            base_url=f"{config.ollama_host}/v1",
            api_key=config.ollama_api_key or LOCAL_PLACEHOLDER_KEY,
            timeout=config.ollama_timeout_s,
            max_retries=0,
        )

    def _auth_failure_message(self) -> str:
        message = "Authentication failed. Please check your OLLAMA_API_KEY in the .env file."
        if self.config.is_cloud and not self.config.ollama_api_key:
            message += " API key is missing."
        elif self.config.is_cloud:
            message += " The API key may be invalid or expired."
        return message

    def complete_buffered(self, model: str, messages: Messages) -> CompletionResult:
        start_time = time.time()
        try:
            response = self.client.chat.completions.create(model=model, messages=messages, stream=False)
        except Exception as e:
            error = self._normalize_error(e)
            logger.error(
                f"Ollama completion failed: {error.code}",
                extra={"extra_fields": {"model": model, "error_message": error.message}},
            )
            raise error from e

        latency_ms = int((time.time() - start_time) * 1000)
        text = (response.choices[0].message.content or "") if response.choices else ""
        usage = {}
        if getattr(response, "usage", None) is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens or 0,
                "completion_tokens": response.usage.completion_tokens or 0,
                "total_tokens": response.usage.total_tokens or 0,
            }

        logger.info(
            "Ollama completion successful",
            extra={"extra_fields": {"model": model, "latency_ms": latency_ms, "chars": len(text)}},
        )
        return CompletionResult(text=text, model=model, latency_ms=latency_ms, usage=usage)

    def complete_incremental(self, model: str, messages: Messages) -> Iterator[str]:
        try:
            stream = self.client.chat.completions.create(model=model, messages=messages, stream=True)
        except Exception as e:
            error = self._normalize_error(e)
            logger.error(
                f"Ollama stream failed to start: {error.code}",
                extra={"extra_fields": {"model": model, "error_message": error.message}},
            )
            raise error from e
        return self._iter_fragments(stream, model)

    def _iter_fragments(self, stream, model: str) -> Iterator[str]:
        fragments = 0
        try:
            for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    fragments += 1
                    yield delta
        except Exception as e:
            error = self._normalize_error(e)
            logger.error(
                f"Ollama stream interrupted: {error.code}",
                extra={"extra_fields": {"model": model, "fragments": fragments}},
            )
            raise error from e
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                close()
            logger.debug(
                "Ollama stream closed",
                extra={"extra_fields": {"model": model, "fragments": fragments}},
            )

    def list_models(self) -> list[ModelDescriptor]:
        try:
            page = self.client.models.list()
        except Exception as e:
            error = self._normalize_error(e)
            if isinstance(error, TransportFailure):
                error = UpstreamUnavailable(
                    f"Could not reach Ollama at {self.config.ollama_host}: {error.message}",
                    provider=self.provider,
                    status_code=error.status_code,
                )
            logger.warning(
                "Listing Ollama models failed",
                extra={"extra_fields": {"error_type": type(error).__name__, "host": self.config.ollama_host}},
            )
            raise error from e

        models = [
            ModelDescriptor(
                name=item.id,
                owned_by=getattr(item, "owned_by", None),
                created=getattr(item, "created", None),
            )
            for item in getattr(page, "data", page)
        ]
        logger.info("Listed Ollama models", extra={"extra_fields": {"model_count": len(models)}})
        return models
