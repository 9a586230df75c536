"""LiteLLM-backed agent provider streaming typed events."""

import asyncio
import logging
import os
from typing import Any, AsyncIterator

import litellm
import structlog
from litellm import acompletion

from frontdesk.logging import get_logger, mask_secret
from frontdesk.providers.base import QueryOptions
from frontdesk.providers.events import StreamEvent, error_result, success_result, text_delta

logger = get_logger("frontdesk.providers.litellm")


class LiteLLMProvider:
    """
    Agent provider using LiteLLM for multi-provider support.

    Each ``query`` is one streaming completion with no tools and no retries.
    The stream is translated into ``text_delta`` events followed by exactly
    one terminal ``result`` event; transport failures become an error result
    instead of an exception.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        extra_headers: dict[str, str] | None = None,
        request_timeout: float | None = None,
        max_tokens: int = 1024,
        langfuse_config: Any | None = None,
    ):
        self.api_key = api_key
        self.api_base = api_base
        self.extra_headers = extra_headers or {}
        self.request_timeout = request_timeout
        self.max_tokens = max(1, max_tokens)
        self._langfuse_enabled = False

        if api_key:
            logger.info("provider_initialized", api_key=mask_secret(api_key))

        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True
        # Drop unsupported parameters for providers
        litellm.drop_params = True

        if langfuse_config is not None:
            self._setup_langfuse(langfuse_config)

    def _setup_langfuse(self, config: Any) -> None:
        """Configure Langfuse callbacks if enabled and keys are available."""
        if not getattr(config, "enabled", False):
            return

        public_key = config.public_key or os.environ.get("LANGFUSE_PUBLIC_KEY", "")
        secret_key = config.secret_key or os.environ.get("LANGFUSE_SECRET_KEY", "")
        host = config.host or os.environ.get("LANGFUSE_HOST", "")

        if not public_key or not secret_key:
            logger.warning("langfuse_missing_keys", hint="Set public_key and secret_key or LANGFUSE_PUBLIC_KEY/LANGFUSE_SECRET_KEY env vars")
            return

        os.environ.setdefault("LANGFUSE_PUBLIC_KEY", public_key)
        os.environ.setdefault("LANGFUSE_SECRET_KEY", secret_key)
        if host:
            os.environ.setdefault("LANGFUSE_HOST", host)

        if "langfuse" not in litellm.success_callback:
            litellm.success_callback.append("langfuse")
        if "langfuse" not in litellm.failure_callback:
            litellm.failure_callback.append("langfuse")

        self._langfuse_enabled = True
        logger.info("langfuse_enabled", host=host or "(default)")

    def _build_langfuse_metadata(self) -> dict[str, Any] | None:
        """Build Langfuse trace metadata from structlog contextvars."""
        if not self._langfuse_enabled:
            return None

        ctx = structlog.contextvars.get_contextvars()
        metadata: dict[str, Any] = {}
        if ctx.get("conversation_id"):
            metadata["trace_user_id"] = ctx["conversation_id"]
            metadata["trace_session_id"] = ctx["conversation_id"]
        if ctx.get("agent_id"):
            metadata["trace_tags"] = [f"agent:{ctx['agent_id']}"]
        return metadata or None

    @staticmethod
    def _value(obj: Any, key: str, default: Any = None) -> Any:
        if isinstance(obj, dict):
            return obj.get(key, default)
        return getattr(obj, key, default)

    @classmethod
    def _extract_delta_text(cls, delta: Any) -> str:
        content = cls._value(delta, "content")
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for item in content:
                text = cls._value(item, "text")
                if isinstance(text, str) and text:
                    parts.append(text)
            return "".join(parts)
        text = cls._value(delta, "text")
        if isinstance(text, str):
            return text
        return ""

    def _build_kwargs(self, prompt: str, options: QueryOptions) -> dict[str, Any]:
        if options.allowed_tools:
            raise ValueError("LiteLLMProvider does not grant tools to the agent")

        kwargs: dict[str, Any] = {
            "model": options.model,
            "messages": [
                {"role": "system", "content": options.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": self.max_tokens,
            "stream": True,
            "num_retries": 0,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if self.extra_headers:
            kwargs["extra_headers"] = self.extra_headers
        if self.request_timeout:
            kwargs["request_timeout"] = self.request_timeout
        langfuse_metadata = self._build_langfuse_metadata()
        if langfuse_metadata:
            kwargs["metadata"] = langfuse_metadata
        return kwargs

    def _mask_error(self, error: BaseException) -> str:
        error_msg = str(error) or type(error).__name__
        if self.api_key and self.api_key in error_msg:
            error_msg = error_msg.replace(self.api_key, mask_secret(self.api_key))
        return error_msg

    async def query(self, prompt: str, options: QueryOptions) -> AsyncIterator[StreamEvent]:
        """Stream one completion for *prompt* as provider-agnostic events."""
        kwargs = self._build_kwargs(prompt, options)

        if logging.getLogger("frontdesk").isEnabledFor(logging.DEBUG):
            logger.debug(
                "agent_query",
                model=options.model,
                permission_mode=options.permission_mode,
                prompt_chars=len(prompt),
                system_prompt_chars=len(options.system_prompt),
            )

        content_parts: list[str] = []
        try:
            coro = acompletion(**kwargs)
            if self.request_timeout:
                stream = await asyncio.wait_for(coro, timeout=self.request_timeout + 30)
            else:
                stream = await coro

            async for chunk in stream:
                choices = self._value(chunk, "choices") or []
                if not choices:
                    continue
                delta = self._value(choices[0], "delta") or {}
                text = self._extract_delta_text(delta)
                if text:
                    content_parts.append(text)
                    yield text_delta(text)
        except asyncio.TimeoutError:
            logger.error("agent_stream_timeout", model=options.model)
            yield error_result("request timed out")
            return
        except Exception as e:
            error_msg = self._mask_error(e)
            logger.error("agent_stream_failed", model=options.model, error=error_msg)
            yield error_result(error_msg)
            return

        yield success_result("".join(content_parts) or None)
