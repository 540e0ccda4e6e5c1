"""TextGenerator: single-shot prompt -> text calls through an AutoGen assistant."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Iterable, Optional

from autogen_agentchat.agents import AssistantAgent
from autogen_agentchat.messages import BaseChatMessage
from autogen_core.models import ChatCompletionClient, ModelInfo
from autogen_ext.models.openai import OpenAIChatCompletionClient

from .config import CopilotConfig
from .copilot_prompts import SYSTEM_PROMPT
from .errors import TextGenerationError

logger = logging.getLogger(__name__)


class TextGenerator:
    """Submits a prompt to an OpenAI-compatible model and returns the reply text.

    A new assistant and model client are built for every call, so concurrent
    calls (the report and the mind map) never share conversation state.
    """

    def __init__(
        self,
        *,
        openai_model_name: str = "gpt-5-nano",
        temperature: Optional[float] = None,
        base_url: Optional[str] = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        if not os.getenv("OPENAI_API_KEY"):
            raise EnvironmentError("OPENAI_API_KEY is not set.")

        self._openai_model_name = openai_model_name
        self._temperature = temperature
        self._base_url = base_url or os.getenv("OPENAI_API_BASE_URL", "https://api.openai.com/v1")
        self._timeout = timeout_seconds
        logger.info("Text generation uses OpenAI model '%s'", openai_model_name)

    @classmethod
    def from_config(cls, config: CopilotConfig) -> "TextGenerator":
        return cls(
            openai_model_name=config.openai_model_name,
            temperature=config.temperature,
            base_url=config.openai_api_base_url,
            timeout_seconds=config.llm_timeout_seconds,
        )

    async def generate(self, prompt: str, *, agent_name: str = "research_copilot") -> str:
        model_client = self._build_openai_client(
            openai_model_name=self._openai_model_name,
            temperature=self._temperature,
            base_url=self._base_url,
        )
        assistant = AssistantAgent(
            name=agent_name,
            model_client=model_client,
            system_message=SYSTEM_PROMPT,
            description="Answers research co-pilot prompts.",
            tools=[],
            max_tool_iterations=1,
        )
        logger.debug("Prompt for %s: %s", agent_name, prompt)
        try:
            result = await asyncio.wait_for(assistant.run(task=prompt), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise TextGenerationError(f"Model call timed out after {self._timeout:g}s") from exc
        finally:
            await model_client.close()

        text = self._extract_text(result.messages)
        if not text:
            raise TextGenerationError("Model returned an empty response")
        return text

    def _extract_text(self, messages: Iterable[Any]) -> str:
        last = self._last_chat_message(messages)
        return last.to_text().strip()

    @staticmethod
    def _last_chat_message(messages: Iterable[Any]) -> BaseChatMessage:
        for message in reversed(list(messages)):
            if isinstance(message, BaseChatMessage):
                return message
        raise TextGenerationError("Assistant did not produce a chat response.")

    @staticmethod
    def _build_openai_client(
        *,
        openai_model_name: str,
        temperature: Optional[float],
        base_url: str,
    ) -> ChatCompletionClient:
        model_info: ModelInfo = {
            "vision": False,
            "function_calling": False,
            "json_output": False,
            "structured_output": False,
            "family": "openai",
        }
        client_kwargs = {
            "model": openai_model_name,
            "api_key": os.environ["OPENAI_API_KEY"],
            "base_url": base_url,
            "include_name_in_message": False,
            "model_info": model_info,
        }
        if temperature is not None:
            client_kwargs["temperature"] = temperature
        return OpenAIChatCompletionClient(**client_kwargs)
