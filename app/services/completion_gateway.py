"""Completion gateway over LangChain chat models."""

import asyncio
from collections.abc import Callable, Sequence
from typing import Any

import structlog
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from app.core.exceptions import MissingCredentialError, ProviderError
from app.core.settings import LLMConfig
from app.schemas.chat_schema import ChatTurn

logger = structlog.get_logger()

ANTHROPIC_REPLY_TOKENS = 4096

ModelFactory = Callable[..., BaseChatModel]


def build_chat_model(
    config: LLMConfig,
    model: str,
    temperature: float,
    timeout: float,
    thinking_budget: int = 0,
) -> BaseChatModel:
    """Instantiate the configured provider's chat model for one call."""
    match config.provider:
        case "openai":
            # OpenAI chat models expose no budgeted reasoning switch.
            return ChatOpenAI(
                model=model,
                api_key=config.openai_api_key,
                base_url=config.openai_api_base,
                temperature=temperature,
                timeout=timeout,
                max_retries=1,
            )
        case "anthropic":
            if thinking_budget > 0:
                # Extended thinking requires the default temperature.
                return ChatAnthropic(  # type: ignore[call-arg]
                    model_name=model,
                    api_key=config.anthropic_api_key,
                    max_tokens=thinking_budget + ANTHROPIC_REPLY_TOKENS,
                    thinking={"type": "enabled", "budget_tokens": thinking_budget},
                    timeout=timeout,
                    max_retries=1,
                )
            return ChatAnthropic(  # type: ignore[call-arg]
                model_name=model,
                api_key=config.anthropic_api_key,
                temperature=temperature,
                max_tokens=ANTHROPIC_REPLY_TOKENS,
                timeout=timeout,
                max_retries=1,
            )
        case _:
            raise ValueError(f"Unsupported LLM provider: {config.provider}")


def content_text(content: Any) -> str:
    """Extract plain text from a chat model's message content.

    Content is either a string or a list of blocks; thinking blocks and other
    non-text parts are dropped.
    """
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts)


class CompletionGateway:
    """Turns chat history and prompts into provider calls and returns text."""

    def __init__(
        self,
        config: LLMConfig,
        model_factory: ModelFactory = build_chat_model,
    ) -> None:
        self._config = config
        self._model_factory = model_factory

    @property
    def has_credential(self) -> bool:
        return bool(self._config.api_key.get_secret_value())

    async def converse(
        self,
        history: Sequence[ChatTurn],
        new_message: str,
        system_instruction: str | None = None,
        temperature: float | None = None,
        thinking_budget: int = 0,
    ) -> str:
        """Send a conversation plus a new user turn; return the reply."""
        messages: list[BaseMessage] = []
        if system_instruction:
            messages.append(SystemMessage(content=system_instruction))
        for turn in history:
            if not turn.text:
                continue
            if turn.role == "model":
                messages.append(AIMessage(content=turn.text))
            else:
                messages.append(HumanMessage(content=turn.text))
        messages.append(HumanMessage(content=new_message))

        return await self._invoke(
            operation="converse",
            model=self._config.chat_model,
            messages=messages,
            temperature=temperature,
            timeout=self._config.chat_timeout_seconds,
            thinking_budget=thinking_budget,
        )

    async def generate(self, prompt: str, temperature: float | None = None) -> str:
        """Single-shot completion without conversational framing."""
        return await self._invoke(
            operation="generate",
            model=self._config.text_model,
            messages=[HumanMessage(content=prompt)],
            temperature=temperature,
            timeout=self._config.summary_timeout_seconds,
        )

    async def _invoke(
        self,
        operation: str,
        model: str,
        messages: list[BaseMessage],
        temperature: float | None,
        timeout: float,
        thinking_budget: int = 0,
    ) -> str:
        if not self.has_credential:
            raise MissingCredentialError(
                f"No API key configured for provider '{self._config.provider}'"
            )

        llm = self._model_factory(
            self._config,
            model,
            self._config.default_temperature if temperature is None else temperature,
            timeout,
            thinking_budget,
        )
        try:
            response = await asyncio.wait_for(llm.ainvoke(messages), timeout=timeout)
        except TimeoutError as exc:
            logger.warning(
                "Completion timed out",
                operation=operation,
                model=model,
                timeout=timeout,
            )
            raise ProviderError(f"{operation} timed out after {timeout}s") from exc
        except Exception as exc:
            logger.exception(
                "Completion provider error",
                operation=operation,
                model=model,
            )
            raise ProviderError(f"{operation} failed: {type(exc).__name__}") from exc

        return content_text(response.content).strip()
