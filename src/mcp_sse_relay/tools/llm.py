#!/usr/bin/env python3
# src/mcp_sse_relay/tools/llm.py
"""
LLM tool - Google Gemini calls with templates, conversation history and retries.

Failures never escape as faults: validation problems and API errors are both
reported as ``isError`` tool results so the client always receives a result
envelope with a readable explanation.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx
from pydantic import BaseModel, Field, ValidationError

from ..types import ToolHandler, ToolParameter
from .prompt_templates import PromptTemplateManager

logger = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_PROVIDER = "google"
DEFAULT_MODEL = "gemini-2.0-flash"
SUPPORTED_MODELS = {"google": ["gemini-2.0-flash"]}

DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.7
MAX_HISTORY_LENGTH = 20

RequestType = Literal["chat", "generate", "translate", "summary", "code", "vision", "template"]

SYSTEM_PROMPTS = {
    "chat": "你是一个友好的AI助手，请用中文回答用户的问题。",
    "generate": "你是一个创意写作助手，请根据用户的要求生成高质量的文本内容。",
    "translate": "你是一个专业的翻译助手，请准确翻译用户提供的文本。",
    "summary": "你是一个专业的摘要助手，请为用户提供的文本生成简洁准确的摘要。",
    "code": "你是一个专业的{language}编程助手，请生成高质量、可运行的代码。",
    "vision": "你是一个专业的图像理解助手，请详细描述和分析用户提供的图片内容。",
}
VISION_DETAIL_SUFFIX = " 请仔细观察图片中的细节，包括物体、文字、颜色、构图等，并提供详细的分析。"

USER_PROMPTS = {
    "chat": "{prompt}",
    "generate": "请生成以下内容的文本：\n{prompt}",
    "translate": "请翻译以下文本：\n{prompt}",
    "summary": "请为以下文本生成摘要：\n{prompt}",
    "code": "请用{language}语言实现以下功能：\n{prompt}",
    "vision": "请分析以下图片：\n{prompt}",
}
DEFAULT_LANGUAGE = "JavaScript"


class LLMRequest(BaseModel):
    """Arguments accepted by the ``llm`` tool."""

    type: RequestType
    prompt: str = Field(min_length=1)
    model: str | None = None
    provider: Literal["openai", "anthropic", "google", "alibaba", "local"] | None = None
    language: str | None = None
    max_tokens: int | None = None
    temperature: float | None = Field(default=None, ge=0, le=2)
    system_prompt: str | None = None
    stream: bool | None = None
    images: list[str] | None = None
    conversation_id: str | None = None
    template_id: str | None = None
    template_variables: dict[str, str] | None = None


# ============================================================================
# Errors and retries
# ============================================================================

ERROR_RATE_LIMIT = "rate_limit"
ERROR_NETWORK = "network_error"
ERROR_AUTH = "auth_error"
ERROR_QUOTA = "quota_exceeded"
ERROR_MODEL_UNAVAILABLE = "model_unavailable"
ERROR_INVALID_REQUEST = "invalid_request"
ERROR_UNKNOWN = "unknown_error"

NON_RETRYABLE = frozenset({ERROR_AUTH, ERROR_QUOTA, ERROR_MODEL_UNAVAILABLE, ERROR_INVALID_REQUEST})

ERROR_SUGGESTIONS = {
    ERROR_RATE_LIMIT: ["等待一段时间后重试", "减少请求频率", "考虑升级API计划"],
    ERROR_NETWORK: ["检查网络连接", "稍后重试", "检查防火墙设置"],
    ERROR_AUTH: ["检查API密钥是否正确", "确认API密钥权限", "重新生成API密钥"],
    ERROR_QUOTA: ["检查账户余额", "升级API计划", "等待下个计费周期"],
    ERROR_MODEL_UNAVAILABLE: ["尝试其他模型", "稍后重试", "检查模型名称是否正确"],
    ERROR_INVALID_REQUEST: ["检查请求参数", "查看API文档", "验证输入格式"],
    ERROR_UNKNOWN: ["稍后重试", "联系技术支持", "检查服务状态"],
}


class LLMError(Exception):
    """A failed LLM call; ``error_type`` and ``suggestions`` are filled once classified."""

    def __init__(self, message: str, error_type: str | None = None, suggestions: list[str] | None = None):
        super().__init__(message)
        self.error_type = error_type
        self.suggestions = suggestions or []
        self.timestamp = time.time()


def classify_error(error: Exception) -> str:
    """Map an error message onto one of the known error types."""
    message = str(error).lower()

    if "rate limit" in message or "too many requests" in message:
        return ERROR_RATE_LIMIT
    if "network" in message or "timeout" in message or "connection" in message:
        return ERROR_NETWORK
    if "unauthorized" in message or "api key" in message or "authentication" in message:
        return ERROR_AUTH
    if "quota" in message or "billing" in message or "credit" in message:
        return ERROR_QUOTA
    if "model" in message and ("not found" in message or "unavailable" in message):
        return ERROR_MODEL_UNAVAILABLE
    if "invalid" in message or "bad request" in message:
        return ERROR_INVALID_REQUEST
    return ERROR_UNKNOWN


@dataclass
class RetryPolicy:
    """Exponential backoff: ``base_delay * multiplier**attempt`` capped at ``max_delay`` seconds."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep

    def should_retry(self, error: Exception, attempt: int) -> bool:
        if attempt >= self.max_retries:
            return False
        return classify_error(error) not in NON_RETRYABLE

    def calculate_delay(self, attempt: int) -> float:
        return min(self.base_delay * self.backoff_multiplier**attempt, self.max_delay)

    async def execute(self, operation: Callable[[], Awaitable[Any]]) -> Any:
        last_error: Exception | None = None

        for attempt in range(self.max_retries + 1):
            try:
                return await operation()
            except LLMError as e:
                last_error = e
                if not self.should_retry(e, attempt):
                    break
                delay = self.calculate_delay(attempt)
                logger.info(f"Retry {attempt + 1}/{self.max_retries} in {delay:.1f}s: {e}")
                await self.sleep(delay)

        assert last_error is not None
        raise enhance_error(last_error)


def enhance_error(error: Exception) -> LLMError:
    error_type = classify_error(error)
    enhanced = LLMError(str(error), error_type=error_type, suggestions=ERROR_SUGGESTIONS[error_type])
    enhanced.__cause__ = error
    return enhanced


# ============================================================================
# Conversation history
# ============================================================================


@dataclass
class ConversationManager:
    """Per-conversation message history, trimmed to the most recent messages."""

    max_history_length: int = MAX_HISTORY_LENGTH
    conversations: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    def get_conversation(self, conversation_id: str) -> list[dict[str, Any]]:
        return list(self.conversations.get(conversation_id, []))

    def add_message(self, conversation_id: str, role: str, content: str) -> list[dict[str, Any]]:
        conversation = self.conversations.setdefault(conversation_id, [])
        conversation.append({"role": role, "content": content, "timestamp": time.time()})
        if len(conversation) > self.max_history_length:
            del conversation[: len(conversation) - self.max_history_length]
        return conversation

    def clear_conversation(self, conversation_id: str) -> None:
        self.conversations.pop(conversation_id, None)

    def conversation_ids(self) -> list[str]:
        return list(self.conversations)


# ============================================================================
# Prompt building
# ============================================================================


def build_system_prompt(
    request_type: str, language: str | None, custom_prompt: str | None, has_images: bool = False
) -> str:
    if custom_prompt:
        return custom_prompt
    template = SYSTEM_PROMPTS.get(request_type, SYSTEM_PROMPTS["chat"])
    prompt = template.format(language=language or DEFAULT_LANGUAGE)
    if has_images and request_type == "vision":
        prompt += VISION_DETAIL_SUFFIX
    return prompt


def build_user_prompt(request_type: str, prompt: str, language: str | None, images: list[str] | None = None) -> str:
    template = USER_PROMPTS.get(request_type, "{prompt}")
    user_prompt = template.format(prompt=prompt, language=language or DEFAULT_LANGUAGE)
    if images:
        listing = "\n".join(f"{index}. {url}" for index, url in enumerate(images, start=1))
        user_prompt += f"\n\n图片URL列表：\n{listing}"
    return user_prompt


# ============================================================================
# Gemini client
# ============================================================================


class GeminiClient:
    """Thin httpx wrapper around the Gemini ``generateContent`` endpoint."""

    def __init__(
        self,
        api_key: str | None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self._transport = transport
        self._timeout = timeout

    @staticmethod
    def to_gemini_contents(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        roles = {"system": "user", "assistant": "model"}
        return [{"role": roles.get(m["role"], m["role"]), "parts": [{"text": m["content"]}]} for m in messages]

    async def generate(
        self,
        messages: list[dict[str, Any]],
        model: str = DEFAULT_MODEL,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        body = {
            "contents": self.to_gemini_contents(messages),
            "generationConfig": {
                "maxOutputTokens": max_tokens or DEFAULT_MAX_TOKENS,
                "temperature": temperature or DEFAULT_TEMPERATURE,
            },
        }

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.post(
                    GEMINI_ENDPOINT.format(model=model),
                    params={"key": self.api_key},
                    json=body,
                )
        except httpx.TimeoutException as e:
            raise LLMError(f"Network timeout: {e}") from e
        except httpx.TransportError as e:
            raise LLMError(f"Network connection error: {e}") from e

        if response.is_error:
            try:
                detail = response.json().get("error", {}).get("message") or response.reason_phrase
            except ValueError:
                detail = response.reason_phrase
            raise LLMError(f"Google Gemini API 错误: {detail}")

        try:
            return response.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Invalid response from Gemini: {e}") from e


# ============================================================================
# Tool
# ============================================================================


class LLMTool:
    """Callable behind the ``llm`` tool; holds conversations, templates and retry policy."""

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_policy: RetryPolicy | None = None,
        templates: PromptTemplateManager | None = None,
        conversations: ConversationManager | None = None,
    ):
        self.client = GeminiClient(api_key, transport=transport)
        self.retry_policy = retry_policy or RetryPolicy()
        self.templates = templates or PromptTemplateManager()
        self.conversations = conversations or ConversationManager()

    async def __call__(self, **arguments: Any) -> dict[str, Any]:
        try:
            request = LLMRequest.model_validate(arguments)
        except ValidationError as e:
            messages = ", ".join(err["msg"] for err in e.errors())
            return {
                "content": [{"type": "text", "text": f"参数验证错误: {messages}"}],
                "isError": True,
                "errorType": "validation_error",
            }

        try:
            return await self._run(request)
        except LLMError as e:
            logger.warning(f"LLM call failed ({e.error_type or ERROR_UNKNOWN}): {e}")
            error_type = e.error_type or ERROR_UNKNOWN
            return {
                "content": [
                    {
                        "type": "text",
                        "text": f"LLM 调用失败: {e}\n\n错误类型: {error_type}\n建议: {', '.join(e.suggestions)}",
                    }
                ],
                "isError": True,
                "errorInfo": {
                    "message": str(e),
                    "type": error_type,
                    "suggestions": e.suggestions,
                    "timestamp": e.timestamp,
                },
            }

    async def _run(self, request: LLMRequest) -> dict[str, Any]:
        provider = DEFAULT_PROVIDER
        model = request.model or DEFAULT_MODEL
        if model not in SUPPORTED_MODELS.get(provider, []):
            raise LLMError(f"不支持的模型: {model} (提供商: {provider})")

        has_images = bool(request.images)
        if request.template_id and request.template_variables:
            try:
                rendered = self.templates.render(request.template_id, request.template_variables)
            except KeyError as e:
                raise LLMError(f"模板渲染失败: {e}") from e
            system_prompt, user_prompt = rendered.system_prompt, rendered.user_prompt
        else:
            system_prompt = build_system_prompt(request.type, request.language, request.system_prompt, has_images)
            user_prompt = build_user_prompt(request.type, request.prompt, request.language, request.images)

        messages: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        if request.conversation_id:
            messages.extend(
                {"role": m["role"], "content": m["content"]}
                for m in self.conversations.get_conversation(request.conversation_id)
            )
        messages.append({"role": "user", "content": user_prompt})

        if not self.client.api_key:
            raise LLMError("GOOGLE_API_KEY 环境变量未设置", ERROR_AUTH, ERROR_SUGGESTIONS[ERROR_AUTH])

        response = await self.retry_policy.execute(
            lambda: self.client.generate(messages, model, request.max_tokens, request.temperature)
        )

        if request.conversation_id:
            self.conversations.add_message(request.conversation_id, "user", user_prompt)
            self.conversations.add_message(request.conversation_id, "assistant", response)

        return {
            "content": [{"type": "text", "text": response}],
            "usage": {
                "model": model,
                "provider": provider,
                "type": request.type,
                "prompt_tokens": len(request.prompt),
                "completion_tokens": len(response),
                "total_tokens": len(request.prompt) + len(response),
                "conversation_id": request.conversation_id,
                "has_images": has_images,
                "stream_enabled": bool(request.stream),
            },
        }


def create_tool(api_key: str | None = None, transport: httpx.AsyncBaseTransport | None = None) -> ToolHandler:
    llm = LLMTool(api_key=api_key, transport=transport)

    async def call_llm(**arguments: Any) -> dict[str, Any]:
        return await llm(**arguments)

    return ToolHandler.from_function(
        call_llm,
        name="llm",
        title="LLM 大模型调用",
        description="调用各种大语言模型进行对话、文本生成、翻译、摘要和代码生成",
        validate_arguments=False,
        parameters=[
            ToolParameter(
                "type",
                "string",
                "请求类型：chat(对话), generate(文本生成), translate(翻译), summary(摘要), code(代码生成), "
                "vision(图像理解), template(模板使用)",
                enum=["chat", "generate", "translate", "summary", "code", "vision", "template"],
            ),
            ToolParameter("prompt", "string", "用户输入的提示词", min_length=1),
            ToolParameter("model", "string", "指定使用的模型", required=False),
            ToolParameter("language", "string", "编程语言（用于代码生成）", required=False),
            ToolParameter("max_tokens", "number", "最大生成token数", required=False),
            ToolParameter("temperature", "number", "生成温度，控制随机性", required=False, minimum=0, maximum=2),
            ToolParameter("system_prompt", "string", "自定义系统提示词", required=False),
            ToolParameter("stream", "boolean", "是否启用流式响应", required=False),
            ToolParameter("images", "array", "图片URL列表（用于视觉理解）", required=False, items_type="string"),
            ToolParameter("conversation_id", "string", "对话ID（用于多轮对话）", required=False),
            ToolParameter("template_id", "string", "提示词模板ID", required=False),
            ToolParameter("template_variables", "object", "模板变量", required=False),
        ],
    )
