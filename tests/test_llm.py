#!/usr/bin/env python3
"""Tests for the LLM tool: validation, Gemini calls, retries and conversation history."""

import httpx
import orjson
import pytest

from mcp_sse_relay.tools import llm
from mcp_sse_relay.tools.llm import (
    ConversationManager,
    GeminiClient,
    LLMError,
    LLMTool,
    RetryPolicy,
    classify_error,
)

# ============================================================================
# Helpers
# ============================================================================


def _gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


class _Recorder:
    """Mock Gemini endpoint that records requests and replays scripted outcomes."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        # Fresh response per request; scripted responses may be replayed
        return httpx.Response(outcome.status_code, headers=outcome.headers, content=outcome.content)

    def bodies(self):
        return [orjson.loads(request.content) for request in self.requests]


def _make_tool(*outcomes, api_key="test-key", delays=None):
    recorder = _Recorder(*outcomes)

    async def fake_sleep(delay):
        if delays is not None:
            delays.append(delay)

    tool = LLMTool(
        api_key=api_key,
        transport=httpx.MockTransport(recorder),
        retry_policy=RetryPolicy(sleep=fake_sleep),
    )
    return tool, recorder


def _text(result):
    return result["content"][0]["text"]


# ============================================================================
# Successful calls
# ============================================================================


class TestLLMCalls:
    @pytest.mark.asyncio
    async def test_chat(self):
        tool, recorder = _make_tool(httpx.Response(200, json=_gemini_reply("你好！")))
        result = await tool(type="chat", prompt="hello")

        assert _text(result) == "你好！"
        assert "isError" not in result
        assert result["usage"]["model"] == "gemini-2.0-flash"
        assert result["usage"]["provider"] == "google"
        assert result["usage"]["prompt_tokens"] == 5

        request = recorder.requests[0]
        assert request.url.path == "/v1beta/models/gemini-2.0-flash:generateContent"
        assert request.url.params["key"] == "test-key"

    @pytest.mark.asyncio
    async def test_request_body(self):
        tool, recorder = _make_tool(httpx.Response(200, json=_gemini_reply("ok")))
        await tool(type="translate", prompt="good morning", temperature=0.2, max_tokens=100)

        body = recorder.bodies()[0]
        assert [c["role"] for c in body["contents"]] == ["user", "user"]
        assert body["contents"][0]["parts"][0]["text"] == llm.SYSTEM_PROMPTS["translate"]
        assert body["contents"][1]["parts"][0]["text"] == "请翻译以下文本：\ngood morning"
        assert body["generationConfig"] == {"maxOutputTokens": 100, "temperature": 0.2}

    @pytest.mark.asyncio
    async def test_code_prompt_uses_language(self):
        tool, recorder = _make_tool(httpx.Response(200, json=_gemini_reply("print(1)")))
        await tool(type="code", prompt="print one", language="Python")

        body = recorder.bodies()[0]
        assert "Python" in body["contents"][0]["parts"][0]["text"]
        assert body["contents"][1]["parts"][0]["text"] == "请用Python语言实现以下功能：\nprint one"

    @pytest.mark.asyncio
    async def test_template_rendering(self):
        tool, recorder = _make_tool(httpx.Response(200, json=_gemini_reply("review")))
        await tool(type="template", prompt="x", template_id="code-review", template_variables={"code": "a = 1"})

        user_text = recorder.bodies()[0]["contents"][1]["parts"][0]["text"]
        assert "a = 1" in user_text

    @pytest.mark.asyncio
    async def test_conversation_history(self):
        tool, recorder = _make_tool(httpx.Response(200, json=_gemini_reply("reply")))
        await tool(type="chat", prompt="first", conversation_id="c1")
        await tool(type="chat", prompt="second", conversation_id="c1")

        second = recorder.bodies()[1]
        assert [c["role"] for c in second["contents"]] == ["user", "user", "model", "user"]
        assert second["contents"][1]["parts"][0]["text"] == "first"
        assert len(tool.conversations.get_conversation("c1")) == 4


# ============================================================================
# Failures reported as results
# ============================================================================


class TestLLMFailures:
    @pytest.mark.asyncio
    async def test_validation_error(self):
        tool, recorder = _make_tool(httpx.Response(200, json=_gemini_reply("unused")))
        result = await tool(type="chat", prompt="")

        assert result["isError"] is True
        assert result["errorType"] == "validation_error"
        assert _text(result).startswith("参数验证错误: ")
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_temperature_out_of_range(self):
        tool, _ = _make_tool(httpx.Response(200, json=_gemini_reply("unused")))
        result = await tool(type="chat", prompt="hi", temperature=3)
        assert result["errorType"] == "validation_error"

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        tool, recorder = _make_tool(httpx.Response(200, json=_gemini_reply("unused")), api_key=None)
        result = await tool(type="chat", prompt="hi")

        assert result["isError"] is True
        assert _text(result).startswith("LLM 调用失败: GOOGLE_API_KEY 环境变量未设置")
        assert result["errorInfo"]["type"] == "auth_error"
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_unsupported_model(self):
        tool, _ = _make_tool(httpx.Response(200, json=_gemini_reply("unused")))
        result = await tool(type="chat", prompt="hi", model="gpt-4")

        assert result["isError"] is True
        assert _text(result).startswith("LLM 调用失败: 不支持的模型: gpt-4 (提供商: google)")

    @pytest.mark.asyncio
    async def test_unknown_template(self):
        tool, _ = _make_tool(httpx.Response(200, json=_gemini_reply("unused")))
        result = await tool(type="template", prompt="x", template_id="nope", template_variables={"a": "b"})
        assert _text(result).startswith("LLM 调用失败: 模板渲染失败: 模板不存在: nope")

    @pytest.mark.asyncio
    async def test_auth_failure_is_not_retried(self):
        delays = []
        tool, recorder = _make_tool(
            httpx.Response(400, json={"error": {"message": "API key not valid"}}),
            delays=delays,
        )
        result = await tool(type="chat", prompt="hi")

        assert len(recorder.requests) == 1
        assert delays == []
        assert result["errorInfo"]["type"] == "auth_error"
        assert "Google Gemini API 错误: API key not valid" in _text(result)
        assert "建议: 检查API密钥是否正确" in _text(result)

    @pytest.mark.asyncio
    async def test_network_errors_are_retried(self):
        delays = []
        tool, recorder = _make_tool(
            httpx.ConnectError("connection refused"),
            httpx.ConnectError("connection refused"),
            httpx.Response(200, json=_gemini_reply("finally")),
            delays=delays,
        )
        result = await tool(type="chat", prompt="hi")

        assert _text(result) == "finally"
        assert len(recorder.requests) == 3
        assert delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_retries_exhausted(self):
        delays = []
        tool, recorder = _make_tool(httpx.ReadTimeout("timed out"), delays=delays)
        result = await tool(type="chat", prompt="hi")

        assert len(recorder.requests) == 4
        assert delays == [1.0, 2.0, 4.0]
        assert result["errorInfo"]["type"] == "network_error"

    @pytest.mark.asyncio
    async def test_through_tool_handler(self):
        handler = llm.create_tool(api_key=None)
        result = await handler.execute({"type": "chat"})

        assert result["isError"] is True
        assert result["errorType"] == "validation_error"


# ============================================================================
# Building blocks
# ============================================================================


class TestRetryPolicy:
    def test_delay_is_capped(self):
        policy = RetryPolicy()
        assert [policy.calculate_delay(n) for n in range(5)] == [1.0, 2.0, 4.0, 8.0, 10.0]

    def test_should_retry(self):
        policy = RetryPolicy(max_retries=2)
        assert policy.should_retry(LLMError("Network timeout"), 0)
        assert not policy.should_retry(LLMError("Network timeout"), 2)
        assert not policy.should_retry(LLMError("invalid api key"), 0)


class TestClassifyError:
    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("429 Too Many Requests", "rate_limit"),
            ("Network timeout", "network_error"),
            ("Unauthorized", "auth_error"),
            ("Quota exceeded", "quota_exceeded"),
            ("model not found", "model_unavailable"),
            ("Bad Request", "invalid_request"),
            ("something odd", "unknown_error"),
        ],
    )
    def test_classification(self, message, expected):
        assert classify_error(Exception(message)) == expected


class TestConversationManager:
    def test_history_is_trimmed(self):
        manager = ConversationManager(max_history_length=3)
        for n in range(5):
            manager.add_message("c", "user", f"m{n}")

        assert [m["content"] for m in manager.get_conversation("c")] == ["m2", "m3", "m4"]

    def test_clear(self):
        manager = ConversationManager()
        manager.add_message("c", "user", "hi")
        manager.clear_conversation("c")
        assert manager.get_conversation("c") == []
        assert manager.conversation_ids() == []


class TestGeminiClient:
    def test_role_mapping(self):
        contents = GeminiClient.to_gemini_contents(
            [
                {"role": "system", "content": "s"},
                {"role": "user", "content": "u"},
                {"role": "assistant", "content": "a"},
            ]
        )
        assert [c["role"] for c in contents] == ["user", "user", "model"]

    @pytest.mark.asyncio
    async def test_malformed_reply(self):
        client = GeminiClient("k", transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))
        with pytest.raises(LLMError, match="Invalid response from Gemini"):
            await client.generate([{"role": "user", "content": "hi"}])
