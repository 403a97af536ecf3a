#!/usr/bin/env python3
"""
Test script to verify the three LLM provider adapters against fake SDK clients:
function calling on the first round trip, message sequence on the second
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import google.generativeai as genai
import pytest

from ai_providers import FUNCTION_NAME, string_list_argument
from ai_providers.anthropic_provider import AnthropicProvider
from ai_providers.factory import AIProviderFactory
from ai_providers.gemini_provider import GeminiProvider
from ai_providers.openai_provider import OpenAIProvider
from co_refactorer.config import Config, LLMConfig
from co_refactorer.errors import (
    ConfigError, MalformedArgumentsError, NoResponseChoicesError, NoStructuredCallError, ProviderError,
)
from co_refactorer.models import PullRequest, RefactoringRequest, TargetFile


TEMPLATE = "Refer to {pull_request_url}\n{diff}\n{target_files}\n{target_paths}"
PR_URL = "https://github.com/oinume/co-refactorer/pull/1"


def make_request(tool_call_id="call_1"):
    return RefactoringRequest(
        user_prompt="refactor a.go like the PR",
        tool_call_id=tool_call_id,
        pull_requests=[PullRequest(url=PR_URL, title="t", body="b", diff="+new")],
        target_files=[TargetFile(path="a.go", content="package a")],
    )


# --- OpenAI ---

def openai_tool_call(call_id, arguments):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=FUNCTION_NAME, arguments=arguments))


def openai_response(tool_calls=None, content=None, choices=True):
    if not choices:
        return SimpleNamespace(choices=[])
    message = SimpleNamespace(tool_calls=tool_calls, content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_openai(*responses):
    client = MagicMock()
    client.chat.completions.create.side_effect = list(responses)
    provider = OpenAIProvider(TEMPLATE, client=client)
    provider.configure("sk-test", LLMConfig())
    return provider, client


def test_openai_concatenates_tool_calls():
    provider, client = make_openai(openai_response(tool_calls=[
        openai_tool_call("call_1", json.dumps({"pullRequestUrls": [PR_URL], "files": ["b.go", "a.go"]})),
        openai_tool_call("call_2", json.dumps({"pullRequestUrls": [PR_URL], "files": ["a.go"]})),
    ]))

    target = provider.extract_target("refactor", "gpt-4o-mini", 0.7)

    assert target.user_prompt == "refactor"
    assert target.tool_call_id == "call_1"
    assert target.pull_request_urls == [PR_URL]
    assert target.files == ["a.go", "b.go"]
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["temperature"] == 0.7
    assert kwargs["messages"] == [{"role": "user", "content": "refactor"}]
    function = kwargs["tools"][0]["function"]
    assert function["name"] == FUNCTION_NAME
    assert function["parameters"]["required"] == ["pullRequestUrls", "files"]


def test_openai_extraction_errors():
    provider, _ = make_openai(openai_response(choices=False))
    with pytest.raises(NoResponseChoicesError):
        provider.extract_target("p", "gpt-4o-mini", 0.7)

    provider, _ = make_openai(openai_response(tool_calls=None, content="I can't"))
    with pytest.raises(NoStructuredCallError):
        provider.extract_target("p", "gpt-4o-mini", 0.7)

    provider, _ = make_openai(openai_response(tool_calls=[openai_tool_call("c", "{not json")]))
    with pytest.raises(MalformedArgumentsError):
        provider.extract_target("p", "gpt-4o-mini", 0.7)

    provider, _ = make_openai(openai_response(tool_calls=[openai_tool_call("c", '{"files": "a.go"}')]))
    with pytest.raises(MalformedArgumentsError):
        provider.extract_target("p", "gpt-4o-mini", 0.7)


def test_openai_generation_sends_prompt_then_assistant_context():
    provider, client = make_openai(
        openai_response(tool_calls=[openai_tool_call("call_1", json.dumps({"pullRequestUrls": [PR_URL], "files": ["a.go"]}))]),
        openai_response(content="### a.go\n\n```go\npackage a2\n```"),
    )
    provider.extract_target("refactor a.go like the PR", "gpt-4o", 0.2)

    result = provider.generate_result(make_request())

    assert result.raw_content == "### a.go\n\n```go\npackage a2\n```"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o"
    messages = kwargs["messages"]
    assert [m["role"] for m in messages] == ["user", "assistant"]
    assert messages[0]["content"] == "refactor a.go like the PR"
    assert PR_URL in messages[1]["content"]
    assert "+new" in messages[1]["content"]


def test_openai_generation_without_choices():
    provider, _ = make_openai(
        openai_response(tool_calls=[openai_tool_call("call_1", json.dumps({"pullRequestUrls": [], "files": []}))]),
        openai_response(choices=False),
    )
    provider.extract_target("p", "gpt-4o", 0.2)

    with pytest.raises(NoResponseChoicesError):
        provider.generate_result(make_request())


def test_generation_before_extraction_is_rejected():
    provider, _ = make_openai()
    with pytest.raises(ProviderError, match="before extract_target"):
        provider.generate_result(make_request())


# --- Anthropic ---

def tool_use_block(block_id, tool_input):
    return SimpleNamespace(type="tool_use", id=block_id, name=FUNCTION_NAME, input=tool_input)


def text_block(text):
    return SimpleNamespace(type="text", text=text)


def make_anthropic(*responses):
    client = MagicMock()
    client.messages.create.side_effect = list(responses)
    provider = AnthropicProvider(TEMPLATE, client=client)
    provider.configure("sk-ant-test", LLMConfig())
    return provider, client


def test_anthropic_extracts_from_tool_use_blocks():
    provider, client = make_anthropic(SimpleNamespace(content=[
        text_block("Let me extract the target."),
        tool_use_block("toolu_1", {"pullRequestUrls": [PR_URL, PR_URL], "files": ["a.go"]}),
        tool_use_block("toolu_2", {"pullRequestUrls": [], "files": ["b.go"]}),
    ]))

    target = provider.extract_target("refactor", "claude-3-5-sonnet-latest", 0.5)

    assert target.tool_call_id == "toolu_1"
    assert target.pull_request_urls == [PR_URL]
    assert target.files == ["a.go", "b.go"]
    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["max_tokens"] == 1000
    assert kwargs["temperature"] == 0.5
    assert kwargs["tools"][0]["input_schema"]["properties"]["files"]["type"] == "array"


def test_anthropic_extraction_errors():
    provider, _ = make_anthropic(SimpleNamespace(content=[]))
    with pytest.raises(NoResponseChoicesError):
        provider.extract_target("p", "claude-3-5-sonnet-latest", 0.5)

    provider, _ = make_anthropic(SimpleNamespace(content=[text_block("no tools")]))
    with pytest.raises(NoStructuredCallError):
        provider.extract_target("p", "claude-3-5-sonnet-latest", 0.5)

    provider, _ = make_anthropic(SimpleNamespace(content=[tool_use_block("t", {"files": [1, 2]})]))
    with pytest.raises(MalformedArgumentsError):
        provider.extract_target("p", "claude-3-5-sonnet-latest", 0.5)


def test_anthropic_generation_answers_tool_use():
    tool_input = {"pullRequestUrls": [PR_URL], "files": ["a.go"]}
    provider, client = make_anthropic(
        SimpleNamespace(content=[tool_use_block("toolu_1", tool_input)]),
        SimpleNamespace(content=[text_block("### a.go\n\n```go\npackage a2\n```")]),
    )
    target = provider.extract_target("refactor a.go like the PR", "claude-3-5-sonnet-latest", 0.5)

    result = provider.generate_result(make_request(target.tool_call_id))

    assert result.raw_content == "### a.go\n\n```go\npackage a2\n```"
    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["max_tokens"] == 4096
    user, assistant, tool_result = kwargs["messages"]
    assert user == {"role": "user", "content": "refactor a.go like the PR"}
    assert assistant["content"][0] == {
        "type": "tool_use", "id": "toolu_1", "name": FUNCTION_NAME, "input": tool_input,
    }
    assert tool_result["role"] == "user"
    assert tool_result["content"][0]["tool_use_id"] == "toolu_1"
    assert PR_URL in tool_result["content"][0]["content"]


def test_anthropic_generation_without_content():
    provider, _ = make_anthropic(
        SimpleNamespace(content=[tool_use_block("toolu_1", {"pullRequestUrls": [], "files": []})]),
        SimpleNamespace(content=[]),
    )
    provider.extract_target("p", "claude-3-5-sonnet-latest", 0.5)

    with pytest.raises(NoResponseChoicesError):
        provider.generate_result(make_request("toolu_1"))


# --- Gemini ---

def gemini_response(parts):
    return SimpleNamespace(candidates=[SimpleNamespace(index=0, content=SimpleNamespace(parts=parts))])


def function_call_part(args):
    return SimpleNamespace(function_call=SimpleNamespace(name=FUNCTION_NAME, args=args), text="")


def text_part(text):
    return SimpleNamespace(function_call=None, text=text)


def make_gemini(*responses):
    chat_session = MagicMock()
    chat_session.send_message.side_effect = list(responses)
    model_factory = MagicMock()
    model_factory.return_value.start_chat.return_value = chat_session
    provider = GeminiProvider(TEMPLATE, model_factory=model_factory)
    provider.configure("gemini-test-key", LLMConfig())
    return provider, model_factory, chat_session


def test_gemini_extracts_from_function_calls():
    provider, model_factory, chat_session = make_gemini(gemini_response([
        function_call_part({"pullRequestUrls": [PR_URL], "files": ["b.go"]}),
        function_call_part({"pullRequestUrls": [PR_URL], "files": ["a.go", "b.go"]}),
    ]))

    target = provider.extract_target("refactor", "gemini-1.5-flash", 0.9)

    assert target.tool_call_id == ""
    assert target.pull_request_urls == [PR_URL]
    assert target.files == ["a.go", "b.go"]
    args, kwargs = model_factory.call_args
    assert args == ("gemini-1.5-flash",)
    assert kwargs["generation_config"] == {"temperature": 0.9}
    declaration = kwargs["tools"][0].function_declarations[0]
    assert declaration.name == FUNCTION_NAME
    chat_session.send_message.assert_called_once_with("refactor")


def test_gemini_extraction_errors():
    provider, _, _ = make_gemini(SimpleNamespace(candidates=[]))
    with pytest.raises(NoResponseChoicesError):
        provider.extract_target("p", "gemini-1.5-flash", 0.9)

    provider, _, _ = make_gemini(gemini_response([text_part("no call")]))
    with pytest.raises(NoStructuredCallError):
        provider.extract_target("p", "gemini-1.5-flash", 0.9)

    provider, _, _ = make_gemini(gemini_response([function_call_part({"pullRequestUrls": PR_URL})]))
    with pytest.raises(MalformedArgumentsError):
        provider.extract_target("p", "gemini-1.5-flash", 0.9)


def test_gemini_generation_continues_chat_session():
    provider, _, chat_session = make_gemini(
        gemini_response([function_call_part({"pullRequestUrls": [PR_URL], "files": ["a.go"]})]),
        gemini_response([text_part("### a.go\n\n```go\npackage a2\n```")]),
    )
    provider.extract_target("refactor a.go like the PR", "gemini-1.5-flash", 0.9)

    result = provider.generate_result(make_request(""))

    assert result.raw_content == "### a.go\n\n```go\npackage a2\n```"
    user_prompt, assistance_message, function_response_part = chat_session.send_message.call_args.args[0]
    assert user_prompt == "refactor a.go like the PR"
    assert PR_URL in assistance_message
    function_response = genai.protos.FunctionResponse.to_dict(function_response_part.function_response)
    assert function_response["name"] == FUNCTION_NAME
    assert function_response["response"] == {"pullRequestDiff": "+new", "a.go": "package a"}


def test_gemini_generation_without_candidates():
    provider, _, _ = make_gemini(
        gemini_response([function_call_part({"pullRequestUrls": [PR_URL], "files": ["a.go"]})]),
        SimpleNamespace(candidates=[]),
    )
    provider.extract_target("p", "gemini-1.5-flash", 0.9)

    with pytest.raises(NoResponseChoicesError):
        provider.generate_result(make_request(""))


# --- shared argument decoding and factory ---

def test_string_list_argument():
    assert string_list_argument({"files": ("a", "b")}, "files") == ["a", "b"]
    assert string_list_argument({"files": []}, "files") == []
    with pytest.raises(MalformedArgumentsError, match="missing argument"):
        string_list_argument({}, "files")
    with pytest.raises(MalformedArgumentsError):
        string_list_argument({"files": None}, "files")
    with pytest.raises(MalformedArgumentsError):
        string_list_argument({"files": "a.go"}, "files")
    with pytest.raises(MalformedArgumentsError):
        string_list_argument({"files": {"a": 1}}, "files")


@pytest.mark.parametrize("model, provider_name", [
    ("gpt-4o-mini", "openai"),
    ("gpt-4o", "openai"),
    ("o3-mini", "openai"),
    ("gemini-1.5-flash", "gemini"),
    ("claude-3-5-sonnet-latest", "anthropic"),
])
def test_factory_selects_provider_by_model(model, provider_name):
    assert AIProviderFactory.provider_name_for_model(model) == provider_name


def test_factory_rejects_unknown_model():
    with pytest.raises(ConfigError, match="Unsupported model"):
        AIProviderFactory.provider_name_for_model("llama-3")


def test_factory_requires_api_key_of_selected_provider():
    config = Config(llm=LLMConfig(model="claude-3-5-sonnet-latest", openai_api_key="sk-test"))

    with pytest.raises(ConfigError, match="ANTHROPIC_API_KEY"):
        AIProviderFactory.for_model(config, TEMPLATE)


def test_factory_configures_provider():
    config = Config(llm=LLMConfig(model="gpt-4o-mini", openai_api_key="sk-test"))

    provider = AIProviderFactory.for_model(config, TEMPLATE)

    assert isinstance(provider, OpenAIProvider)
    assert provider.config is config.llm
    assert provider.prompt_template == TEMPLATE


def test_factory_resolves_registered_provider(monkeypatch):
    monkeypatch.setattr(AIProviderFactory, "_providers", dict(AIProviderFactory._providers))
    monkeypatch.setattr(AIProviderFactory, "_model_prefixes", AIProviderFactory._model_prefixes)

    class ProxyProvider(OpenAIProvider):
        def get_name(self):
            return "Proxy"

    AIProviderFactory.register_provider("Proxy", ProxyProvider, "Proxy-")
    config = Config(llm=LLMConfig(model="proxy-gpt-4o", openai_api_key="sk-test"))

    provider = AIProviderFactory.for_model(config, TEMPLATE)

    assert AIProviderFactory.provider_name_for_model("proxy-gpt-4o") == "proxy"
    assert isinstance(provider, ProxyProvider)
    assert provider.config is config.llm


# --- function call argument contract, shared by all adapters ---

MISSING_AND_UNKNOWN_ARGUMENTS = [
    pytest.param({"files": ["a.go"]}, "missing argument", id="missing-pull-request-urls"),
    pytest.param({"pullRequestUrls": [PR_URL]}, "missing argument", id="missing-files"),
    pytest.param({"pullRequestUrls": [], "files": ["a.go"], "extra": 1}, "unknown argument", id="unknown-argument"),
]


@pytest.mark.parametrize("arguments, message", MISSING_AND_UNKNOWN_ARGUMENTS)
def test_openai_rejects_missing_and_unknown_arguments(arguments, message):
    provider, _ = make_openai(openai_response(tool_calls=[openai_tool_call("call_1", json.dumps(arguments))]))

    with pytest.raises(MalformedArgumentsError, match=message):
        provider.extract_target("p", "gpt-4o-mini", 0.7)


@pytest.mark.parametrize("arguments, message", MISSING_AND_UNKNOWN_ARGUMENTS)
def test_anthropic_rejects_missing_and_unknown_arguments(arguments, message):
    provider, _ = make_anthropic(SimpleNamespace(content=[tool_use_block("toolu_1", arguments)]))

    with pytest.raises(MalformedArgumentsError, match=message):
        provider.extract_target("p", "claude-3-5-sonnet-latest", 0.5)


@pytest.mark.parametrize("arguments, message", MISSING_AND_UNKNOWN_ARGUMENTS)
def test_gemini_rejects_missing_and_unknown_arguments(arguments, message):
    provider, _, _ = make_gemini(gemini_response([function_call_part(arguments)]))

    with pytest.raises(MalformedArgumentsError, match=message):
        provider.extract_target("p", "gemini-1.5-flash", 0.9)


# --- Gemini with real protos ---

def proto_response(*parts):
    candidate = genai.protos.Candidate(index=0, content=genai.protos.Content(role="model", parts=list(parts)))
    return SimpleNamespace(candidates=[candidate])


def proto_function_call_part(args):
    return genai.protos.Part(function_call=genai.protos.FunctionCall(name=FUNCTION_NAME, args=args))


def test_gemini_decodes_proto_function_call_args():
    provider, _, _ = make_gemini(proto_response(
        genai.protos.Part(text="Extracting the target."),
        proto_function_call_part({"pullRequestUrls": [PR_URL], "files": ["b.go", "a.go"]}),
        proto_function_call_part({"pullRequestUrls": [PR_URL], "files": ["a.go"]}),
    ))

    target = provider.extract_target("refactor", "gemini-1.5-flash", 0.9)

    assert target.pull_request_urls == [PR_URL]
    assert target.files == ["a.go", "b.go"]


def test_gemini_rejects_proto_args_of_wrong_type():
    provider, _, _ = make_gemini(proto_response(
        proto_function_call_part({"pullRequestUrls": PR_URL, "files": ["a.go"]}),
    ))

    with pytest.raises(MalformedArgumentsError):
        provider.extract_target("refactor", "gemini-1.5-flash", 0.9)


def test_gemini_rejects_proto_args_with_unknown_key():
    provider, _, _ = make_gemini(proto_response(
        proto_function_call_part({"pullRequestUrls": [PR_URL], "files": ["a.go"], "reason": "tidy"}),
    ))

    with pytest.raises(MalformedArgumentsError, match="unknown argument"):
        provider.extract_target("refactor", "gemini-1.5-flash", 0.9)
