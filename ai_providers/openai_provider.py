import json
import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from ai_providers import (
    AIProvider, FUNCTION_NAME, FUNCTION_DESCRIPTION, refactoring_target_schema,
)
from co_refactorer.config import LLMConfig, ProviderFamily
from co_refactorer.errors import (
    MalformedArgumentsError, NoResponseChoicesError, NoStructuredCallError, ProviderError,
)
from co_refactorer.models import RefactoringRequest, RefactoringResult, RefactoringTarget

logger = logging.getLogger(__name__)


class OpenAIProvider(AIProvider):
    """OpenAI provider implementation using chat completions with function tools."""

    family = ProviderFamily.OPENAI

    def __init__(self, prompt_template: str, client: Optional[OpenAI] = None):
        super().__init__(prompt_template)
        self._client = client

    def configure(self, api_key: str, config: LLMConfig) -> None:
        """Configure OpenAI with API key."""
        self.config = config
        if self._client is None:
            self._client = OpenAI(api_key=api_key, timeout=config.timeout, max_retries=0)

    def _tool(self):
        return {
            "type": "function",
            "function": {
                "name": FUNCTION_NAME,
                "description": FUNCTION_DESCRIPTION,
                "parameters": refactoring_target_schema(),
            },
        }

    def extract_target(self, prompt: str, model: str, temperature: float) -> RefactoringTarget:
        """Extract the refactoring target with a function call."""
        self._model = model
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
                tools=[self._tool()],
            )
        except OpenAIError as e:
            raise ProviderError(f"OpenAI chat completion failed: {e}") from e

        if not response.choices:
            raise NoResponseChoicesError("No choices in response")
        tool_calls = response.choices[0].message.tool_calls or []
        if not tool_calls:
            raise NoStructuredCallError("No tool calls in response")

        calls = []
        for tool_call in tool_calls:
            logger.debug(f"Tool call {tool_call.id}: {tool_call.function.name}({tool_call.function.arguments})")
            try:
                arguments = json.loads(tool_call.function.arguments)
            except (json.JSONDecodeError, TypeError) as e:
                raise MalformedArgumentsError(f"Failed to decode tool call arguments: {e}") from e
            if not isinstance(arguments, dict):
                raise MalformedArgumentsError(f"Tool call arguments must be an object: {tool_call.function.arguments}")
            calls.append(arguments)

        return self._build_target(prompt, tool_calls[0].id, calls)

    def generate_result(self, request: RefactoringRequest) -> RefactoringResult:
        """Generate the refactored files from the user prompt and the rendered context."""
        model = self._require_model()
        assistance_message = self.render_prompt(request)

        messages = [
            {"role": "user", "content": request.user_prompt},
            {"role": "assistant", "content": assistance_message},
        ]
        try:
            response = self._client.chat.completions.create(model=model, messages=messages)
        except OpenAIError as e:
            raise ProviderError(f"Failed to create chat completion: {e}") from e

        if not response.choices:
            raise NoResponseChoicesError("No choices in response")

        return RefactoringResult(raw_content=response.choices[0].message.content or "")

    def get_name(self) -> str:
        """Get the provider name."""
        return "OpenAI"
