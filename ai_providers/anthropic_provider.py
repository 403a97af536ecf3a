import logging
from typing import Any, Dict, Optional

import anthropic

from ai_providers import (
    AIProvider, FUNCTION_NAME, FUNCTION_DESCRIPTION, refactoring_target_schema,
)
from co_refactorer.config import LLMConfig, ProviderFamily
from co_refactorer.errors import (
    MalformedArgumentsError, NoResponseChoicesError, NoStructuredCallError, ProviderError,
)
from co_refactorer.models import RefactoringRequest, RefactoringResult, RefactoringTarget

logger = logging.getLogger(__name__)


class AnthropicProvider(AIProvider):
    """Anthropic (Claude) provider implementation using tool use.

    The second round trip replays the tool_use block of the first answer and
    sends the rendered context back as its tool_result.
    """

    family = ProviderFamily.ANTHROPIC

    def __init__(self, prompt_template: str, client: Optional[anthropic.Anthropic] = None):
        super().__init__(prompt_template)
        self._client = client
        self._tool_use = None

    def configure(self, api_key: str, config: LLMConfig) -> None:
        """Configure Anthropic with API key."""
        self.config = config
        if self._client is None:
            self._client = anthropic.Anthropic(api_key=api_key, timeout=config.timeout, max_retries=0)

    def _tool(self) -> Dict[str, Any]:
        return {
            "name": FUNCTION_NAME,
            "description": FUNCTION_DESCRIPTION,
            "input_schema": refactoring_target_schema(),
        }

    def extract_target(self, prompt: str, model: str, temperature: float) -> RefactoringTarget:
        """Extract the refactoring target with a tool use."""
        self._model = model
        try:
            response = self._client.messages.create(
                model=model,
                max_tokens=self.config.max_tokens_extraction,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
                tools=[self._tool()],
            )
        except anthropic.AnthropicError as e:
            raise ProviderError(f"Anthropic messages request failed: {e}") from e

        if not response.content:
            raise NoResponseChoicesError("No content in response")
        tool_uses = [block for block in response.content if block.type == "tool_use"]
        if not tool_uses:
            raise NoStructuredCallError("No tool use in response")

        calls = []
        for tool_use in tool_uses:
            logger.debug(f"Tool use {tool_use.id}: {tool_use.name}({tool_use.input})")
            if not isinstance(tool_use.input, dict):
                raise MalformedArgumentsError(f"Tool use input must be an object: {tool_use.input!r}")
            calls.append(tool_use.input)

        self._tool_use = tool_uses[0]
        return self._build_target(prompt, tool_uses[0].id, calls)

    def generate_result(self, request: RefactoringRequest) -> RefactoringResult:
        """Answer the tool use with the rendered context and get the refactored files."""
        model = self._require_model()
        if self._tool_use is None:
            raise ProviderError("Anthropic: no tool use to answer")
        assistance_message = self.render_prompt(request)

        messages = [
            {"role": "user", "content": request.user_prompt},
            {
                "role": "assistant",
                "content": [{
                    "type": "tool_use",
                    "id": request.tool_call_id,
                    "name": self._tool_use.name,
                    "input": self._tool_use.input,
                }],
            },
            {
                "role": "user",
                "content": [{
                    "type": "tool_result",
                    "tool_use_id": request.tool_call_id,
                    "content": assistance_message,
                }],
            },
        ]
        logger.debug("API call: messages.create")
        try:
            response = self._client.messages.create(
                model=model,
                max_tokens=self.config.max_tokens_generation,
                messages=messages,
                tools=[self._tool()],
            )
        except anthropic.AnthropicError as e:
            raise ProviderError(f"Failed to create messages: {e}") from e

        if not response.content:
            raise NoResponseChoicesError("No content in response")

        for index, block in enumerate(response.content):
            logger.debug(f"Response content[{index}]: type={block.type}")

        texts = [block.text for block in response.content if block.type == "text"]
        return RefactoringResult(raw_content=texts[0] if texts else "")

    def get_name(self) -> str:
        """Get the provider name."""
        return "Anthropic Claude"
