import logging
from typing import Any, Callable, Dict

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import BlockedPromptException, StopCandidateException

from ai_providers import (
    AIProvider, FUNCTION_NAME, FUNCTION_DESCRIPTION, FILES_DESCRIPTION, FILES_PARAMETER,
    PULL_REQUEST_URLS_DESCRIPTION, PULL_REQUEST_URLS_PARAMETER,
)
from co_refactorer.config import LLMConfig, ProviderFamily
from co_refactorer.errors import NoResponseChoicesError, NoStructuredCallError, ProviderError
from co_refactorer.models import RefactoringRequest, RefactoringResult, RefactoringTarget

logger = logging.getLogger(__name__)

GEMINI_ERRORS = (google_exceptions.GoogleAPIError, BlockedPromptException, StopCandidateException)


def _string_array_schema(description: str) -> genai.protos.Schema:
    return genai.protos.Schema(
        type=genai.protos.Type.ARRAY,
        description=description,
        items=genai.protos.Schema(type=genai.protos.Type.STRING),
    )


class GeminiProvider(AIProvider):
    """Gemini AI provider implementation.

    Both round trips go through one chat session, which is the call state kept
    between extract_target() and generate_result(). Gemini has no tool call id.
    """

    family = ProviderFamily.GEMINI

    def __init__(self, prompt_template: str,
                 model_factory: Callable[..., Any] = genai.GenerativeModel):
        super().__init__(prompt_template)
        self._model_factory = model_factory
        self._chat_session = None

    def configure(self, api_key: str, config: LLMConfig) -> None:
        """Configure Gemini with API key."""
        self.config = config
        genai.configure(api_key=api_key)

    def _tool(self) -> genai.protos.Tool:
        return genai.protos.Tool(function_declarations=[
            genai.protos.FunctionDeclaration(
                name=FUNCTION_NAME,
                description=FUNCTION_DESCRIPTION,
                parameters=genai.protos.Schema(
                    type=genai.protos.Type.OBJECT,
                    properties={
                        PULL_REQUEST_URLS_PARAMETER: _string_array_schema(PULL_REQUEST_URLS_DESCRIPTION),
                        FILES_PARAMETER: _string_array_schema(FILES_DESCRIPTION),
                    },
                    required=[PULL_REQUEST_URLS_PARAMETER, FILES_PARAMETER],
                ),
            ),
        ])

    def extract_target(self, prompt: str, model: str, temperature: float) -> RefactoringTarget:
        """Extract the refactoring target with a function call in a new chat session."""
        self._model = model
        generative_model = self._model_factory(
            model,
            tools=[self._tool()],
            generation_config={"temperature": temperature},
        )
        chat_session = generative_model.start_chat()
        try:
            response = chat_session.send_message(prompt)
        except GEMINI_ERRORS as e:
            raise ProviderError(f"Gemini send_message failed: {e}") from e
        self._chat_session = chat_session

        if not response.candidates:
            raise NoResponseChoicesError("No candidates in response")
        function_calls = [
            part.function_call for part in response.candidates[0].content.parts
            if part.function_call
        ]
        if not function_calls:
            raise NoStructuredCallError("No function calls in response")

        calls = []
        for function_call in function_calls:
            arguments = {name: value for name, value in function_call.args.items()}
            logger.debug(f"Function call {function_call.name}: {arguments}")
            calls.append(arguments)

        return self._build_target(prompt, "", calls)

    def generate_result(self, request: RefactoringRequest) -> RefactoringResult:
        """Answer the function call in the same chat session and get the refactored files."""
        self._require_model()
        if self._chat_session is None:
            raise ProviderError("Gemini: no chat session to continue")
        assistance_message = self.render_prompt(request)

        function_response: Dict[str, Any] = {
            "pullRequestDiff": request.pull_requests[0].diff,
        }
        for target_file in request.target_files:
            function_response[target_file.path] = target_file.content

        try:
            response = self._chat_session.send_message([
                request.user_prompt,
                assistance_message,
                genai.protos.Part(function_response=genai.protos.FunctionResponse(
                    name=FUNCTION_NAME,
                    response=function_response,
                )),
            ])
        except GEMINI_ERRORS as e:
            raise ProviderError(f"Gemini send_message failed: {e}") from e

        if not response.candidates or not response.candidates[0].content.parts:
            raise NoResponseChoicesError("No candidates in response")

        for candidate in response.candidates:
            for index, part in enumerate(candidate.content.parts):
                logger.debug(f"Candidate {candidate.index} part {index}: {part}")

        return RefactoringResult(raw_content=response.candidates[0].content.parts[0].text)

    def get_name(self) -> str:
        """Get the provider name."""
        return "Gemini AI"
