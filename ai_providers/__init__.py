from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import List, Dict, Any, Optional

from co_refactorer.config import LLMConfig, ProviderFamily
from co_refactorer.errors import MalformedArgumentsError, ProviderError
from co_refactorer.models import RefactoringRequest, RefactoringResult, RefactoringTarget
from co_refactorer.prompt import render_prompt

FUNCTION_NAME = "extractRefactoringTarget"
FUNCTION_DESCRIPTION = "Extract pull-request URLs to refer to and target files to be refactored from the user's request"
PULL_REQUEST_URLS_PARAMETER = "pullRequestUrls"
PULL_REQUEST_URLS_DESCRIPTION = "Pull-request URLs in GitHub to refer to for refactoring"
FILES_PARAMETER = "files"
FILES_DESCRIPTION = "List of target files to be refactored"


def refactoring_target_schema() -> Dict[str, Any]:
    """JSON schema of the extractRefactoringTarget function parameters."""
    return {
        "type": "object",
        "properties": {
            PULL_REQUEST_URLS_PARAMETER: {
                "type": "array",
                "description": PULL_REQUEST_URLS_DESCRIPTION,
                "items": {"type": "string"},
            },
            FILES_PARAMETER: {
                "type": "array",
                "description": FILES_DESCRIPTION,
                "items": {"type": "string"},
            },
        },
        "required": [PULL_REQUEST_URLS_PARAMETER, FILES_PARAMETER],
    }


def string_list_argument(arguments: Dict[str, Any], name: str) -> List[str]:
    """Get an array-of-string argument of a function call.

    Raises:
        MalformedArgumentsError: If the argument is missing or not a sequence of strings.
    """
    if name not in arguments:
        raise MalformedArgumentsError(f"missing argument for function call: {name}")
    value = arguments[name]
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise MalformedArgumentsError(f"{name}: expected an array of strings, got {type(value).__name__}")

    values = []
    for item in value:
        if not isinstance(item, str):
            raise MalformedArgumentsError(f"{name}: expected a string item, got {type(item).__name__}")
        values.append(item)
    return values


class AIProvider(ABC):
    """Abstract base class for LLM providers driving the two refactoring round trips.

    A provider instance is stateful: extract_target() keeps whatever call state
    the provider needs so that generate_result() can continue the same exchange.
    """

    family: ProviderFamily

    def __init__(self, prompt_template: str):
        self.prompt_template = prompt_template
        self.config: Optional[LLMConfig] = None
        self._model: Optional[str] = None

    @abstractmethod
    def configure(self, api_key: str, config: LLMConfig) -> None:
        """Configure the AI provider with necessary credentials and settings."""
        pass

    @abstractmethod
    def extract_target(self, prompt: str, model: str, temperature: float) -> RefactoringTarget:
        """Ask the LLM which pull requests and files the prompt refers to.

        Args:
            prompt (str): The user's free-text request
            model (str): Model name
            temperature (float): Sampling temperature

        Returns:
            RefactoringTarget: Deduplicated, sorted target

        Raises:
            NoResponseChoicesError: No choices or candidates were returned
            NoStructuredCallError: No function or tool call was returned
            MalformedArgumentsError: Call arguments could not be decoded
        """
        pass

    @abstractmethod
    def generate_result(self, request: RefactoringRequest) -> RefactoringResult:
        """Send the assembled context and get the refactored files as markdown.

        Args:
            request (RefactoringRequest): Target with fetched diff and file contents

        Returns:
            RefactoringResult: The raw markdown answer
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Get the name of the AI provider."""
        pass

    def render_prompt(self, request: RefactoringRequest) -> str:
        return render_prompt(request, self.prompt_template)

    def _require_model(self) -> str:
        if self._model is None:
            raise ProviderError(f"{self.get_name()}: generate_result() called before extract_target()")
        return self._model

    @staticmethod
    def _build_target(prompt: str, tool_call_id: str, calls: List[Dict[str, Any]]) -> RefactoringTarget:
        """Concatenate the arguments of every call and deduplicate them.

        Raises:
            MalformedArgumentsError: If a call misses an argument or has an unknown one.
        """
        target = RefactoringTarget(user_prompt=prompt, tool_call_id=tool_call_id)
        for arguments in calls:
            unknown = set(arguments) - {PULL_REQUEST_URLS_PARAMETER, FILES_PARAMETER}
            if unknown:
                raise MalformedArgumentsError(f"unknown argument for function call: {sorted(unknown)}")
            target.pull_request_urls.extend(string_list_argument(arguments, PULL_REQUEST_URLS_PARAMETER))
            target.files.extend(string_list_argument(arguments, FILES_PARAMETER))
        return target.unique()
