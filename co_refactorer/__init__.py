"""
Co-Refactorer Package

An LLM-driven refactoring assistant: it asks an LLM which GitHub pull request
to follow and which local files to change, then rewrites those files the way
the pull request did. OpenAI, Gemini and Claude models are supported.
"""

__version__ = "1.0.0"
__description__ = "LLM-driven refactoring after the example of a GitHub pull request"

# Import main classes for easy access
from .config import Config
from .errors import (
    CoRefactorerError, ConfigError, URLParseError, ValidationError,
    ProviderError, NoResponseChoicesError, NoStructuredCallError, MalformedArgumentsError,
    FetchError, FileIOError, FileReadError, FileWriteError,
    ResultParseError, StructureMismatchError,
)
from .models import (
    RefactoringTarget, PRDetails, PullRequest, TargetFile, RefactoringRequest, RefactoringResult
)
from .pull_request_url import parse_pull_request_url
from .result_parser import parse_markdown_content
from .prompt import load_prompt_template, render_prompt

# Import client classes
from .github_client import GitHubClient
from .refactorer import Refactorer

__all__ = [
    # Main classes
    'Config',
    'Refactorer',
    'GitHubClient',

    # Data models
    'RefactoringTarget', 'PRDetails', 'PullRequest', 'TargetFile',
    'RefactoringRequest', 'RefactoringResult',

    # Functions
    'parse_pull_request_url', 'parse_markdown_content',
    'load_prompt_template', 'render_prompt',

    # Errors
    'CoRefactorerError', 'ConfigError', 'URLParseError', 'ValidationError',
    'ProviderError', 'NoResponseChoicesError', 'NoStructuredCallError', 'MalformedArgumentsError',
    'FetchError', 'FileIOError', 'FileReadError', 'FileWriteError',
    'ResultParseError', 'StructureMismatchError',
]
