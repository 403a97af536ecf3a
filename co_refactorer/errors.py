"""
Exception hierarchy for Co-Refactorer.

Every stage of the pipeline raises a subclass of CoRefactorerError so the CLI
can report a single self-explanatory message and exit non-zero.
"""

from typing import Optional


class CoRefactorerError(Exception):
    """Base exception for all co-refactorer errors."""
    pass


class ConfigError(CoRefactorerError):
    """Exception raised when required configuration is missing or invalid."""
    pass


class URLParseError(CoRefactorerError):
    """Exception raised when a pull request URL cannot be parsed."""
    pass


class ValidationError(CoRefactorerError):
    """Exception raised when a refactoring target contains a bad URL or file."""
    pass


class ProviderError(CoRefactorerError):
    """Base exception for LLM provider errors."""
    pass


class NoResponseChoicesError(ProviderError):
    """Exception raised when the provider returns no choices or candidates."""
    pass


class NoStructuredCallError(ProviderError):
    """Exception raised when the provider returns no function or tool call."""
    pass


class MalformedArgumentsError(ProviderError):
    """Exception raised when function call arguments cannot be decoded."""
    pass


class FetchError(CoRefactorerError):
    """Exception raised when fetching a pull request or its diff fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class FileIOError(CoRefactorerError):
    """Base exception for local file read and write errors."""
    pass


class FileReadError(FileIOError):
    """Exception raised when a target file or prompt file cannot be read."""
    pass


class FileWriteError(FileIOError):
    """Exception raised when refactored content cannot be written to an existing file."""
    pass


class ResultParseError(CoRefactorerError):
    """Exception raised when the LLM result cannot be turned into files."""
    pass


class StructureMismatchError(ResultParseError):
    """Exception raised when heading and code block counts differ."""
    pass
