"""
Data models for Co-Refactorer.

This module contains the data classes handed from one pipeline stage to the
next: target -> request -> result.
"""

import os
from dataclasses import dataclass, field, replace
from typing import List

from .errors import URLParseError, ValidationError
from .pull_request_url import parse_pull_request_url


@dataclass
class RefactoringTarget:
    """Pull requests to refer to and files to refactor, extracted by the LLM."""
    user_prompt: str
    tool_call_id: str = ""
    pull_request_urls: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)

    def unique(self) -> 'RefactoringTarget':
        """Return a copy with sorted, deduplicated URLs and files."""
        return replace(
            self,
            pull_request_urls=sorted(set(self.pull_request_urls)),
            files=sorted(set(self.files)),
        )

    def validate(self) -> None:
        """Check every URL parses and every file exists on the local filesystem.

        Raises:
            ValidationError: On the first bad URL or file.
        """
        for url in self.pull_request_urls:
            try:
                parse_pull_request_url(url)
            except URLParseError as e:
                raise ValidationError(f"Failed to parse pull-request URL '{url}': {e}") from e

        for path in self.files:
            if not path:
                raise ValidationError(f"Empty file name is not allowed '{path}'")
            try:
                os.stat(path)
            except OSError as e:
                raise ValidationError(f"File '{path}' doesn't exist or something wrong: {e}") from e


@dataclass
class PRDetails:
    """Metadata of a pull request as returned by the GitHub API."""
    owner: str
    repo: str
    pull_number: int
    title: str
    description: str
    api_url: str

    @property
    def repo_full_name(self) -> str:
        """Get the full repository name."""
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class PullRequest:
    """A pull request fetched from GitHub."""
    url: str
    title: str
    body: str
    diff: str


@dataclass
class TargetFile:
    """A local file and its content."""
    path: str
    content: str


@dataclass
class RefactoringRequest:
    """Target plus fetched pull request diffs and file contents."""
    user_prompt: str
    tool_call_id: str = ""
    # Only the first pull request is referred to when rendering the prompt.
    pull_requests: List[PullRequest] = field(default_factory=list)
    target_files: List[TargetFile] = field(default_factory=list)

    @property
    def target_paths(self) -> List[str]:
        return [target_file.path for target_file in self.target_files]

    def summary(self) -> str:
        """Short description without diff or file contents, for logging."""
        pr_urls = [pr.url for pr in self.pull_requests]
        return (
            f"{{user_prompt='{self.user_prompt}', tool_call_id='{self.tool_call_id}', "
            f"pull_requests={pr_urls}, files={self.target_paths}}}"
        )


@dataclass
class RefactoringResult:
    """Raw markdown answer from the LLM."""
    raw_content: str
