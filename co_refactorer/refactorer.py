"""
Main refactoring orchestrator for Co-Refactorer.

This module contains the Refactorer class that drives the pipeline:
prompt -> target -> request -> result -> files on disk. Every stage is
sequential and fails fast; nothing is retried or rolled back.
"""

import logging
import time
from typing import TYPE_CHECKING, List, Optional

from .config import Config
from .errors import FileReadError, FileWriteError, URLParseError, FetchError
from .github_client import GitHubClient
from .models import (
    PullRequest, RefactoringRequest, RefactoringResult, RefactoringTarget, TargetFile,
)
from .pull_request_url import parse_pull_request_url
from .result_parser import parse_markdown_content

if TYPE_CHECKING:
    from ai_providers import AIProvider


logger = logging.getLogger(__name__)


class Refactorer:
    """Main orchestrator class for the refactoring process."""

    def __init__(self, config: Config, provider: 'AIProvider',
                 github_client: Optional[GitHubClient] = None):
        """Initialize the refactorer with configuration and an LLM provider."""
        self.config = config
        self.provider = provider
        self.github_client = github_client or GitHubClient(config.github)

        logger.info(f"Initialized Refactorer with provider {provider.get_name()} "
                    f"and model {config.llm.model}")

    def create_refactoring_target(self, prompt: str) -> RefactoringTarget:
        """Ask the LLM which pull requests and files the prompt is about."""
        logger.info("Extracting refactoring target...")
        target = self.provider.extract_target(prompt, self.config.llm.model, self.config.llm.temperature)
        logger.info(f"Target: {len(target.pull_request_urls)} pull requests, {len(target.files)} files")
        logger.debug(f"Target pull requests: {target.pull_request_urls}, files: {target.files}")
        return target

    def create_refactoring_request(self, target: RefactoringTarget) -> RefactoringRequest:
        """Fetch pull request diffs from GitHub and file contents from the local machine."""
        request = RefactoringRequest(user_prompt=target.user_prompt, tool_call_id=target.tool_call_id)

        for pr_url in target.pull_request_urls:
            request.pull_requests.append(self._fetch_pull_request(pr_url))

        for path in target.files:
            request.target_files.append(self._read_target_file(path))

        logger.debug(f"Refactoring request: {request.summary()}")
        return request

    def _fetch_pull_request(self, pr_url: str) -> PullRequest:
        try:
            owner, repo, number = parse_pull_request_url(pr_url)
        except URLParseError as e:
            raise URLParseError(f"Failed to parse pull-request url '{pr_url}': {e}") from e

        logger.info(f"Fetching pull request {pr_url}")
        try:
            pr_details = self.github_client.get_pr_details(owner, repo, number)
            diff = self.github_client.get_pr_diff(pr_details.api_url)
        except FetchError as e:
            raise FetchError(f"Failed to get pull-request content '{pr_url}': {e}",
                             status_code=e.status_code, body=e.body) from e

        return PullRequest(url=pr_url, title=pr_details.title, body=pr_details.description, diff=diff)

    @staticmethod
    def _read_target_file(path: str) -> TargetFile:
        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FileReadError(f"Failed to read file content '{path}': {e}") from e
        logger.debug(f"Read {len(content)} characters from {path}")
        return TargetFile(path=path, content=content)

    def create_refactoring_result(self, request: RefactoringRequest) -> RefactoringResult:
        """Send the user prompt with the fetched context and get the refactored files."""
        logger.info("Generating refactoring result...")
        result = self.provider.generate_result(request)
        logger.debug(f"Raw result content:\n{result.raw_content}")
        return result

    def apply_refactoring_result(self, result: RefactoringResult) -> List[TargetFile]:
        """Write every file of the result over the existing file.

        The file must already exist. It is overwritten from the beginning
        without truncation, so content shorter than the original leaves the
        original trailing bytes in place. Files written before a failure are
        not rolled back.
        """
        target_files = parse_markdown_content(result.raw_content)

        for target_file in target_files:
            logger.info(f"--- {target_file.path} ---\n{target_file.content}")
            try:
                with open(target_file.path, "r+", encoding="utf-8") as f:
                    f.write(target_file.content)
            except OSError as e:
                raise FileWriteError(f"Failed to write content to file '{target_file.path}': {e}") from e

        logger.info(f"Applied refactoring to {len(target_files)} files")
        return target_files

    def run(self, prompt: str) -> List[TargetFile]:
        """Run the whole pipeline for a prompt and return the files written."""
        logger.info("=== Starting Refactoring ===")
        start_time = time.time()

        target = self.create_refactoring_target(prompt)
        target.validate()
        request = self.create_refactoring_request(target)
        result = self.create_refactoring_result(request)
        applied = self.apply_refactoring_result(result)

        logger.info(f"✅ Refactoring completed in {time.time() - start_time:.2f}s")
        return applied

    def close(self):
        """Clean up resources."""
        logger.debug("Cleaning up Refactorer resources...")
        self.github_client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
