"""
GitHub API client for Co-Refactorer.

This module handles all GitHub API interactions: fetching pull request
metadata through PyGithub and the pull request diff through a plain
authenticated HTTP request.
"""

import logging
import requests
from typing import Optional
from github import Auth, Github, GithubException

from .config import GitHubConfig
from .errors import FetchError
from .models import PRDetails


logger = logging.getLogger(__name__)

DIFF_MEDIA_TYPE = "application/vnd.github.diff"


class GitHubClient:
    """GitHub API client without retries: every failure is reported as FetchError."""

    def __init__(self, config: GitHubConfig, session: Optional[requests.Session] = None,
                 client: Optional[Github] = None):
        """Initialize GitHub client with configuration."""
        self.config = config

        if client is not None:
            self._client = client
        elif config.token:
            self._client = Github(auth=Auth.Token(config.token), base_url=config.api_base_url,
                                  timeout=config.timeout)
        else:
            self._client = Github(base_url=config.api_base_url, timeout=config.timeout)

        self._session = session if session is not None else requests.Session()
        self._session.headers.update({
            'User-Agent': 'Co-Refactorer/1.0',
        })
        if config.token:
            self._session.headers.update({'Authorization': f'Bearer {config.token}'})

        logger.info(f"Initialized GitHub client (authenticated: {config.is_authenticated})")

    def get_pr_details(self, owner: str, repo: str, pull_number: int) -> PRDetails:
        """Get pull request metadata."""
        repo_name = f"{owner}/{repo}"
        logger.debug(f"Fetching PR details for {repo_name}#{pull_number}")

        try:
            repo_obj = self._client.get_repo(repo_name)
            pr = repo_obj.get_pull(pull_number)
        except GithubException as e:
            raise FetchError(
                f"Failed to get pull-request {repo_name}#{pull_number}: {e.status} {e.data}",
                status_code=e.status,
                body=str(e.data),
            ) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Failed to get pull-request {repo_name}#{pull_number}: {e}") from e

        pr_details = PRDetails(
            owner=owner,
            repo=repo,
            pull_number=pull_number,
            title=pr.title or "",
            description=pr.body or "",
            api_url=pr.url,
        )
        logger.debug(f"Retrieved PR details for {pr_details.repo_full_name}#{pull_number}: {pr_details.title}")
        return pr_details

    def get_pr_diff(self, api_url: str) -> str:
        """Fetch the diff representation of a pull request from its API URL."""
        logger.debug(f"Making diff API request to: {api_url}")

        try:
            response = self._session.get(
                api_url,
                headers={'Accept': DIFF_MEDIA_TYPE},
                timeout=self.config.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Failed to request diff from {api_url}: {e}") from e

        if not 200 <= response.status_code < 300:
            body = response.text
            logger.debug(f"Response content: {body[:500]}...")
            raise FetchError(
                f"Failed to get diff from {api_url}: status={response.status_code}, body={body}",
                status_code=response.status_code,
                body=body,
            )

        diff = response.content.decode("utf-8", errors="replace")
        logger.info(f"Retrieved diff from {api_url} (length: {len(diff)} characters)")
        return diff

    def close(self):
        """Clean up resources."""
        self._session.close()
        self._client.close()
        logger.debug("GitHub client closed")
