"""
Parsing of GitHub pull request URLs.

A pull request URL looks like https://github.com/oinume/path-shrinker/pull/16.
"""

import re
from typing import Tuple
from urllib.parse import urlparse

from .errors import URLParseError


GITHUB_HOST = "github.com"
MAX_PULL_NUMBER = 2 ** 64 - 1

_NUMBER_PATTERN = re.compile(r"^[0-9]+$")


def parse_pull_request_url(url: str) -> Tuple[str, str, int]:
    """Parse a pull request URL and return (owner, repo, number).

    Raises:
        URLParseError: If the scheme is not https, the host is not github.com,
            or the path is not /{owner}/{repo}/pull/{number}.
    """
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError as e:
        raise URLParseError(f"Invalid URL '{url}': {e}") from e

    if parsed.scheme != "https":
        raise URLParseError("URL scheme must be https")
    # TODO: allow GitHub Enterprise hosts via configuration
    if hostname != GITHUB_HOST:
        raise URLParseError(f"URL hostname must be {GITHUB_HOST}")

    parts = parsed.path.strip("/").split("/")
    if len(parts) < 4 or parts[2] != "pull":
        raise URLParseError("URL format is incorrect")

    owner, repo, number_text = parts[0], parts[1], parts[3]
    if not _NUMBER_PATTERN.match(number_text):
        raise URLParseError(f"Invalid pull request number: '{number_text}'")

    number = int(number_text)
    if number > MAX_PULL_NUMBER:
        raise URLParseError(f"Pull request number out of range: {number_text}")

    return owner, repo, number
