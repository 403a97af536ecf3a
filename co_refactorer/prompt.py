"""
Rendering of the refactoring prompt sent in the second LLM round trip.
"""

import logging
from importlib import resources
from typing import List

from .errors import ProviderError
from .models import RefactoringRequest, TargetFile


logger = logging.getLogger(__name__)

TEMPLATE_DIR = "templates"
TEMPLATE_NAME = "prompt.template"


def load_prompt_template() -> str:
    """Load the prompt template shipped with the package."""
    template = resources.files(__package__).joinpath(TEMPLATE_DIR).joinpath(TEMPLATE_NAME).read_text(encoding="utf-8")
    logger.debug(f"Loaded prompt template ({len(template)} characters)")
    return template


def _render_target_files(target_files: List[TargetFile]) -> str:
    sections = []
    for target_file in target_files:
        sections.append(f"\n### {target_file.path}\n\n```\n{target_file.content}\n```\n")
    return "".join(sections)


def render_prompt(request: RefactoringRequest, template: str) -> str:
    """Fill the template with the first pull request and the target files.

    Only the first pull request of the request is referred to, even if the
    target contained several.

    Raises:
        ProviderError: If the request has no pull request or the template
            has an unknown placeholder.
    """
    if not request.pull_requests:
        raise ProviderError("No pull request to refer to in refactoring request")

    pull_request = request.pull_requests[0]
    if len(request.pull_requests) > 1:
        logger.warning(f"Only the first of {len(request.pull_requests)} pull requests is used: {pull_request.url}")

    try:
        return template.format(
            pull_request_url=pull_request.url,
            diff=pull_request.diff,
            target_files=_render_target_files(request.target_files),
            target_paths=", ".join(request.target_paths),
        )
    except (KeyError, IndexError, ValueError) as e:
        raise ProviderError(f"Failed to render prompt template: {e}") from e
