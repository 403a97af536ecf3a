"""
Co-Refactorer - command line entry point.

Reads a prompt, lets the LLM pick the reference pull request and target
files, and rewrites those files in place.
"""

import argparse
import logging
import logging.handlers
import sys
from typing import List, Optional, TextIO

from dotenv import load_dotenv

from ai_providers.factory import AIProviderFactory

from .config import Config, DEFAULT_MODEL, DEFAULT_TEMPERATURE
from .errors import CoRefactorerError, FileReadError
from .prompt import load_prompt_template
from .refactorer import Refactorer


EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def setup_logging_from_config(config: Config):
    """Set up logging based on configuration."""
    log_handlers = [logging.StreamHandler(sys.stdout)]

    # Add file handler if enabled
    if config.logging.enable_file_logging:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                config.logging.log_file_path,
                maxBytes=config.logging.max_log_size,
                backupCount=config.logging.backup_count
            )
            log_handlers.append(file_handler)
        except OSError as e:
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, config.logging.level.value),
        format=config.logging.format,
        handlers=log_handlers,
        force=True,
    )

    # Set specific log levels for external libraries
    for name in ('github', 'requests', 'urllib3', 'httpx', 'openai', 'anthropic', 'google', 'markdown_it'):
        logging.getLogger(name).setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="co-refactorer",
        description="Refactor local files the way a reference GitHub pull request did, using an LLM.",
    )
    parser.add_argument("--prompt", default="", help="Prompt for LLM")
    parser.add_argument("--prompt-file", default="", help="Specify prompt file for LLM")
    parser.add_argument(
        "--model", default=DEFAULT_MODEL,
        help="Specify LLM model. Available models: gpt-4o, gpt-4o-mini, gemini-1.5-flash, claude-3-5-sonnet-latest, etc...",
    )
    parser.add_argument("--temperature", type=float, default=DEFAULT_TEMPERATURE,
                        help="Specify temperature for LLM")
    return parser


def get_prompt(prompt: str, prompt_file: str, stdin: TextIO) -> str:
    """Get the prompt: --prompt first, then --prompt-file, then standard input."""
    if prompt:
        return prompt
    if prompt_file:
        try:
            with open(prompt_file, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise FileReadError(f"Failed to open {prompt_file}: {e}") from e
    try:
        return stdin.read()
    except OSError as e:
        raise FileReadError(f"Failed to read content from stdin: {e}") from e


def run(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None) -> int:
    """Run the refactoring pipeline and return the process exit code."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help exits with 0
        return EXIT_OK if e.code == 0 else EXIT_ERROR

    try:
        config = Config.from_environment(model=args.model, temperature=args.temperature)
        setup_logging_from_config(config)
        logger = logging.getLogger(__name__)
        logger.debug(f"Configuration loaded: {config.to_dict()}")

        prompt = get_prompt(args.prompt, args.prompt_file, stdin if stdin is not None else sys.stdin)
        logger.debug(f"Prompt: {prompt}")

        provider = AIProviderFactory.for_model(config, load_prompt_template())
        with Refactorer(config, provider) as refactorer:
            refactorer.run(prompt)
    except CoRefactorerError as e:
        print(str(e), file=sys.stderr)
        return EXIT_ERROR

    return EXIT_OK


def main() -> int:
    """Main synchronous entry point."""
    load_dotenv()
    try:
        return run()
    except KeyboardInterrupt:
        print("\n⚠️  Refactoring interrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED
    except Exception as e:
        print(f"❌ Fatal error: {str(e)}", file=sys.stderr)
        logging.getLogger(__name__).debug("Fatal error details:", exc_info=True)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
