#!/usr/bin/env python3
"""
Co-Refactorer - Main Entry Point

Refactors local files after the example of a GitHub pull request using an LLM.
Usage: python co_refactor.py --prompt "Refactor a.go like https://github.com/owner/repo/pull/1"
"""

import sys

from co_refactorer.cli import main


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
