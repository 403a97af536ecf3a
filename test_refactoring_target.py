#!/usr/bin/env python3
"""
Test script to validate RefactoringTarget normalisation and validation
"""

import pytest

from co_refactorer.errors import ValidationError
from co_refactorer.models import RefactoringTarget


def test_unique_dedups_and_sorts():
    """Duplicated URLs and files collapse into sorted lists"""
    target = RefactoringTarget(
        user_prompt="refactor",
        tool_call_id="call_1",
        pull_request_urls=[
            "https://github.com/oinume/co-refactorer/pull/1",
            "https://github.com/oinume/co-refactorer/pull/1",
        ],
        files=["a.go", "b.go", "a.go"],
    )

    unique = target.unique()

    assert unique.pull_request_urls == ["https://github.com/oinume/co-refactorer/pull/1"]
    assert unique.files == ["a.go", "b.go"]
    assert unique.user_prompt == "refactor"
    assert unique.tool_call_id == "call_1"


def test_unique_is_idempotent_and_does_not_mutate():
    target = RefactoringTarget(
        user_prompt="p",
        pull_request_urls=["https://github.com/z/z/pull/2", "https://github.com/a/a/pull/1"],
        files=["c.py", "a.py", "c.py", "b.py"],
    )

    once = target.unique()
    twice = once.unique()

    assert once == twice
    assert once.files == ["a.py", "b.py", "c.py"]
    assert once.pull_request_urls == ["https://github.com/a/a/pull/1", "https://github.com/z/z/pull/2"]
    # original is left untouched
    assert target.files == ["c.py", "a.py", "c.py", "b.py"]


def test_validate_accepts_existing_files(tmp_path):
    path = tmp_path / "a.go"
    path.write_text("package main\n")
    target = RefactoringTarget(
        user_prompt="p",
        pull_request_urls=["https://github.com/oinume/co-refactorer/pull/1"],
        files=[str(path)],
    )

    target.validate()


def test_validate_rejects_empty_file_name():
    target = RefactoringTarget(user_prompt="p", files=[""])

    with pytest.raises(ValidationError, match="Empty file name"):
        target.validate()


def test_validate_rejects_missing_file(tmp_path):
    missing = str(tmp_path / "missing.go")
    target = RefactoringTarget(user_prompt="p", files=[missing])

    with pytest.raises(ValidationError, match="missing.go"):
        target.validate()


def test_validate_rejects_wrong_host_before_checking_files():
    """A github.org URL fails on parsing, no file or network access needed"""
    target = RefactoringTarget(
        user_prompt="p",
        pull_request_urls=["https://github.org/oinume/co-refactorer/pull/1"],
        files=["does-not-matter.go"],
    )

    with pytest.raises(ValidationError, match="github.org"):
        target.validate()
