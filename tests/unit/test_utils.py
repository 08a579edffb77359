"""Tests for glob matching, subprocess helpers and atomic writes."""

import json
import subprocess
from typing import Optional
from unittest.mock import patch

import pytest
from pydantic import BaseModel

from agent_foreman.utils.atomic_io import atomic_write_json, atomic_write_model, atomic_write_text
from agent_foreman.utils.globs import expand_braces, glob_match
from agent_foreman.utils.subprocess_utils import SubprocessError, run_command, run_git_command


class TestGlobMatch:
    """glob_match semantics used by task impact and the TDD gate."""

    def test_double_star_matches_nested_paths(self):
        assert glob_match("src/auth/login/handler.ts", "src/auth/**")
        assert glob_match("src/auth/login.ts", "src/**/login.ts")

    def test_double_star_slash_matches_zero_dirs(self):
        assert glob_match("src/login.ts", "src/**/login.ts")

    def test_single_star_stays_in_segment(self):
        assert glob_match("src/login.ts", "src/*.ts")
        assert not glob_match("src/auth/login.ts", "src/*.ts")

    def test_pattern_without_slash_matches_basename(self):
        assert glob_match("tests/unit/test_login.py", "test_*.py")

    def test_basename_matching_can_be_disabled(self):
        assert not glob_match("tests/unit/test_login.py", "test_*.py", match_base=False)

    def test_brace_alternation(self):
        assert glob_match("src/a.tsx", "src/*.{ts,tsx}")
        assert not glob_match("src/a.js", "src/*.{ts,tsx}")

    def test_character_class_and_question_mark(self):
        assert glob_match("file1.txt", "file[0-9].txt")
        assert glob_match("fileA.txt", "file?.txt")
        assert not glob_match("file10.txt", "file?.txt")

    def test_leading_dot_slash_is_ignored(self):
        assert glob_match("./src/x.ts", "src/*.ts")

    def test_empty_inputs_never_match(self):
        assert not glob_match("", "*")
        assert not glob_match("src/x.ts", "")

    def test_expand_braces_nested(self):
        assert expand_braces("a.{js,{ts,tsx}}") == ["a.js", "a.ts", "a.tsx"]


class TestRunCommand:
    """run_command error handling."""

    def test_failure_raises_subprocess_error(self):
        failed = subprocess.CompletedProcess(args=["x"], returncode=2, stdout="out", stderr="boom")
        with patch("agent_foreman.utils.subprocess_utils.subprocess.run", return_value=failed):
            with pytest.raises(SubprocessError) as exc_info:
                run_command(["x"])

        assert exc_info.value.returncode == 2
        assert exc_info.value.stderr == "boom"
        assert exc_info.value.stdout == "out"

    def test_failure_without_check_returns_result(self):
        failed = subprocess.CompletedProcess(args=["x"], returncode=1, stdout="", stderr="")
        with patch("agent_foreman.utils.subprocess_utils.subprocess.run", return_value=failed):
            assert run_command(["x"], check=False).returncode == 1

    def test_timeout_is_reported(self):
        timeout = subprocess.TimeoutExpired(cmd="sleep 9", timeout=1, output=b"partial")
        with patch("agent_foreman.utils.subprocess_utils.subprocess.run", side_effect=timeout):
            with pytest.raises(SubprocessError) as exc_info:
                run_command("sleep 9", shell=True, timeout=1)

        assert exc_info.value.timed_out
        assert exc_info.value.stdout == "partial"
        assert "timed out" in str(exc_info.value)

    def test_git_command_prefixes_git(self):
        ok = subprocess.CompletedProcess(args=[], returncode=0, stdout="true\n", stderr="")
        with patch("agent_foreman.utils.subprocess_utils.subprocess.run", return_value=ok) as mock_run:
            run_git_command(["rev-parse", "--is-inside-work-tree"])

        assert mock_run.call_args[0][0] == ["git", "rev-parse", "--is-inside-work-tree"]


class _Sample(BaseModel):
    first_name: str
    nickname: Optional[str] = None


class TestAtomicWrites:
    def test_write_text_creates_parents(self, tmp_path):
        target = tmp_path / "a" / "b" / "file.txt"
        atomic_write_text(target, "hello")

        assert target.read_text() == "hello"
        assert list(target.parent.iterdir()) == [target]

    def test_write_json(self, tmp_path):
        target = tmp_path / "data.json"
        atomic_write_json(target, {"a": 1})

        assert json.loads(target.read_text()) == {"a": 1}

    def test_write_model_excludes_none(self, tmp_path):
        target = tmp_path / "model.json"
        atomic_write_model(target, _Sample(first_name="Ada"))

        assert json.loads(target.read_text()) == {"first_name": "Ada"}

    def test_failed_write_leaves_no_temp_file(self, tmp_path):
        target = tmp_path / "data.txt"
        with patch("pathlib.Path.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                atomic_write_text(target, "x", max_retries=2)

        assert list(tmp_path.iterdir()) == []
