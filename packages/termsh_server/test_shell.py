"""Unit tests for the command dispatcher."""

from datetime import datetime, timedelta, timezone

import pytest

from termsh_server.sandbox import Sandbox
from termsh_server.shell import EMPTY_LISTING, HELP_TEXT, Shell
from termsh_shared.lexer import tokenize


FIXED_TIME = datetime(2026, 10, 19, 14, 30, 5, 123456, tzinfo=timezone(timedelta(hours=2)))


@pytest.fixture
def work_dir(tmp_path):
    work = tmp_path / "work"
    work.mkdir()
    return work


@pytest.fixture
def shell(work_dir):
    return Shell(Sandbox(work_dir), clock=lambda: FIXED_TIME)


def run(shell, line):
    return shell.execute(tokenize(line))


class TestDispatch:
    """Tests for command lookup."""

    def test_empty_argv(self, shell):
        assert shell.execute([]) == ""

    def test_unknown_command(self, shell):
        result = run(shell, "foo bar")
        assert result.startswith("Unknown command: foo")
        assert "help" in result

    def test_case_insensitive(self, shell):
        assert run(shell, "ECHO hi") == "hi"
        assert run(shell, "Help") == HELP_TEXT

    def test_commands_listed(self, shell):
        assert shell.commands == ["help", "echo", "time", "pwd", "ls", "touch", "cat"]

    def test_unexpected_failure_becomes_error(self, shell, monkeypatch):
        def boom(args):
            raise RuntimeError("kaboom")

        monkeypatch.setitem(shell._handlers, "pwd", boom)
        assert run(shell, "pwd") == "ERROR: kaboom"

    def test_no_state_between_commands(self, shell):
        run(shell, "echo first")
        assert run(shell, "echo second") == "second"


class TestSimpleCommands:
    """Tests for help, echo, time and pwd."""

    def test_help_lists_every_command(self, shell):
        result = run(shell, "help")
        for name in shell.commands:
            assert name in result
        assert "exit" in result

    def test_echo_joins_tokens(self, shell):
        assert run(shell, 'echo "a b" c') == "a b c"

    def test_echo_collapses_whitespace(self, shell):
        assert run(shell, "echo   a    b") == "a b"

    def test_echo_no_args(self, shell):
        assert run(shell, "echo") == ""

    def test_time_iso_with_offset(self, shell):
        assert run(shell, "time") == "2026-10-19T14:30:05+02:00"

    def test_time_default_clock_is_aware(self, work_dir):
        result = Shell(Sandbox(work_dir)).execute(["time"])
        assert datetime.fromisoformat(result).tzinfo is not None

    def test_pwd(self, shell, work_dir):
        assert run(shell, "pwd") == str(work_dir)


class TestLs:
    """Tests for ls."""

    def test_empty(self, shell):
        assert run(shell, "ls") == EMPTY_LISTING

    def test_files_and_directories_sorted(self, shell, work_dir):
        (work_dir / "b.txt").write_text("")
        (work_dir / "a.txt").write_text("")
        (work_dir / "docs").mkdir()
        (work_dir / "docs" / "nested.txt").write_text("")

        assert run(shell, "ls") == "a.txt\nb.txt\ndocs/"

    def test_after_touch(self, shell):
        run(shell, "touch x")
        assert "x" in run(shell, "ls").splitlines()

    def test_io_failure(self, shell, work_dir):
        work_dir.rmdir()
        assert run(shell, "ls").startswith("ERROR:")


class TestTouch:
    """Tests for touch."""

    def test_creates_empty_file(self, shell, work_dir):
        assert run(shell, "touch new.txt") == "Created: new.txt"
        assert (work_dir / "new.txt").read_bytes() == b""

    def test_quoted_name_with_space(self, shell, work_dir):
        run(shell, 'touch "my notes.txt"')
        assert (work_dir / "my notes.txt").exists()

    def test_existing_file_is_not_an_error(self, shell, work_dir):
        (work_dir / "keep.txt").write_text("content")
        result = run(shell, "touch keep.txt")
        assert result == "File already exists: keep.txt"
        assert not result.startswith("ERROR:")
        assert (work_dir / "keep.txt").read_text() == "content"

    @pytest.mark.parametrize("line", ["touch", "touch a b"])
    def test_usage(self, shell, line):
        assert run(shell, line) == "Usage: touch <filename>"

    def test_missing_parent_directory(self, shell):
        assert run(shell, "touch nowhere/file.txt").startswith("ERROR:")

    @pytest.mark.parametrize("name", ["../escape.txt", "a/../../escape.txt"])
    def test_traversal_creates_nothing(self, shell, work_dir, name):
        assert run(shell, f"touch {name}").startswith("ERROR:")
        assert not (work_dir.parent / "escape.txt").exists()


class TestCat:
    """Tests for cat."""

    def test_touch_then_cat_is_empty(self, shell):
        run(shell, "touch empty.txt")
        assert run(shell, "cat empty.txt") == ""

    def test_contents_verbatim(self, shell, work_dir):
        (work_dir / "poem.txt").write_bytes("línea 1\r\nline 2\n".encode("utf-8"))
        assert run(shell, "cat poem.txt") == "línea 1\r\nline 2\n"

    def test_missing_file(self, shell):
        assert run(shell, "cat nope.txt") == "No such file: nope.txt"

    def test_directory(self, shell, work_dir):
        (work_dir / "docs").mkdir()
        assert run(shell, "cat docs") == "Is a directory: docs"

    @pytest.mark.parametrize("line", ["cat", "cat a b"])
    def test_usage(self, shell, line):
        assert run(shell, line) == "Usage: cat <filename>"

    def test_invalid_utf8(self, shell, work_dir):
        (work_dir / "blob.bin").write_bytes(b"\xff\xfe\x00")
        assert run(shell, "cat blob.bin").startswith("ERROR:")

    @pytest.mark.parametrize("name", ["../secret.txt", "../../etc/passwd", "a/../../secret.txt"])
    def test_traversal_reads_nothing(self, shell, work_dir, name):
        (work_dir.parent / "secret.txt").write_text("top secret")
        result = run(shell, f"cat {name}")
        assert result.startswith("ERROR:")
        assert "top secret" not in result


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
