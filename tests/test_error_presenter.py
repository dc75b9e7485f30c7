"""
Tests for ErrorPresenter - user-friendly error messages.
"""

from codereview.domain.exceptions import (
    ConfigError,
    FileAccessError,
    InvalidStateTransitionError,
    RuleNotFoundError,
    ScopeError,
)
from codereview.infrastructure.presentation.error_presenter import ErrorPresenter


class TestErrorPresenter:
    """Test suite for ErrorPresenter."""

    def test_not_a_git_repository(self):
        error = ScopeError("/tmp/x is not a git repository: git rev-parse --git-dir failed: fatal")

        result = ErrorPresenter.present(error)

        assert "❌ Error: This directory is not inside a git repository" in result
        assert "💡 Suggestions:" in result
        assert "git init" in result

    def test_on_base_branch(self):
        error = ScopeError("Current branch is main. Switch to a feature branch first.")

        result = ErrorPresenter.present(error)

        assert "Current branch is main. Switch to a feature branch first." in result
        assert "--base" in result

    def test_git_missing(self):
        error = ScopeError("git executable not found. Install git and make sure it is on PATH")

        result = ErrorPresenter.present(error)

        assert "git is not installed or not on PATH" in result

    def test_other_scope_error(self):
        error = ScopeError("git diff --name-only main...feature failed: unknown revision")

        result = ErrorPresenter.present(error)

        assert "Could not resolve the git review scope: git diff" in result
        assert "git fetch --all" in result

    def test_config_error(self):
        result = ErrorPresenter.present(ConfigError("Invalid YAML in codereview.yaml"))

        assert "Invalid configuration: Invalid YAML in codereview.yaml" in result
        assert "codereview config --show" in result

    def test_rule_not_found(self):
        result = ErrorPresenter.present(RuleNotFoundError("Rule not found: no-tabs"))

        assert "Rule not found: no-tabs" in result
        assert "codereview rules list" in result

    def test_finished_result(self):
        result = ErrorPresenter.present(InvalidStateTransitionError("completed -> completed"))

        assert "A finished review result cannot be changed" in result

    def test_file_access_error(self):
        result = ErrorPresenter.present(FileAccessError("blob.py is not valid UTF-8 text"))

        assert "Could not read file: blob.py is not valid UTF-8 text" in result
        assert "UTF-8" in result

    def test_config_file_not_found(self):
        error = FileNotFoundError("Configuration file not found: custom.yaml")

        result = ErrorPresenter.present(error)

        assert "File not found: custom.yaml" in result

    def test_os_file_not_found(self):
        error = FileNotFoundError(2, "No such file or directory", "/path/to/file.py")

        result = ErrorPresenter.present(error)

        assert "File not found:" in result
        assert "/path/to/file.py" in result

    def test_permission_error(self):
        error = PermissionError(13, "Permission denied", "/root/secret.py")

        result = ErrorPresenter.present(error)

        assert "Permission denied" in result
        assert "/root/secret.py" in result

    def test_unicode_decode_error(self):
        error = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

        result = ErrorPresenter.present(error)

        assert "Could not decode file" in result
        assert "UTF-8" in result

    def test_keyboard_interrupt(self):
        result = ErrorPresenter.present(KeyboardInterrupt())

        assert result == "❌ Error: Operation cancelled by user"

    def test_generic_error(self):
        result = ErrorPresenter.present(RuntimeError("Something unexpected happened"))

        assert "An error occurred: RuntimeError" in result
        assert "Error details: Something unexpected happened" in result
        assert "--verbose" in result

    def test_generic_error_without_message(self):
        result = ErrorPresenter.present(RuntimeError())

        assert "No details available" in result

    def test_verbose_mode(self):
        """Test verbose mode includes error type, cause and traceback."""
        try:
            try:
                raise OSError("disk unplugged")
            except OSError as e:
                raise FileAccessError("Cannot read app.py: disk unplugged") from e
        except FileAccessError as error:
            result = ErrorPresenter.present(error, verbose=True)

        assert "❌ Error:" in result
        assert "🔍 Technical Details:" in result
        assert "Error Type: FileAccessError" in result
        assert "Caused by: OSError: disk unplugged" in result
        assert "📋 Traceback:" in result

    def test_friendly_mode_has_no_traceback(self):
        result = ErrorPresenter.present(ConfigError("bad"), verbose=False)

        assert "Traceback" not in result
        assert "Technical Details" not in result
