"""
Tests for CLI output helpers.
"""

from buildcachekit.cli.utils import (
    annotate_error,
    escape_annotation,
    escape_property,
    print_error,
)
from buildcachekit.core.environment import Environment


class TestEscaping:
    """Tests for workflow command escaping."""

    def test_escape_annotation(self):
        assert escape_annotation("50%\r\nnext") == "50%25%0D%0Anext"

    def test_escape_property(self):
        assert escape_property("step 'a': b, c") == "step 'a'%3A b%2C c"


class TestAnnotateError:
    """Tests for ::error:: annotations."""

    def test_emitted_in_github_actions(self, capsys):
        env = Environment({"GITHUB_ACTIONS": "true"})

        assert annotate_error(env, "line one\nline two", title="Failed: x")

        out = capsys.readouterr().out
        assert out == "::error title=Failed%3A x::line one%0Aline two\n"

    def test_silent_outside_github_actions(self, capsys):
        assert not annotate_error(Environment({}), "message")

        assert capsys.readouterr().out == ""


def test_print_error_indents_details(capsys):
    print_error("sccache bootstrap failed", "first\nsecond")

    err = capsys.readouterr().err
    assert err == "ERROR: sccache bootstrap failed\n  first\n  second\n"
