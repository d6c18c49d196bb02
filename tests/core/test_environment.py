"""
Unit tests for the process environment and job propagation files.
"""

import os

import pytest

from buildcachekit.core.environment import (
    Environment,
    JobFiles,
    format_env_entry,
    is_github_actions,
)


class TestEnvironment:
    """Tests for the Environment wrapper."""

    def test_mutations_write_through(self):
        """Test set() mutates the wrapped mapping in place."""
        backing = {}
        env = Environment(backing)

        env.set("SCCACHE_REGION", "auto")

        assert backing == {"SCCACHE_REGION": "auto"}
        assert "SCCACHE_REGION" in env

    def test_get_nonempty_treats_empty_as_unset(self):
        env = Environment({"R2_ACCOUNT_ID": ""})

        assert env.get("R2_ACCOUNT_ID") == ""
        assert env.get_nonempty("R2_ACCOUNT_ID") is None
        assert env.get_nonempty("MISSING") is None

    def test_prepend_path(self):
        """Test directory becomes the first PATH entry."""
        env = Environment({"PATH": os.pathsep.join(["/usr/bin", "/bin"])})

        env.prepend_path("/opt/sccache")

        assert env.path_entries() == ["/opt/sccache", "/usr/bin", "/bin"]

    def test_prepend_path_moves_existing_entry(self):
        """Test an entry already on PATH is moved to the front, not duplicated."""
        env = Environment({"PATH": os.pathsep.join(["/usr/bin", "/opt/sccache"])})

        env.prepend_path("/opt/sccache")

        assert env.path_entries() == ["/opt/sccache", "/usr/bin"]

    def test_prepend_path_without_path(self):
        env = Environment({})

        env.prepend_path("/opt/sccache")

        assert env.path == "/opt/sccache"

    def test_as_dict_is_a_copy(self):
        env = Environment({"A": "1"})

        snapshot = env.as_dict()
        snapshot["B"] = "2"

        assert "B" not in env


class TestJobFiles:
    """Tests for GITHUB_ENV / GITHUB_PATH handling."""

    def test_from_environment_in_github_actions(self, tmp_path):
        env = Environment(
            {
                "GITHUB_ACTIONS": "true",
                "GITHUB_ENV": str(tmp_path / "env"),
                "GITHUB_PATH": str(tmp_path / "path"),
            }
        )

        job_files = JobFiles.from_environment(env)

        assert job_files.available
        assert job_files.env_file == tmp_path / "env"
        assert job_files.path_file == tmp_path / "path"

    def test_from_environment_outside_github_actions(self, tmp_path):
        """Test stray GITHUB_ENV is ignored outside of a runner."""
        env = Environment({"GITHUB_ENV": str(tmp_path / "env")})

        job_files = JobFiles.from_environment(env)

        assert not job_files.available

    def test_add_path_appends(self, job_files):
        assert job_files.add_path("/opt/one")
        assert job_files.add_path("/opt/two")

        assert job_files.path_file.read_text() == "/opt/one\n/opt/two\n"

    def test_export_variables_writes_all_entries(self, job_files):
        """Test several variables are appended in one write, in order."""
        assert job_files.export_variables({"SCCACHE_REGION": "auto", "SCCACHE_BUCKET": "b"})

        assert job_files.env_file.read_text() == "SCCACHE_REGION=auto\nSCCACHE_BUCKET=b\n"

    def test_unwritable_env_file_raises(self, tmp_path):
        """Test a job env file that cannot be opened raises OSError."""
        job_files = JobFiles(env_file=tmp_path)

        with pytest.raises(OSError):
            job_files.export_variables({"SCCACHE_REGION": "auto"})

    def test_operations_without_files_are_skipped(self):
        job_files = JobFiles()

        assert not job_files.add_path("/opt/sccache")
        assert not job_files.export_variables({"SCCACHE_REGION": "auto"})


class TestFormatEnvEntry:
    """Tests for GITHUB_ENV entry formatting."""

    def test_single_line(self):
        assert format_env_entry("NAME", "value") == "NAME=value\n"

    def test_multiline_uses_delimiter(self):
        entry = format_env_entry("NAME", "line1\nline2")

        header, first, second, footer, trailing = entry.split("\n")
        delimiter = header.split("<<", 1)[1]
        assert header.startswith("NAME<<ghadelimiter_")
        assert (first, second) == ("line1", "line2")
        assert footer == delimiter
        assert trailing == ""


def test_is_github_actions():
    assert is_github_actions(Environment({"GITHUB_ACTIONS": "true"}))
    assert not is_github_actions(Environment({"GITHUB_ACTIONS": "false"}))
    assert not is_github_actions(Environment({}))
