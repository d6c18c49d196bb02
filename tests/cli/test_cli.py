"""
CLI tests covering whole CI job runs.

Each test builds an isolated job: a private PATH, GitHub Actions job files
and a project root in tmp_path. The release download is served by the
mock_release_download fixture.
"""

import pytest
import responses

from buildcachekit.caching import installer as installer_module
from buildcachekit.caching.installer import CacheDirInstaller
from buildcachekit.caching.remote import REMOTE_CACHE_VARS
from buildcachekit.cli.parser import CLI
from buildcachekit.core.environment import Environment
from buildcachekit.core.platform import detect_platform
from tests.fixtures.archives import write_fake_sccache


@pytest.fixture
def job_env(empty_bin_dir, job_files, tmp_path):
    """Environment of a GitHub Actions job step without secrets."""
    return Environment(
        {
            "PATH": str(empty_bin_dir),
            "GITHUB_ACTIONS": "true",
            "GITHUB_ENV": str(job_files.env_file),
            "GITHUB_PATH": str(job_files.path_file),
            "GITHUB_WORKSPACE": str(tmp_path),
        }
    )


@pytest.fixture
def secret_env(job_env):
    job_env.set("R2_ACCOUNT_ID", "abc123")
    job_env.set("R2_ACCESS_KEY_ID", "AKIDEXAMPLE")
    job_env.set("R2_SECRET_ACCESS_KEY", "s3cr3t")
    return job_env


@pytest.fixture(autouse=True)
def host_is_linux_x64(monkeypatch, linux_platform):
    """Pin platform detection to the platform the fake release is served for."""
    monkeypatch.setattr(installer_module, "detect_platform", lambda: linux_platform)


@pytest.fixture
def install_dir(tmp_path):
    return tmp_path / "target" / "sccache"


def run_cli(env, tmp_path, *extra):
    return CLI(env=env).run(["--project-root", str(tmp_path), *extra])


class TestArguments:
    """Argument parsing."""

    def test_version_flag(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            CLI(env=Environment({})).run(["--version"])

        assert exc_info.value.code == 0
        assert "buildcachekit" in capsys.readouterr().out

    def test_overrides_reach_settings(self, job_env, tmp_path, monkeypatch):
        captured = {}

        def fake_run_bootstrap(settings, env, report=True):
            captured["settings"] = settings
            captured["report"] = report
            raise KeyboardInterrupt

        monkeypatch.setattr("buildcachekit.cli.parser.run_bootstrap", fake_run_bootstrap)

        code = run_cli(
            job_env,
            tmp_path,
            "--install-dir",
            "/opt/sccache",
            "--sccache-version",
            "0.9.1",
            "--lock",
            "--no-report",
        )

        assert code == 130
        settings = captured["settings"]
        assert str(settings.resolved_install_dir) == "/opt/sccache"
        assert settings.version == "0.9.1"
        assert settings.lock is True
        assert captured["report"] is False

    def test_invalid_settings_file(self, job_env, tmp_path, capsys):
        code = run_cli(job_env, tmp_path, "--config", str(tmp_path / "missing.yaml"))

        assert code == 1
        captured = capsys.readouterr()
        assert "::error title=Invalid buildcachekit settings::" in captured.out
        assert "Configuration file not found" in captured.err


@pytest.mark.posix
class TestJobScenarios:
    """Full runs of the bootstrap inside a simulated CI job."""

    def test_cold_cache_without_secrets(
        self, job_env, job_files, tmp_path, install_dir, mock_release_download, capsys
    ):
        """Test a fresh job installs once and leaves remote caching off."""
        code = run_cli(job_env, tmp_path)

        assert code == 0
        assert len(mock_release_download.calls) == 1
        assert (install_dir / "sccache").is_file()
        assert job_files.path_file.read_text() == f"{install_dir.resolve()}\n"
        assert job_files.env_file.read_text() == ""
        assert all(name not in job_env for name in REMOTE_CACHE_VARS)

        out = capsys.readouterr().out
        assert "SCCACHE_BUCKET: <not set>" in out
        assert out.rstrip().splitlines()[-1].endswith("local")

    def test_warm_cache_with_secrets(
        self, secret_env, job_files, tmp_path, install_dir, capsys
    ):
        """Test a warm job downloads nothing and exports all remote variables."""
        binary = write_fake_sccache(install_dir)

        with responses.RequestsMock() as rsps:
            code = run_cli(secret_env, tmp_path)
            assert len(rsps.calls) == 0

        assert code == 0
        for name in REMOTE_CACHE_VARS:
            assert secret_env.get_nonempty(name)
        assert secret_env.get("RUSTC_WRAPPER") == str(binary.resolve())
        assert secret_env.get("SCCACHE_BASEDIR") == str(tmp_path)

        exported = job_files.env_file.read_text().splitlines()
        assert [line.split("=", 1)[0] for line in exported] == list(REMOTE_CACHE_VARS)

        out = capsys.readouterr().out
        assert "AWS_SECRET_ACCESS_KEY: set" in out
        assert "s3cr3t" not in out
        assert "AKIDEXAMPLE" not in out
        assert out.rstrip().splitlines()[-1].endswith("sccache-shared")

    def test_second_run_is_idempotent(
        self, job_env, tmp_path, install_dir, mock_release_download
    ):
        assert run_cli(job_env, tmp_path) == 0
        assert run_cli(job_env, tmp_path) == 0

        assert len(mock_release_download.calls) == 1
        assert job_env.path_entries().count(str(install_dir.resolve())) == 1

    def test_installed_but_not_wired(self, job_env, tmp_path, install_dir, capsys):
        """Test a non-executable binary is diagnosed as present but not wired."""
        binary = write_fake_sccache(install_dir)
        binary.chmod(0o644)

        code = run_cli(job_env, tmp_path)

        assert code == 1
        captured = capsys.readouterr()
        assert "installed but not wired" in captured.err


class TestWiringFailure:
    """A binary missing after install fails the job with an annotation."""

    def test_missing_binary_fails_job(
        self, job_env, job_files, tmp_path, install_dir, monkeypatch, capsys
    ):
        monkeypatch.setattr(
            CacheDirInstaller,
            "ensure_installed",
            lambda self, version, install_dir: install_dir / "sccache",
        )

        code = run_cli(job_env, tmp_path)

        assert code == 1
        captured = capsys.readouterr()
        assert captured.out.startswith("::error title=sccache bootstrap failed at step 'publish'::")
        assert "not found at expected location" in captured.out
        assert "ERROR: sccache bootstrap failed at step 'publish'" in captured.err
        assert "not found at expected location" in captured.err
        assert job_files.env_file.read_text() == ""


class TestEnvironmentFailures:
    """Host and job environment problems fail the job with an annotation."""

    @pytest.mark.posix
    def test_unwritable_job_env_file(
        self, secret_env, tmp_path, install_dir, capsys
    ):
        """Test a GITHUB_ENV that cannot be written fails at configure."""
        env_dir = tmp_path / "github_env_is_a_directory"
        env_dir.mkdir()
        secret_env.set("GITHUB_ENV", str(env_dir))
        write_fake_sccache(install_dir)

        code = run_cli(secret_env, tmp_path)

        assert code == 1
        captured = capsys.readouterr()
        assert captured.out.startswith(
            "::error title=sccache bootstrap failed at step 'configure'::"
        )
        assert "Could not export remote cache variables" in captured.err
        assert "SCCACHE_ENDPOINT" not in secret_env
        assert "RUSTC_WRAPPER" not in secret_env

    def test_unsupported_operating_system(self, job_env, tmp_path, monkeypatch, capsys):
        """Test an unsupported host OS fails at resolve-platform."""
        monkeypatch.setattr(installer_module, "detect_platform", detect_platform)
        monkeypatch.setattr("platform.system", lambda: "FreeBSD")

        code = run_cli(job_env, tmp_path)

        assert code == 1
        captured = capsys.readouterr()
        assert captured.out.startswith(
            "::error title=sccache bootstrap failed at step 'resolve-platform'::"
        )
        assert "Unsupported operating system: freebsd" in captured.out
        assert "Unsupported operating system" in captured.err
