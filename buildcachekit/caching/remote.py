"""
Remote cache backend configuration for sccache.

Points sccache at a Cloudflare R2 bucket (S3-compatible) through its
environment-variable contract. Remote caching is strictly opt-in: nothing is
configured unless an account identifier is supplied.

Usage:
    import os
    from buildcachekit.core.environment import Environment, JobFiles
    from buildcachekit.caching.remote import RemoteCacheConfigurator, Skipped

    env = Environment(os.environ)
    configurator = RemoteCacheConfigurator(env, JobFiles.from_environment(env))
    result = configurator.configure(
        account_id=env.get("R2_ACCOUNT_ID"),
        access_key_id=env.get("R2_ACCESS_KEY_ID"),
        secret_access_key=env.get("R2_SECRET_ACCESS_KEY"),
    )
    if isinstance(result, Skipped):
        print(f"Remote cache skipped: {result.reason}")
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from ..core.environment import Environment, JobFiles
from ..core.exceptions import ConfigurationPreconditionError
from .release import TOOL_NAME

logger = logging.getLogger(__name__)

ENDPOINT_TEMPLATE = "https://{account_id}.r2.cloudflarestorage.com"
DEFAULT_BUCKET = "sccache-shared"
DEFAULT_KEY_PREFIX = "sccache/"
REGION_AUTO = "auto"

ENDPOINT_VAR = "SCCACHE_ENDPOINT"
BUCKET_VAR = "SCCACHE_BUCKET"
REGION_VAR = "SCCACHE_REGION"
KEY_PREFIX_VAR = "SCCACHE_S3_KEY_PREFIX"
BASEDIR_VAR = "SCCACHE_BASEDIR"
ACCESS_KEY_VAR = "AWS_ACCESS_KEY_ID"
SECRET_KEY_VAR = "AWS_SECRET_ACCESS_KEY"
WRAPPER_VAR = "RUSTC_WRAPPER"

# Every variable produced when remote caching is enabled, in report order
REMOTE_CACHE_VARS = (
    ENDPOINT_VAR,
    BUCKET_VAR,
    REGION_VAR,
    KEY_PREFIX_VAR,
    BASEDIR_VAR,
    ACCESS_KEY_VAR,
    SECRET_KEY_VAR,
    WRAPPER_VAR,
)

CREDENTIAL_VARS = frozenset({ACCESS_KEY_VAR, SECRET_KEY_VAR})


class Secret:
    """
    Credential value that never renders its content.

    Display code only gets `is_set`; the raw value is available through
    `reveal()` for handing it to the environment.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, "Secret", None] = None):
        if isinstance(value, Secret):
            value = value._value
        self._value = value or None

    @property
    def is_set(self) -> bool:
        return self._value is not None

    def reveal(self) -> str:
        if self._value is None:
            raise ValueError("Secret is not set")
        return self._value

    def __repr__(self) -> str:
        return f"Secret({'set' if self.is_set else '<not set>'})"

    def __str__(self) -> str:
        return "***" if self.is_set else "<not set>"


class SecureCredentialHandler:
    """Handle credentials securely without logging sensitive data."""

    SENSITIVE_KEYS = CREDENTIAL_VARS

    @classmethod
    def sanitize_for_logging(cls, env_vars: Dict[str, str]) -> Dict[str, str]:
        """
        Remove sensitive values for safe logging.

        Example:
            >>> SecureCredentialHandler.sanitize_for_logging({"AWS_SECRET_ACCESS_KEY": "x"})
            {'AWS_SECRET_ACCESS_KEY': '***REDACTED***'}
        """
        sanitized = {}
        for key, value in env_vars.items():
            if (
                key in cls.SENSITIVE_KEYS
                or "password" in key.lower()
                or "secret" in key.lower()
            ):
                sanitized[key] = "***REDACTED***"
            else:
                sanitized[key] = value
        return sanitized


@dataclass(frozen=True)
class RemoteCacheConfig:
    """
    Resolved remote cache configuration.

    Attributes:
        endpoint: S3-compatible endpoint URL derived from the account id
        bucket: Bucket name
        region: Region sentinel ('auto' for R2)
        key_prefix: Object key prefix for namespacing
        base_dir: Directory stripped from paths before hashing
        access_key_id: Access key id
        secret_access_key: Secret access key
        wrapper_path: Absolute path of the sccache binary used as compiler wrapper
    """

    endpoint: str
    bucket: str
    region: str
    key_prefix: str
    base_dir: str
    access_key_id: Secret
    secret_access_key: Secret
    wrapper_path: str

    def env_vars(self) -> Dict[str, str]:
        """Environment variables for sccache, including raw credentials."""
        return {
            ENDPOINT_VAR: self.endpoint,
            BUCKET_VAR: self.bucket,
            REGION_VAR: self.region,
            KEY_PREFIX_VAR: self.key_prefix,
            BASEDIR_VAR: self.base_dir,
            ACCESS_KEY_VAR: self.access_key_id.reveal(),
            SECRET_KEY_VAR: self.secret_access_key.reveal(),
            WRAPPER_VAR: self.wrapper_path,
        }


@dataclass(frozen=True)
class Skipped:
    """Remote caching was not configured; not an error."""

    reason: str


class RemoteCacheConfigurator:
    """
    Derive and publish the remote cache environment.

    Attributes:
        env: Process environment to mutate
        job_files: Job-wide propagation files (None when unavailable)
        which: Resolver with the shutil.which signature
    """

    def __init__(
        self,
        env: Environment,
        job_files: Optional[JobFiles] = None,
        which: Callable[..., Optional[str]] = shutil.which,
    ):
        self.env = env
        self.job_files = job_files
        self.which = which

    def configure(
        self,
        account_id: Optional[str] = None,
        bucket: Optional[str] = None,
        key_prefix: Optional[str] = None,
        workspace_dir: Optional[Union[str, Path]] = None,
        access_key_id: Union[str, Secret, None] = None,
        secret_access_key: Union[str, Secret, None] = None,
        binary_path: Optional[Path] = None,
    ) -> Union[RemoteCacheConfig, Skipped]:
        """
        Configure remote caching if an account id is supplied.

        Args:
            account_id: R2 account identifier; remote caching is off without it
            bucket: Bucket override
            key_prefix: Key prefix override
            workspace_dir: Base directory override (default: GITHUB_WORKSPACE or cwd)
            access_key_id: Access key id, required with account_id
            secret_access_key: Secret access key, required with account_id
            binary_path: Binary installed by this run; PATH must resolve to it

        Returns:
            RemoteCacheConfig that was applied, or Skipped

        Raises:
            ConfigurationPreconditionError: If sccache is not wired or the
                credentials are incomplete
        """
        if not account_id:
            logger.info("R2_ACCOUNT_ID not set; skipping remote cache configuration")
            return Skipped(reason="account identifier not set")

        wrapper_path = self._resolve_wrapper(binary_path)

        access_key = Secret(access_key_id)
        secret_key = Secret(secret_access_key)
        missing = [
            name
            for name, secret in (
                ("access key id", access_key),
                ("secret access key", secret_key),
            )
            if not secret.is_set
        ]
        if missing:
            raise ConfigurationPreconditionError(
                f"R2 account id is set but the {' and '.join(missing)} "
                f"{'is' if len(missing) == 1 else 'are'} missing; refusing to "
                "configure a half-authenticated remote cache"
            )

        base_dir = (
            workspace_dir or self.env.get_nonempty("GITHUB_WORKSPACE") or os.getcwd()
        )

        config = RemoteCacheConfig(
            endpoint=ENDPOINT_TEMPLATE.format(account_id=account_id),
            bucket=bucket or DEFAULT_BUCKET,
            region=REGION_AUTO,
            key_prefix=key_prefix or DEFAULT_KEY_PREFIX,
            base_dir=str(base_dir),
            access_key_id=access_key,
            secret_access_key=secret_key,
            wrapper_path=wrapper_path,
        )
        self.apply(config)
        return config

    def apply(self, config: RemoteCacheConfig) -> None:
        """
        Export the configuration to the job, then set it in this process.

        The process environment is only changed once the export succeeded.

        Raises:
            ConfigurationPreconditionError: If the job env file cannot be written
        """
        env_vars = config.env_vars()

        if self.job_files is not None:
            try:
                self.job_files.export_variables(env_vars)
            except OSError as e:
                raise ConfigurationPreconditionError(
                    f"Could not export remote cache variables to job env file "
                    f"{self.job_files.env_file}: {e}"
                ) from e

        for name, value in env_vars.items():
            self.env.set(name, value)

        sanitized = SecureCredentialHandler.sanitize_for_logging(env_vars)
        logger.info(f"Configured R2 remote cache: bucket={config.bucket}")
        logger.debug(f"Remote cache environment: {sanitized}")

    def _resolve_wrapper(self, binary_path: Optional[Path]) -> str:
        resolved = self.which(TOOL_NAME, path=self.env.path)
        if resolved is None:
            raise ConfigurationPreconditionError(
                f"'{TOOL_NAME}' is not resolvable on PATH; it must be installed "
                f"and published before configuring the remote cache. "
                f"PATH={self.env.path}"
            )

        resolved_path = Path(resolved).resolve()
        if binary_path is not None:
            installed = Path(binary_path).resolve()
            if resolved_path != installed:
                raise ConfigurationPreconditionError(
                    f"'{TOOL_NAME}' resolves to {resolved_path}, but this run "
                    f"installed {installed}; refusing to use it as compiler wrapper"
                )

        return str(resolved_path)
