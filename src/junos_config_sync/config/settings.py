"""Provider settings for one Junos device.

Every field can be given explicitly or read from a ``JUNOS_*`` environment
variable. Explicit values win over the environment.
"""
import os
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class ConfigError(Exception):
    """Invalid provider configuration."""
    pass


# field name -> environment variable
ENV_VARS = {
    "ip": "JUNOS_HOST",
    "port": "JUNOS_PORT",
    "username": "JUNOS_USERNAME",
    "password": "JUNOS_PASSWORD",
    "sshkey_pem": "JUNOS_KEYPEM",
    "sshkeyfile": "JUNOS_KEYFILE",
    "keypass": "JUNOS_KEYPASS",
    "cmd_sleep_short": "JUNOS_SLEEP_SHORT",
    "cmd_sleep_lock": "JUNOS_SLEEP_LOCK",
    "commit_confirmed": "JUNOS_COMMIT_CONFIRMED",
    "commit_confirmed_wait_percent": "JUNOS_COMMIT_CONFIRMED_WAIT_PERCENT",
    "ssh_sleep_closed": "JUNOS_SLEEP_SSH_CLOSED",
    "ssh_timeout_to_establish": "JUNOS_SSH_TIMEOUT_TO_ESTABLISH",
    "ssh_retry_to_establish": "JUNOS_SSH_RETRY_TO_ESTABLISH",
    "file_permission": "JUNOS_FILE_PERMISSION",
    "debug_netconf_log_path": "JUNOS_LOG_PATH",
    "fake_create_with_setfile": "JUNOS_FAKECREATE_SETFILE",
    "fake_update_also": "JUNOS_FAKEUPDATE_ALSO",
    "fake_delete_also": "JUNOS_FAKEDELETE_ALSO",
}

TRUE_VALUES = ("1", "t", "true", "yes", "on")


class ProviderConfig(BaseModel):
    """Connection and behaviour settings for one device."""
    model_config = ConfigDict(extra="forbid")

    ip: str = ""
    port: int = Field(830, ge=1, le=65535)
    username: str = Field("netconf", min_length=1)
    password: Optional[str] = None
    sshkey_pem: Optional[str] = None
    sshkeyfile: Optional[str] = None
    keypass: Optional[str] = None
    cmd_sleep_short: int = Field(100, ge=0)  # milliseconds
    cmd_sleep_lock: int = Field(0, ge=0)  # seconds spent retrying a busy lock
    commit_confirmed: Optional[int] = Field(None, ge=1, le=65535)  # minutes
    commit_confirmed_wait_percent: int = Field(90, ge=0, le=99)
    ssh_sleep_closed: int = Field(0, ge=0)  # seconds
    ssh_timeout_to_establish: int = Field(0, ge=0)  # seconds, 0 waits forever
    ssh_retry_to_establish: int = Field(1, ge=1, le=10)
    file_permission: str = "0644"
    debug_netconf_log_path: Optional[str] = None
    fake_create_with_setfile: Optional[str] = None
    fake_update_also: bool = False
    fake_delete_also: bool = False

    @field_validator("file_permission")
    @classmethod
    def _check_file_permission(cls, value: str) -> str:
        try:
            mode = int(value, 8)
        except ValueError:
            raise ValueError(f"{value!r} is not an octal file mode") from None
        if mode > 0o777:
            raise ValueError(f"{value!r} is out of range (max 0777)")
        return value

    @model_validator(mode="after")
    def _check_fake_modes(self) -> "ProviderConfig":
        if self.fake_update_also and not self.fake_create_with_setfile:
            raise ValueError("fake_update_also requires fake_create_with_setfile")
        if self.fake_delete_also and not self.fake_create_with_setfile:
            raise ValueError("fake_delete_also requires fake_create_with_setfile")
        return self

    @property
    def file_mode(self) -> int:
        return int(self.file_permission, 8)

    @classmethod
    def from_env(cls, environ: Optional[dict] = None, **overrides: Any) -> "ProviderConfig":
        """Build settings from environment variables then explicit overrides.

        Args:
            environ: Mapping to read instead of os.environ
            **overrides: Explicit field values

        Raises:
            ConfigError: if a value is invalid
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for field_name, var in ENV_VARS.items():
            raw = env.get(var)
            if raw is None or raw == "":
                continue
            if field_name in ("fake_update_also", "fake_delete_also"):
                values[field_name] = raw.strip().lower() in TRUE_VALUES
            else:
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValidationError as e:
            problems = []
            for err in e.errors():
                loc = ".".join(str(p) for p in err["loc"])
                var = ENV_VARS.get(loc)
                where = f"{loc} ({var})" if var else (loc or "settings")
                problems.append(f"{where}: {err['msg']}")
            raise ConfigError("invalid provider configuration: " + "; ".join(problems)) from e
