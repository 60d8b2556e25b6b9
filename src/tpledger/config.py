"""Configuration management for tpledger."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11


DEFAULT_DB_PATH = "./tpledger_data/ledger.sqlite"
DEFAULT_CONTROLLER_ID = "ledger"
CONFIG_REL_PATH = Path(".tpledger") / "config.toml"

_TOML_ESCAPES = {"\\": "\\\\", '"': '\\"', "\b": "\\b", "\t": "\\t", "\n": "\\n", "\f": "\\f", "\r": "\\r"}


class ConfigError(ValueError):
    """Repo-local configuration file cannot be read."""


def _find_config_file(start_dir: Path) -> Optional[Path]:
    """Nearest .tpledger/config.toml upward from start_dir, not past the repo root."""
    for directory in (start_dir, *start_dir.parents):
        candidate = directory / CONFIG_REL_PATH
        if candidate.exists():
            return candidate
        if (directory / ".git").exists() or (directory / "pyproject.toml").exists():
            return None
    return None


def _load_ledger_table(start_dir: Path) -> dict[str, str]:
    """String values of the [ledger] table; empty when no config file exists.

    Raises:
        ConfigError: The config file is not valid TOML.
    """
    config_file = _find_config_file(start_dir)
    if config_file is None:
        return {}

    try:
        with open(config_file, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed config file {config_file}: {e}") from e

    table = data.get("ledger")
    if not isinstance(table, dict):
        return {}
    return {key: value for key, value in table.items() if isinstance(value, str)}


def _toml_str(value: str) -> str:
    out = []
    for ch in value:
        if ch in _TOML_ESCAPES:
            out.append(_TOML_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{ord(ch):04X}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


class LedgerConfig(BaseModel):
    """Configuration for a ledger instance and its CLI."""

    db_path: Path = Field(default_factory=lambda: Path(DEFAULT_DB_PATH))
    controller_id: str = Field(
        default=DEFAULT_CONTROLLER_ID,
        description="The ledger's own controlling identity; only it may (de)register sources",
    )
    caller_id: Optional[str] = Field(
        default=None,
        description="Default caller identity for CLI invocations",
    )

    model_config = {"frozen": False}

    @classmethod
    def from_env(cls, cli_db_path: Optional[str] = None) -> "LedgerConfig":
        """Load configuration with the following precedence per setting:

        1. CLI value (db path only)
        2. TPLEDGER_* environment variables
        3. repo-local .tpledger/config.toml ([ledger] table)
        4. Defaults

        Args:
            cli_db_path: Database path from CLI --db option

        Raises:
            ConfigError: The repo-local config file is malformed.
        """
        table = _load_ledger_table(Path.cwd())

        db_path = (
            cli_db_path
            or os.environ.get("TPLEDGER_DB")
            or table.get("db_path")
            or DEFAULT_DB_PATH
        )
        controller_id = (
            os.environ.get("TPLEDGER_CONTROLLER")
            or table.get("controller_id")
            or DEFAULT_CONTROLLER_ID
        )
        caller_id = os.environ.get("TPLEDGER_CALLER") or table.get("caller_id")

        return cls(
            db_path=Path(db_path).expanduser(),
            controller_id=controller_id,
            caller_id=caller_id,
        )

    def to_toml_str(self) -> str:
        """Generate repo-local TOML configuration string."""
        lines = [
            "# tpledger configuration",
            "",
            "[ledger]",
            f"db_path = {_toml_str(str(self.db_path))}",
            f"controller_id = {_toml_str(self.controller_id)}",
        ]
        if self.caller_id:
            lines.append(f"caller_id = {_toml_str(self.caller_id)}")
        return "\n".join(lines) + "\n"
