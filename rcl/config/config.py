"""
Configuration management for the rule codec tools.
Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass
from typing import List, Optional
from pathlib import Path
from dotenv import load_dotenv


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = False
    log_errors_separately: bool = True


@dataclass
class OutputConfig:
    """
    CLI output configuration.

    indent is the JSON indentation of compiled artifacts; no_color turns
    off rich styling and colored log output.
    """
    indent: int = 2
    no_color: bool = False

    def __post_init__(self):
        if self.indent < 0:
            self.indent = 0


@dataclass
class PolicyConfig:
    """Default policy document for CLI commands that take one."""
    default_path: str = ""

    @property
    def has_default(self) -> bool:
        return bool(self.default_path)


class Config:
    """
    Central configuration manager.

    Loads configuration from environment variables and provides
    typed access to all settings.
    """

    _instance: Optional['Config'] = None

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, env_file: str = ".env"):
        if self._initialized:
            return

        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path, override=True)

        self.log = self._load_log_config()
        self.output = self._load_output_config()
        self.policy = self._load_policy_config()

        self._initialized = True

    def _load_log_config(self) -> LogConfig:
        """Load logging configuration from environment."""
        return LogConfig(
            level=os.getenv("RCL_LOG_LEVEL", "INFO").upper(),
            log_dir=os.getenv("RCL_LOG_DIR", "logs"),
            log_to_file=_env_bool("RCL_LOG_TO_FILE"),
            log_errors_separately=_env_bool("RCL_LOG_ERRORS_SEPARATELY", "true"),
        )

    def _load_output_config(self) -> OutputConfig:
        """Load output configuration from environment."""
        return OutputConfig(
            indent=int(os.getenv("RCL_OUTPUT_INDENT", "2")),
            no_color=_env_bool("RCL_NO_COLOR") or "NO_COLOR" in os.environ,
        )

    def _load_policy_config(self) -> PolicyConfig:
        return PolicyConfig(default_path=os.getenv("RCL_POLICY", ""))

    def reload(self, env_file: str = ".env"):
        """Reload configuration from environment."""
        self._initialized = False
        Config._instance = None
        return Config(env_file)

    def validate(self) -> tuple[bool, List[str]]:
        """
        Validate configuration values.

        Returns:
            Tuple of (is_valid, list of messages)
        """
        messages = []
        if self.log.level not in _LOG_LEVELS:
            messages.append(
                f"RCL_LOG_LEVEL '{self.log.level}' is not one of {', '.join(_LOG_LEVELS)}"
            )
        if self.policy.has_default and not Path(self.policy.default_path).exists():
            messages.append(f"RCL_POLICY '{self.policy.default_path}' does not exist")
        return not messages, messages

    def summary(self) -> str:
        """Generate a human-readable configuration summary."""
        is_valid, messages = self.validate()
        lines = [
            "=" * 55,
            "RULE CODEC - CONFIGURATION",
            "=" * 55,
            "",
            "Logging:",
            f"  Level:       {self.log.level}",
            f"  File output: {self.log.log_dir if self.log.log_to_file else '(disabled)'}",
            "",
            "Output:",
            f"  JSON indent: {self.output.indent}",
            f"  Color:       {'off' if self.output.no_color else 'on'}",
            "",
            f"Default policy: {self.policy.default_path or '(none)'}",
            "",
            f"Check: {'PASSED' if is_valid else 'FAILED'}",
        ]
        for msg in messages:
            lines.append(f"  {msg}")
        lines.append("=" * 55)
        return "\n".join(lines)


def get_config(env_file: str = ".env") -> Config:
    """Get or create the global config instance."""
    return Config(env_file)
