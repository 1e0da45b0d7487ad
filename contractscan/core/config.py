"""
ContractScan Configuration

Listening address and port come from the environment; everything else is
fixed at startup through CLI flags.
"""

import os
from dataclasses import dataclass
from typing import List, Optional


DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 9005
ETHSKILLS_BASE_URL = "https://ethskills.com"


@dataclass
class Config:
    """ContractScan gateway configuration"""

    # Server
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    # Analysis
    engine: str = "slither"  # slither | aderyn
    timeout_seconds: Optional[float] = None  # None = engine default
    sandbox_dir: Optional[str] = None  # parent dir for sandboxes (default: system temp)

    # Skills catalog
    enable_skills: bool = True  # expose list_skills/get_skill and preload at startup
    skills_base_url: str = ETHSKILLS_BASE_URL

    # MCP transport
    json_response: bool = False  # reply with JSON instead of SSE streams

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables"""
        return cls(
            host=os.environ.get("HOST", DEFAULT_HOST),
            port=int(os.environ.get("PORT", str(DEFAULT_PORT))),
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors"""
        from ..analyzer.engines import ENGINES

        errors = []

        if self.engine not in ENGINES:
            errors.append(
                f"Invalid engine: {self.engine} (expected one of {', '.join(sorted(ENGINES))})"
            )

        if not 0 < self.port < 65536:
            errors.append(f"Invalid port: {self.port}")

        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            errors.append(f"Invalid timeout: {self.timeout_seconds}")

        if self.sandbox_dir and not os.path.isdir(self.sandbox_dir):
            errors.append(f"Sandbox directory does not exist: {self.sandbox_dir}")

        if self.log_level.upper() not in ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]:
            errors.append(f"Invalid log level: {self.log_level}")

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "host": self.host,
            "port": self.port,
            "engine": self.engine,
            "timeout_seconds": self.timeout_seconds,
            "sandbox_dir": self.sandbox_dir,
            "enable_skills": self.enable_skills,
            "skills_base_url": self.skills_base_url,
            "json_response": self.json_response,
            "log_level": self.log_level,
            "log_dir": self.log_dir,
        }


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def set_config(config: Config) -> None:
    """Set the global config instance."""
    global _config
    _config = config
