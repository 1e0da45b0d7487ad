"""
Engine Profiles

Describes each supported command-line analyzer: how it is launched, how
caller files are laid out in the sandbox and which project scaffold it
needs. One profile is active per gateway process.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from ..core.exceptions import ConfigError


class PathLayout(str, Enum):
    """How declared file paths map to sandbox destinations."""

    FLAT = "flat"  # bare file name only
    TREE = "tree"  # keep the relative directory structure


@dataclass(frozen=True)
class Scaffold:
    """
    Project skeleton materialized before caller files are written.

    Attributes:
        files: Manifest files to write (relative path -> content)
        directories: Standard subdirectories to create
        source_dir: Directory that receives the caller files
    """

    files: Dict[str, str] = field(default_factory=dict)
    directories: Tuple[str, ...] = ()
    source_dir: str = ""


@dataclass(frozen=True)
class EngineProfile:
    """
    A command-line analysis engine.

    Attributes:
        name: Engine identifier (also namespaces cache keys)
        command: Fixed base argv; per-operation arguments are appended
        layout: Destination naming policy for caller files
        timeout_seconds: Default wall-clock budget per invocation
        scaffold: Optional project skeleton
    """

    name: str
    command: Tuple[str, ...]
    layout: PathLayout = PathLayout.FLAT
    timeout_seconds: float = 120.0
    scaffold: Optional[Scaffold] = None

    @property
    def binary(self) -> str:
        return self.command[0]


FOUNDRY_TOML = """[profile.default]
src = "src"
out = "out"
libs = ["lib"]
"""


SLITHER = EngineProfile(
    name="slither",
    command=("slither", ".", "--disable-color"),
    layout=PathLayout.FLAT,
    timeout_seconds=120.0,
)

# Aderyn resolves sources through a Foundry project layout
ADERYN = EngineProfile(
    name="aderyn",
    command=("aderyn", ".", "--stdout"),
    layout=PathLayout.TREE,
    timeout_seconds=180.0,
    scaffold=Scaffold(
        files={"foundry.toml": FOUNDRY_TOML},
        directories=("src", "lib", "test", "script"),
        source_dir="src",
    ),
)

ENGINES: Dict[str, EngineProfile] = {
    SLITHER.name: SLITHER,
    ADERYN.name: ADERYN,
}


def get_engine(name: str) -> EngineProfile:
    """
    Look up an engine profile by name.

    Raises:
        ConfigError: if the engine is not supported
    """
    try:
        return ENGINES[name]
    except KeyError:
        raise ConfigError(
            f"Unsupported engine: {name}",
            supported=", ".join(sorted(ENGINES)),
        ) from None
