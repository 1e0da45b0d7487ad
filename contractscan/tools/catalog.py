"""
Operation Catalog

Declares every tool a caller can invoke: its name, description, argument
model and the fixed engine arguments it maps to.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator


DETECTOR_NAME = re.compile(r"^[a-z0-9][a-z0-9-]*$")

FILES_DESCRIPTION = (
    "Mapping of file path to Solidity source code, "
    "e.g. {\"Token.sol\": \"pragma solidity ^0.8.20; contract Token {}\"}"
)


# =============================================================================
# Argument models
# =============================================================================

class FilesArgs(BaseModel):
    """Arguments shared by every analysis tool."""

    model_config = ConfigDict(extra="forbid")

    files: Dict[str, str] = Field(..., description=FILES_DESCRIPTION)

    @field_validator("files")
    @classmethod
    def _require_files(cls, value: Dict[str, str]) -> Dict[str, str]:
        if not value:
            raise ValueError("at least one file is required")
        return value


class DetectorArgs(FilesArgs):
    """Analysis restricted to a set of detectors."""

    detectors: Optional[List[str]] = Field(
        default=None,
        description="Detector names to run (e.g. [\"reentrancy-eth\", \"tx-origin\"]). Omit to run all detectors.",
    )

    @field_validator("detectors")
    @classmethod
    def _check_detectors(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if not value:
            return None
        bad = [name for name in value if not DETECTOR_NAME.match(name)]
        if bad:
            raise ValueError(f"invalid detector names: {', '.join(bad)}")
        # Preserve caller order, drop repeats
        return list(dict.fromkeys(value))


class NoArgs(BaseModel):
    """Tools that take no arguments."""

    model_config = ConfigDict(extra="forbid")


class SkillArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    skill_id: str = Field(
        ...,
        min_length=1,
        description="The skill identifier. Use list_skills to see all available ids (e.g. 'ship', 'wallets', 'security')",
    )


# =============================================================================
# Tool specs
# =============================================================================

def _no_engine_args(args: BaseModel) -> List[str]:
    return []


def _fixed(*engine_args: str) -> Callable[[BaseModel], List[str]]:
    def build(args: BaseModel) -> List[str]:
        return list(engine_args)
    return build


def _detector_selection(args: DetectorArgs) -> List[str]:
    if args.detectors:
        return ["--detect", ",".join(args.detectors)]
    return []


@dataclass(frozen=True)
class ToolSpec:
    """
    A callable operation.

    Attributes:
        name: Tool name as exposed to callers
        description: Human-readable description
        args_model: Pydantic model validating the argument object
        engine: Engine the tool runs on (None for non-analysis tools)
        engine_args: Builds the extra engine arguments from validated args
    """

    name: str
    description: str
    args_model: Type[BaseModel]
    engine: Optional[str] = None
    engine_args: Callable[[BaseModel], List[str]] = field(default=_no_engine_args)

    def input_schema(self) -> dict:
        return self.args_model.model_json_schema()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


SLITHER_TOOLS: List[ToolSpec] = [
    ToolSpec(
        name="slither_analyze",
        description=(
            "Run Slither static analysis on Solidity source files and return the findings. "
            "Optionally restrict the run to specific detectors."
        ),
        args_model=DetectorArgs,
        engine="slither",
        engine_args=_detector_selection,
    ),
    ToolSpec(
        name="slither_high_impact",
        description="Run Slither and report only medium and high impact findings (informational, low and optimization results are excluded).",
        args_model=FilesArgs,
        engine="slither",
        engine_args=_fixed("--exclude-informational", "--exclude-low", "--exclude-optimization"),
    ),
    ToolSpec(
        name="slither_summary",
        description="Print Slither's human-readable summary of the contracts: size, complexity, features and issue counts.",
        args_model=FilesArgs,
        engine="slither",
        engine_args=_fixed("--print", "human-summary"),
    ),
    ToolSpec(
        name="slither_contract_summary",
        description="Print a per-contract summary of functions and their visibility.",
        args_model=FilesArgs,
        engine="slither",
        engine_args=_fixed("--print", "contract-summary"),
    ),
    ToolSpec(
        name="slither_function_summary",
        description="Print a per-function summary: modifiers, state variables read and written, internal and external calls.",
        args_model=FilesArgs,
        engine="slither",
        engine_args=_fixed("--print", "function-summary"),
    ),
]

ADERYN_TOOLS: List[ToolSpec] = [
    ToolSpec(
        name="aderyn_analyze",
        description="Run Aderyn static analysis on Solidity source files and return the markdown report.",
        args_model=FilesArgs,
        engine="aderyn",
    ),
]

SKILL_TOOLS: List[ToolSpec] = [
    ToolSpec(
        name="list_skills",
        description="List all available Ethereum development skills from ethskills.com",
        args_model=NoArgs,
    ),
    ToolSpec(
        name="get_skill",
        description="Read the full content of a specific Ethereum development skill",
        args_model=SkillArgs,
    ),
]

ENGINE_TOOLS: Dict[str, List[ToolSpec]] = {
    "slither": SLITHER_TOOLS,
    "aderyn": ADERYN_TOOLS,
}

# Tool used by the plain /analyze endpoint
PRIMARY_TOOL: Dict[str, str] = {
    "slither": "slither_analyze",
    "aderyn": "aderyn_analyze",
}


def tools_for(engine: str, include_skills: bool = True) -> Dict[str, ToolSpec]:
    """Catalog for a gateway running the given engine, keyed by tool name."""
    specs = list(ENGINE_TOOLS.get(engine, []))
    if include_skills:
        specs.extend(SKILL_TOOLS)
    return {spec.name: spec for spec in specs}
