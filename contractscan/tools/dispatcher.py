"""
Tool Dispatcher

Validates a named operation's arguments, runs it and formats the outcome
as a structured payload. Every path returns a ToolResponse; nothing raises
past dispatch().
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, ValidationError

from ..analyzer.orchestrator import AnalysisOrchestrator
from ..core.exceptions import ErrorKind, InvalidRequestError
from ..core.models import AnalysisResult
from ..knowledge.skills import SkillLibrary
from .catalog import PRIMARY_TOOL, SkillArgs, ToolSpec, tools_for


@dataclass
class ToolResponse:
    """Structured tool outcome with an explicit error flag."""

    text: str
    is_error: bool = False
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, text: str, **data: Any) -> "ToolResponse":
        return cls(text=text, is_error=False, data=data)

    @classmethod
    def err(cls, text: str, **data: Any) -> "ToolResponse":
        return cls(text=text, is_error=True, data=data)

    def to_dict(self) -> dict:
        payload = {
            "content": [{"type": "text", "text": self.text}],
            "isError": self.is_error,
        }
        if self.data:
            payload["data"] = self.data
        return payload


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "arguments"
        problems.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "; ".join(problems)


class ToolDispatcher:
    """
    Maps tool names to handlers for one gateway.

    Analysis tools delegate to the orchestrator with their fixed engine
    arguments; skill tools read from the SkillLibrary when one is attached.
    """

    def __init__(self, orchestrator: AnalysisOrchestrator, skills: Optional[SkillLibrary] = None):
        self.orchestrator = orchestrator
        self.skills = skills
        self.engine = orchestrator.engine.name
        self.tools: Dict[str, ToolSpec] = tools_for(self.engine, include_skills=skills is not None)

        self._handlers: Dict[str, Callable[[BaseModel], ToolResponse]] = {
            "list_skills": self._list_skills,
            "get_skill": self._get_skill,
        }

    def list_tools(self) -> List[dict]:
        """Catalog entries (name, description, inputSchema) for this gateway."""
        return [spec.to_dict() for spec in self.tools.values()]

    def parse_arguments(self, spec: ToolSpec, arguments: Any) -> BaseModel:
        """
        Validate a raw argument object against a tool's model.

        Raises:
            InvalidRequestError: missing or malformed fields
        """
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidRequestError(f"Arguments for '{spec.name}' must be an object")

        try:
            return spec.args_model.model_validate(arguments)
        except ValidationError as e:
            raise InvalidRequestError(
                f"Invalid arguments for '{spec.name}': {_format_validation_error(e)}"
            ) from None

    async def dispatch(self, name: str, arguments: Any = None) -> ToolResponse:
        """
        Run a tool by name.

        Args:
            name: Tool name
            arguments: Raw argument object from the caller

        Returns:
            ToolResponse (is_error=True for unknown tools, invalid arguments
            and failed analyses)
        """
        spec = self.tools.get(name)
        if spec is None:
            logger.info(f"[Dispatcher] Unknown tool requested: {name}")
            return ToolResponse.err(
                f"Unknown tool: '{name}'. Available tools: {', '.join(self.tools)}"
            )

        try:
            args = self.parse_arguments(spec, arguments)
        except InvalidRequestError as e:
            logger.info(f"[Dispatcher] {e.message}")
            return ToolResponse.err(e.message, error_kind=ErrorKind.VALIDATION.value)

        try:
            if spec.engine:
                return await self._run_analysis_tool(spec, args)
            return self._handlers[spec.name](args)
        except Exception as e:
            logger.exception(f"[Dispatcher] Error handling {name}: {e}")
            return ToolResponse.err(
                f"Internal error while running '{name}': {e}",
                error_kind=ErrorKind.INTERNAL.value,
            )

    async def analyze_primary(self, arguments: Any) -> AnalysisResult:
        """
        Run the engine's primary analysis tool and return the raw result.

        Used by the plain /analyze endpoint, which reports its own status codes.
        """
        spec = self.tools[PRIMARY_TOOL[self.engine]]
        try:
            args = self.parse_arguments(spec, arguments)
        except InvalidRequestError as e:
            return AnalysisResult.from_error(e)

        try:
            return await self._analyze(spec, args)
        except Exception as e:
            logger.exception(f"[Dispatcher] Error handling {spec.name}: {e}")
            return AnalysisResult.fail(f"internal error: {e}", ErrorKind.INTERNAL)

    async def _analyze(self, spec: ToolSpec, args: BaseModel) -> AnalysisResult:
        return await self.orchestrator.analyze_async(args.files, spec.engine_args(args))

    async def _run_analysis_tool(self, spec: ToolSpec, args: BaseModel) -> ToolResponse:
        logger.info(f"[Dispatcher] {spec.name}: {len(args.files)} files")
        result = await self._analyze(spec, args)

        if not result.success:
            return ToolResponse.err(
                f"Analysis failed: {result.error_msg}",
                error_kind=result.error_kind.value if result.error_kind else None,
            )

        return ToolResponse.ok(
            result.output,
            engine=self.engine,
            fileCount=len(result.analyzed_paths),
            files=list(result.analyzed_paths),
            cached=result.cached,
        )

    # =========================================================================
    # Skill tools
    # =========================================================================

    def _list_skills(self, args: BaseModel) -> ToolResponse:
        return ToolResponse.ok(self.skills.render_index())

    def _get_skill(self, args: SkillArgs) -> ToolResponse:
        skill = self.skills.find(args.skill_id)
        if skill is None:
            valid_ids = ", ".join(self.skills.valid_ids())
            return ToolResponse.err(
                f"Unknown skill id: '{args.skill_id}'. Valid ids are: {valid_ids}"
            )

        content = self.skills.content(skill.id)
        if not content:
            return ToolResponse.err(
                f"Skill '{skill.id}' content is unavailable (failed to load at startup)."
            )

        return ToolResponse.ok(content, skill_id=skill.id)
