"""
ContractScan Gateway - FastAPI application.

Serves the MCP session endpoint (/mcp), a plain JSON analysis endpoint
(/analyze) that bypasses sessions, and health/identity endpoints.
"""

from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from .. import __version__
from ..analyzer import AnalysisInvoker, AnalysisOrchestrator, SandboxManager, get_engine
from ..core.config import Config, get_config
from ..core.exceptions import ErrorKind
from ..knowledge import SkillLibrary
from ..tools import ToolDispatcher, create_session_server
from .sessions import SESSION_HEADER, SessionMultiplexer
from .transport import McpSessionTransport


SERVICE_NAME = "contractscan-mcp"

STATUS_FOR_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.RESOURCE: 500,
    ErrorKind.ENGINE: 502,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.INTERNAL: 500,
}


class AnalyzeRequest(BaseModel):
    """Body of POST /analyze"""

    files: Dict[str, str] = Field(default_factory=dict)
    detectors: Optional[List[str]] = None


def build_orchestrator(config: Config) -> AnalysisOrchestrator:
    """Orchestrator for the configured engine, with a fresh cache."""
    engine = get_engine(config.engine)
    return AnalysisOrchestrator(
        engine,
        sandboxes=SandboxManager(engine, base_dir=config.sandbox_dir),
        invoker=AnalysisInvoker(engine, timeout_seconds=config.timeout_seconds),
    )


def create_app(
    config: Optional[Config] = None,
    orchestrator: Optional[AnalysisOrchestrator] = None,
    skills: Optional[SkillLibrary] = None,
) -> FastAPI:
    """
    Create the gateway application.

    Args:
        config: Gateway config (default: global config)
        orchestrator: Analysis orchestrator (default: built from config)
        skills: Skills library (default: one per config, unless disabled)

    Returns:
        FastAPI app; its lifespan preloads skills and runs the session
        multiplexer
    """
    config = config or get_config()
    orchestrator = orchestrator or build_orchestrator(config)
    if skills is None and config.enable_skills:
        skills = SkillLibrary(config.skills_base_url)

    dispatcher = ToolDispatcher(orchestrator, skills=skills)
    engine = dispatcher.engine

    def open_transport(token: str) -> McpSessionTransport:
        server = create_session_server(dispatcher, session_id=token)
        return McpSessionTransport(token, server, json_response=config.json_response)

    multiplexer = SessionMultiplexer(open_transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        if skills is not None and skills.loaded_count == 0:
            loaded = await skills.preload()
            logger.info(f"Skills loaded: {loaded}/{skills.total}")

        async with multiplexer.run():
            logger.info(f"ContractScan gateway started (engine: {engine})")
            yield

        logger.info("ContractScan gateway stopped")

    app = FastAPI(
        title="ContractScan Gateway",
        description="Static analysis of Solidity sources over MCP and HTTP",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.orchestrator = orchestrator
    app.state.dispatcher = dispatcher
    app.state.multiplexer = multiplexer
    app.state.skills = skills

    # Browser MCP clients must be able to read the session header
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[SESSION_HEADER],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        stats = orchestrator.cache.stats()
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": __version__,
            "engine": engine,
            "cache_entries": stats["entries"],
            "cache_hits": stats["hits"],
            "cache_misses": stats["misses"],
            "sessions": len(multiplexer),
            "skills_loaded": skills.loaded_count if skills else 0,
            "skills_total": skills.total if skills else 0,
        }

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "ContractScan Gateway",
            "version": __version__,
            "engine": engine,
            "mcp": "/mcp",
            "analyze": "/analyze",
            "docs": "/docs",
        }

    @app.get("/tools")
    async def list_tools():
        """Operation catalog for this gateway."""
        return {"engine": engine, "tools": dispatcher.list_tools()}

    @app.post("/analyze")
    async def analyze(request: AnalyzeRequest):
        """Run the engine's primary analysis without an MCP session."""
        result = await dispatcher.analyze_primary(request.model_dump(exclude_none=True))

        if not result.success:
            status = STATUS_FOR_KIND.get(result.error_kind, 500)
            logger.info(f"/analyze failed ({status}): {result.error_msg}")
            return JSONResponse(
                {"success": False, "error": result.error_msg},
                status_code=status,
            )

        return {
            "success": True,
            "analysis": result.output,
            "fileCount": len(result.analyzed_paths),
            "files": list(result.analyzed_paths),
            "cached": result.cached,
            "engine": engine,
        }

    app.router.add_route(
        "/mcp",
        multiplexer,
        methods=["GET", "POST", "DELETE"],
        include_in_schema=False,
    )

    return app
