"""
Analysis Orchestrator

Single entry point used by every request handler:

    fingerprint -> cache lookup -> sandbox + engine -> cache store

Every outcome, including unexpected exceptions, is returned as an
AnalysisResult. Failures are never cached, so a transient timeout does not
poison the fingerprint.
"""

import asyncio
import contextvars
from typing import Any, Mapping, Optional, Sequence

from loguru import logger

from ..core.exceptions import ContractScanError, ErrorKind, InvalidRequestError
from ..core.models import AnalysisResult, validate_bundle
from .cache import ResultCache
from .engines import EngineProfile
from .fingerprint import fingerprint
from .invoker import AnalysisInvoker
from .sandbox import SandboxManager


class AnalysisOrchestrator:
    """
    Composes the cache, sandbox manager and invoker for one engine.

    All collaborators can be injected; by default each orchestrator owns a
    fresh cache whose lifetime is the orchestrator's.
    """

    def __init__(
        self,
        engine: EngineProfile,
        cache: Optional[ResultCache] = None,
        sandboxes: Optional[SandboxManager] = None,
        invoker: Optional[AnalysisInvoker] = None,
    ):
        self.engine = engine
        self.cache = cache if cache is not None else ResultCache()
        self.sandboxes = sandboxes or SandboxManager(engine)
        self.invoker = invoker or AnalysisInvoker(engine)

    def analyze(self, files: Any, extra_args: Sequence[str] = ()) -> AnalysisResult:
        """
        Analyze a FileBundle with the given engine arguments.

        Args:
            files: Mapping of relative path to file content
            extra_args: Operation-specific engine arguments

        Returns:
            AnalysisResult (never raises)
        """
        extra_args = list(extra_args)

        try:
            bundle = validate_bundle(files)
            self.sandboxes.plan(bundle)
        except InvalidRequestError as e:
            logger.info(f"[Orchestrator] Rejected request: {e}")
            return AnalysisResult.from_error(e)

        key = fingerprint(bundle, extra_args, namespace=self.engine.name)

        entry = self.cache.lookup(key)
        if entry is not None:
            logger.info(f"[Orchestrator] Cache hit for {len(bundle)} files ({key[:12]})")
            return AnalysisResult.from_entry(entry)

        logger.info(f"[Orchestrator] Cache miss for {len(bundle)} files ({key[:12]}), running {self.engine.name}")

        try:
            with self.sandboxes.acquire(bundle) as sandbox:
                result = self.invoker.run(sandbox.root, extra_args)
                analyzed_paths = sorted(bundle)
        except ContractScanError as e:
            logger.error(f"[Orchestrator] {e}")
            return AnalysisResult.from_error(e)
        except Exception as e:
            logger.exception(f"[Orchestrator] Unexpected error during analysis: {e}")
            return AnalysisResult.fail(f"unexpected error during analysis: {e}", ErrorKind.INTERNAL)

        if not result.success:
            return result

        result = AnalysisResult.ok(result.output, analyzed_paths)
        self.cache.store(key, result.to_entry())
        return result

    async def analyze_async(self, files: Any, extra_args: Sequence[str] = ()) -> AnalysisResult:
        """Run analyze() in a worker thread so the event loop keeps serving."""
        ctx = contextvars.copy_context()
        return await asyncio.to_thread(ctx.run, self.analyze, files, extra_args)

    def is_cached(self, files: Mapping[str, str], extra_args: Sequence[str] = ()) -> bool:
        """Whether an identical request would be answered from the cache."""
        return fingerprint(files, list(extra_args), namespace=self.engine.name) in self.cache
