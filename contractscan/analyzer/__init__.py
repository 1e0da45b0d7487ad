"""
ContractScan Analyzer

Fingerprinting, result caching, sandboxing and engine invocation.

Usage:
    from contractscan.analyzer import AnalysisOrchestrator, get_engine

    orchestrator = AnalysisOrchestrator(get_engine("slither"))
    result = orchestrator.analyze({"A.sol": "contract A {}"}, ["--print", "human-summary"])
    if result.success:
        print(result.output)
"""

from .cache import ResultCache
from .engines import EngineProfile, PathLayout, Scaffold, ENGINES, SLITHER, ADERYN, get_engine
from .fingerprint import fingerprint, content_digest
from .invoker import AnalysisInvoker, TIMEOUT_MESSAGE
from .orchestrator import AnalysisOrchestrator
from .sandbox import SandboxManager, SandboxHandle, safe_relative_path, destination_for

__all__ = [
    # Cache
    "ResultCache",
    # Engines
    "EngineProfile",
    "PathLayout",
    "Scaffold",
    "ENGINES",
    "SLITHER",
    "ADERYN",
    "get_engine",
    # Fingerprint
    "fingerprint",
    "content_digest",
    # Invoker
    "AnalysisInvoker",
    "TIMEOUT_MESSAGE",
    # Orchestrator
    "AnalysisOrchestrator",
    # Sandbox
    "SandboxManager",
    "SandboxHandle",
    "safe_relative_path",
    "destination_for",
]
