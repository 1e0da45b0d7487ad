"""Shared fixtures for ContractScan tests.

The real analyzers are replaced by small Python programs run through
`sys.executable -c`, so the subprocess, sandbox and timeout paths are
exercised for real without Slither or Aderyn installed.
"""

import dataclasses
import sys

import pytest

from contractscan.analyzer import (
    ADERYN,
    SLITHER,
    AnalysisInvoker,
    AnalysisOrchestrator,
    EngineProfile,
    PathLayout,
    SandboxManager,
    Scaffold,
)
from contractscan.analyzer.engines import FOUNDRY_TOML
from contractscan.core.config import Config


# Lists the files it can see and echoes its arguments, then exits non-zero
# the way Slither does when it reports findings.
REPORT_SCRIPT = (
    "import os, sys\n"
    "seen = sorted(os.path.relpath(os.path.join(d, f), '.').replace(os.sep, '/')"
    " for d, _, fs in os.walk('.') for f in fs)\n"
    "print('analyzed: ' + ', '.join(seen))\n"
    "print('args: ' + ' '.join(sys.argv[1:]))\n"
    "sys.stderr.write('1 result(s) found\\n')\n"
    "sys.exit(1)\n"
)

SLEEP_SCRIPT = "import time\ntime.sleep(30)\n"

SILENT_SCRIPT = "import sys\nsys.exit(3)\n"


def python_engine(name, script, layout=PathLayout.FLAT, timeout_seconds=30.0, scaffold=None):
    return EngineProfile(
        name=name,
        command=(sys.executable, "-c", script),
        layout=layout,
        timeout_seconds=timeout_seconds,
        scaffold=scaffold,
    )


def build_orchestrator(engine, base_dir):
    return AnalysisOrchestrator(
        engine,
        sandboxes=SandboxManager(engine, base_dir=str(base_dir)),
        invoker=AnalysisInvoker(engine),
    )


@pytest.fixture
def flat_engine():
    """FLAT layout engine that reports what it saw."""
    return python_engine("fake", REPORT_SCRIPT)


@pytest.fixture
def tree_engine():
    """TREE layout engine with a Foundry-style scaffold."""
    return python_engine(
        "fake-tree",
        REPORT_SCRIPT,
        layout=PathLayout.TREE,
        scaffold=Scaffold(
            files={"foundry.toml": FOUNDRY_TOML},
            directories=("src", "lib"),
            source_dir="src",
        ),
    )


@pytest.fixture
def slow_engine():
    """Engine that always outlives its timeout."""
    return python_engine("slow", SLEEP_SCRIPT, timeout_seconds=0.5)


@pytest.fixture
def silent_engine():
    return python_engine("silent", SILENT_SCRIPT)


@pytest.fixture
def missing_engine():
    return EngineProfile(name="missing", command=("contractscan-no-such-engine-binary", "."))


@pytest.fixture
def fake_slither():
    """The slither profile, launched through the fake report script."""
    return dataclasses.replace(SLITHER, command=(sys.executable, "-c", REPORT_SCRIPT))


@pytest.fixture
def slow_slither():
    return dataclasses.replace(
        SLITHER, command=(sys.executable, "-c", SLEEP_SCRIPT), timeout_seconds=0.5
    )


@pytest.fixture
def fake_aderyn():
    return dataclasses.replace(ADERYN, command=(sys.executable, "-c", REPORT_SCRIPT))


@pytest.fixture
def sandbox_root(tmp_path):
    """Parent directory for sandboxes; empty again once every sandbox is released."""
    root = tmp_path / "sandboxes"
    root.mkdir()
    return root


@pytest.fixture
def orchestrator(flat_engine, sandbox_root):
    return build_orchestrator(flat_engine, sandbox_root)


@pytest.fixture
def slither_orchestrator(fake_slither, sandbox_root):
    return build_orchestrator(fake_slither, sandbox_root)


@pytest.fixture
def test_config():
    """Gateway config without network access (no skills preload)."""
    return Config(engine="slither", enable_skills=False, json_response=True)


@pytest.fixture
def make_orchestrator(sandbox_root):
    """Build an orchestrator for any engine, sharing the sandbox root."""
    def make(engine):
        return build_orchestrator(engine, sandbox_root)
    return make
