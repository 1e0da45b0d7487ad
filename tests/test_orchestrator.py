"""
Tests for the analysis pipeline: fingerprint -> cache -> sandbox -> engine.

Run with: pytest tests/test_orchestrator.py -v
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

from contractscan.analyzer import AnalysisInvoker
from contractscan.core.exceptions import ErrorKind



FILES = {"contracts/A.sol": "contract A {}", "B.sol": "contract B {}"}


class TestIdempotence:

    def test_second_request_served_from_cache(self, orchestrator):
        first = orchestrator.analyze(FILES, ["--print", "human-summary"])
        second = orchestrator.analyze(dict(FILES), ["--print", "human-summary"])

        assert first.success and second.success
        assert not first.cached
        assert second.cached
        assert second.output == first.output
        assert orchestrator.invoker.invocations == 1
        assert orchestrator.sandboxes.created == 1

    def test_different_args_run_again(self, orchestrator):
        orchestrator.analyze(FILES, ["--print", "human-summary"])
        orchestrator.analyze(FILES, ["--print", "contract-summary"])

        assert orchestrator.invoker.invocations == 2
        assert len(orchestrator.cache) == 2

    def test_is_cached(self, orchestrator):
        assert not orchestrator.is_cached(FILES)
        orchestrator.analyze(FILES)
        assert orchestrator.is_cached(FILES)

    def test_engines_do_not_share_entries(self, flat_engine, tree_engine, make_orchestrator):
        flat = make_orchestrator(flat_engine)
        tree = make_orchestrator(tree_engine)
        tree.cache = flat.cache

        flat.analyze(FILES)
        result = tree.analyze(FILES)

        assert not result.cached
        assert len(flat.cache) == 2


class TestAnalysisOutput:

    def test_analyzed_paths_are_sorted_declared_paths(self, orchestrator):
        result = orchestrator.analyze(FILES)
        assert result.analyzed_paths == ("B.sol", "contracts/A.sol")

    def test_flat_layout_seen_by_engine(self, orchestrator):
        result = orchestrator.analyze(FILES)
        assert "analyzed: A.sol, B.sol" in result.output

    def test_tree_layout_seen_by_engine(self, tree_engine, make_orchestrator):
        result = make_orchestrator(tree_engine).analyze(FILES)
        assert "src/contracts/A.sol" in result.output
        assert "src/B.sol" in result.output
        assert "foundry.toml" in result.output


class TestSandboxCleanup:

    def test_removed_after_success(self, orchestrator, sandbox_root):
        assert orchestrator.analyze(FILES).success
        assert list(sandbox_root.iterdir()) == []
        assert orchestrator.sandboxes.created == orchestrator.sandboxes.released == 1

    def test_removed_after_timeout(self, slow_engine, make_orchestrator, sandbox_root):
        orchestrator = make_orchestrator(slow_engine)
        result = orchestrator.analyze(FILES)

        assert result.error_kind == ErrorKind.TIMEOUT
        assert list(sandbox_root.iterdir()) == []

    def test_removed_after_unexpected_error(self, orchestrator, sandbox_root):
        with patch.object(AnalysisInvoker, "run", side_effect=RuntimeError("boom")):
            result = orchestrator.analyze(FILES)

        assert not result.success
        assert result.error_kind == ErrorKind.INTERNAL
        assert "boom" in result.error_msg
        assert list(sandbox_root.iterdir()) == []

    def test_nothing_created_for_rejected_paths(self, orchestrator, sandbox_root):
        result = orchestrator.analyze({"../../etc/cron.d/x": "pwned"})

        assert result.error_kind == ErrorKind.VALIDATION
        assert orchestrator.sandboxes.created == 0
        assert orchestrator.invoker.invocations == 0
        assert list(sandbox_root.iterdir()) == []

    def test_nothing_created_for_unencodable_content(self, orchestrator, sandbox_root):
        result = orchestrator.analyze({"A.sol": "contract A {} // \ud800"})

        assert result.error_kind == ErrorKind.VALIDATION
        assert "not valid UTF-8" in result.error_msg
        assert orchestrator.sandboxes.created == 0
        assert len(orchestrator.cache) == 0
        assert list(sandbox_root.iterdir()) == []


class TestFailures:

    def test_empty_bundle_rejected(self, orchestrator):
        result = orchestrator.analyze({})

        assert not result.success
        assert result.error_msg == "no files provided"
        assert result.error_kind == ErrorKind.VALIDATION
        assert orchestrator.invoker.invocations == 0

    def test_failures_are_not_cached(self, slow_engine, make_orchestrator):
        orchestrator = make_orchestrator(slow_engine)

        orchestrator.analyze(FILES)
        orchestrator.analyze(FILES)

        assert orchestrator.invoker.invocations == 2
        assert len(orchestrator.cache) == 0

    def test_missing_engine(self, missing_engine, make_orchestrator, sandbox_root):
        result = make_orchestrator(missing_engine).analyze(FILES)
        assert result.error_kind == ErrorKind.ENGINE
        assert list(sandbox_root.iterdir()) == []


class TestConcurrency:

    def test_parallel_requests_get_private_sandboxes(self, orchestrator, sandbox_root):
        bundles = [{f"C{i}.sol": f"contract C{i} {{}}"} for i in range(6)]

        with ThreadPoolExecutor(max_workers=6) as pool:
            results = list(pool.map(orchestrator.analyze, bundles))

        for i, result in enumerate(results):
            assert result.success
            assert f"analyzed: C{i}.sol\n" in result.output
        assert list(sandbox_root.iterdir()) == []

    def test_analyze_async(self, orchestrator):
        async def _run():
            return await asyncio.gather(
                orchestrator.analyze_async(FILES),
                orchestrator.analyze_async({"D.sol": "contract D {}"}),
            )

        first, second = asyncio.run(_run())

        assert first.success and second.success
        assert second.analyzed_paths == ("D.sol",)
