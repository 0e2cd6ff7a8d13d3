"""Tests for the enrichment pipeline."""

import time
from unittest.mock import patch

import pytest

from uaftriage.skills.enrich import (
    EnrichmentStats,
    Enricher,
    EnrichOptions,
    SourceLocator,
    enrich_results,
    intermediate_functions,
)
from uaftriage.skills.enrich.pipeline import Outcome
from uaftriage.skills.findings import QueryResult
from uaftriage.skills.graph.callgraph import build_call_graph
from uaftriage.skills.registry import RegistryCache, get_registry
from uaftriage.skills.registry.scanner import scan_directory

HEADER = "object,free_func,free_file,free_func_def_ln,free_ln,use_func,use_file,use_func_def_ln,use_ln"


def _result(obj, use_func, use_def, use_ln, free_func="release", free_def=6, free_ln=7):
    return QueryResult(
        object=obj,
        free_func=free_func,
        free_file="main.c",
        free_func_def_ln=free_def,
        free_ln=free_ln,
        use_func=use_func,
        use_file="main.c",
        use_func_def_ln=use_def,
        use_ln=use_ln,
    )


# release <- cleanup: one hop
DIRECT = _result("direct", "cleanup", 10, 11)
# release <- cleanup <- process: two hops through cleanup
CHAIN = _result("chain", "process", 18, 19)
# release and use_ctx only share callers
SIBLING = _result("sibling", "use_ctx", 14, 15)
GHOST = _result("ghost", "ghost", 1, 1)


@pytest.fixture
def registry(c_project):
    return scan_directory(str(c_project))


@pytest.fixture
def enricher(c_project, registry):
    return Enricher(SourceLocator(str(c_project), registry))


@pytest.fixture
def graph(registry):
    return build_call_graph(registry)


class TestEnricher:
    def test_valid_and_invalid(self, enricher, graph):
        report = enricher.enrich([DIRECT, SIBLING, CHAIN], graph, EnrichOptions(concurrency=2))
        assert [f.result.object for f in report.findings] == ["direct", "chain"]
        assert report.stats.total == 3
        assert report.stats.valid == 2
        assert report.stats.invalid == 1
        assert report.stats.total == report.stats.valid + report.stats.invalid
        assert report.error is None

    def test_source_context_attached(self, enricher, graph):
        [finding] = enricher.enrich([DIRECT], graph).findings
        assert finding.source.free_func.snippet == "free(c);"
        assert finding.source.use_func.snippet == "release(c);"
        assert finding.validation.details == "Reverse call: cleanup calls release"

    def test_intermediate_functions_attached(self, enricher, graph):
        [finding] = enricher.enrich([CHAIN], graph).findings
        assert finding.validation.chains == (("process", "cleanup", "release"),)
        [inter] = finding.source.inter_funcs
        assert inter.definition.startswith("   10  void cleanup")

    def test_missing_intermediate_gets_placeholder(self, enricher, make_registry):
        # the graph knows a helper the source tree does not define
        graph = build_call_graph(make_registry({"process": ["helper"], "helper": ["release"]}))
        [finding] = enricher.enrich([CHAIN], graph).findings
        assert finding.source.inter_funcs[0].definition == "// Function helper not found"

    def test_depth_filter(self, enricher, graph):
        report = enricher.enrich([DIRECT, CHAIN], graph, EnrichOptions(max_depth=1))
        assert [f.result.object for f in report.findings] == ["direct"]
        assert report.stats.invalid == 1

    def test_common_ancestors_option(self, enricher, graph):
        options = EnrichOptions(common_ancestors=True)
        [finding] = enricher.enrich([SIBLING], graph, options).findings
        assert finding.validation.common_callers == ("process", "main")
        assert [c.definition.split()[2] for c in finding.source.inter_funcs] == [
            "process(struct",
            "cleanup(struct",
        ]

    def test_no_validate_passthrough(self, enricher, graph):
        report = enricher.enrich([DIRECT, SIBLING, GHOST], graph, EnrichOptions(validate=False))
        assert [f.result.object for f in report.findings] == ["direct", "sibling", "ghost"]
        assert all(f.validation is None for f in report.findings)
        assert report.stats.total == 0

    def test_no_graph_means_no_validation(self, enricher):
        report = enricher.enrich([SIBLING], None)
        assert len(report.findings) == 1
        assert "call_validation" not in report.findings[0].to_dict()

    def test_missing_function_gives_empty_context(self, enricher):
        [finding] = enricher.enrich([GHOST], None, EnrichOptions(validate=False)).findings
        assert finding.source.free_func.definition == ""
        assert finding.source.use_func.definition == ""

    def test_order_preserved_with_delays(self, enricher, graph):
        results = [_result(f"obj{i}", "cleanup", 10, 11) for i in range(10)]
        original = Enricher._with_source

        def slow(self, result):
            # earlier results finish last
            time.sleep((10 - int(result.object[3:])) * 0.005)
            return original(self, result)

        with patch.object(Enricher, "_with_source", slow):
            report = enricher.enrich(results, graph, EnrichOptions(concurrency=4))

        assert [f.result.object for f in report.findings] == [r.object for r in results]

    def test_worker_error_reported(self, enricher, graph):
        original = Enricher._with_source

        def flaky(self, result):
            if result.object == "sibling":
                raise RuntimeError("disk on fire")
            return original(self, result)

        with patch.object(Enricher, "_with_source", flaky):
            report = enricher.enrich([DIRECT, SIBLING, CHAIN], graph)

        assert isinstance(report.error, RuntimeError)
        assert [f.result.object for f in report.findings] == ["direct", "chain"]
        assert report.stats.total == 2


class TestStats:
    def test_unchecked_not_counted(self):
        stats = EnrichmentStats()
        stats.record(Outcome.UNCHECKED)
        stats.record(Outcome.VALID)
        stats.record(Outcome.INVALID)
        stats.record(Outcome.INVALID)
        assert stats.to_dict() == {
            "total": 3,
            "valid": 1,
            "invalid": 2,
            "validation_rate_percent": 33.33,
        }

    def test_empty_rate(self):
        assert EnrichmentStats().rate == 0.0


class TestOptions:
    def test_search_depth(self):
        assert EnrichOptions().search_depth == 10
        assert EnrichOptions(max_depth=3).search_depth == 3
        assert EnrichOptions(max_depth=0).search_depth == 0


def test_intermediate_functions_first_seen():
    chains = [("r", "a", "free"), ("r", "b", "use"), ("a", "use")]
    assert intermediate_functions(chains, "free", "use") == ["r", "a", "b"]


class TestEnrichResults:
    @pytest.fixture
    def results_csv(self, c_project):
        rows = [
            "c,release,main.c,6,7,cleanup,main.c,10,11",
            "c,release,main.c,6,7,use_ctx,main.c,14,15",
        ]
        path = c_project / "results.csv"
        path.write_text("\n".join([HEADER, *rows]) + "\n")
        return path

    def test_output_shape(self, c_project, results_csv):
        out = enrich_results(
            str(c_project), str(results_csv), query="uaf.ql", database="db"
        )
        assert out["query"] == "uaf.ql"
        assert out["database"] == "db"
        assert out["source_dir"] == str(c_project)
        assert len(out["results"]) == 1
        assert out["results"][0]["call_validation"]["relationship"] == "backward"
        assert out["stats"]["total"] == 2
        assert out["stats"]["validation_rate_percent"] == 50.0
        assert "error" not in out

    def test_no_validate(self, c_project, results_csv):
        out = enrich_results(
            str(c_project), str(results_csv), options=EnrichOptions(validate=False)
        )
        assert len(out["results"]) == 2
        assert out["stats"]["total"] == 0

    def test_registry_cache_reused(self, c_project, results_csv):
        cache = RegistryCache(get_registry)
        enrich_results(str(c_project), str(results_csv), cache=cache)
        enrich_results(str(c_project), str(results_csv), cache=cache)
        assert len(cache) == 1
        assert str(c_project) in cache

    def test_registry_file(self, c_project, results_csv, tmp_path):
        import json

        registry_path = tmp_path / "registry.json"
        registry_path.write_text(json.dumps(scan_directory(str(c_project)).to_dict()))
        out = enrich_results(str(c_project), str(results_csv), registry_path=str(registry_path))
        assert len(out["results"]) == 1
