"""Shared test fixtures for uaftriage tests."""

import logging
import textwrap

import pytest

from uaftriage.skills.registry.records import Callee, FunctionRecord, Registry


@pytest.fixture(autouse=True)
def _reset_logger():
    """Undo handlers attached by CLI runs so they never outlive capsys."""
    logger = logging.getLogger("uaftriage")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def c_project(tmp_path):
    """A minimal C project with a free in release() and a use in use_ctx()."""
    (tmp_path / "main.c").write_text(textwrap.dedent("""\
        #include <stdlib.h>
        #include "util.h"

        static struct ctx *g_ctx;

        void release(struct ctx *c) {
            free(c);
        }

        void cleanup(struct ctx *c) {
            release(c);
        }

        int use_ctx(struct ctx *c) {
            return c->value;
        }

        int process(struct ctx *c) {
            cleanup(c);
            return use_ctx(c);
        }

        int main(int argc, char **argv) {
            struct ctx *c = make_ctx(argc);
            process(c);
            return 0;
        }
    """))
    (tmp_path / "util.c").write_text(textwrap.dedent("""\
        #include <stdlib.h>
        #include "util.h"

        struct ctx *make_ctx(int v) {
            struct ctx *c = malloc(sizeof(*c));
            c->value = v;
            return c;
        }
    """))
    (tmp_path / "util.h").write_text(textwrap.dedent("""\
        struct ctx {
            int value;
        };

        struct ctx *make_ctx(int v);
    """))
    return tmp_path


@pytest.fixture
def make_registry():
    """Factory building a registry from name-level adjacency.

    Usage:
        make_registry({"a": ["b"], "b": []})
        make_registry({"a": ["b"]}, extra=[("other.c", "b")])

    Each caller gets one definition in ``<name>.c`` at line 1. ``extra``
    adds further definitions of an existing name in another file, which
    share the name but not the identifier.
    """
    def factory(edges, extra=()):
        names = list(edges)
        for targets in edges.values():
            for target in targets:
                if target not in names:
                    names.append(target)

        records = [
            FunctionRecord(
                name=name,
                file=f"{name}.c",
                start_line=1,
                end_line=3,
                definition=f"void {name}(void) {{\n}}",
                callees=tuple(Callee(name=t, line=2) for t in edges.get(name, ())),
            )
            for name in names
        ]
        for file, name in extra:
            records.append(
                FunctionRecord(
                    name=name,
                    file=file,
                    start_line=10,
                    end_line=12,
                    definition=f"static void {name}(void) {{\n}}",
                )
            )
        return Registry.from_records(records)

    return factory


@pytest.fixture
def chain_registry(make_registry):
    """f0 -> f1 -> ... -> f7: a single path of length 7."""
    return make_registry({f"f{i}": [f"f{i + 1}"] for i in range(7)})
