"""Shared fixtures: programs built from JavaScript snippets."""
import pytest

from superreaper.analyzer.ast_nodes import Ast
from superreaper.analyzer.compiler import Compiler, DEFAULT_EXCLUSION_TAGS
from superreaper.analyzer.parser import JSParser
from superreaper.analyzer.type_annotator import TypeAnnotator

REAPER_ENV_VARS = ("REAPER_EXCLUDE_TAGS", "REAPER_TRASH_DIR", "REAPER_LOG_LEVEL")

# ns.Base with two methods and ns.Dog inheriting from it
CLASS_PREAMBLE = """
/** @constructor */
ns.Base = function() {};

/**
 * @param {number} a
 * @param {number} b
 */
ns.Base.prototype.bark = function(a, b) {};

/** @return {string} */
ns.Base.prototype.speak = function() { return 'hi'; };

/**
 * @constructor
 * @extends {ns.Base}
 */
ns.Dog = function() { ns.Base.call(this); };
goog.inherits(ns.Dog, ns.Base);
"""


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Run without REAPER_* variables, including any a .env file loads."""
    for name in REAPER_ENV_VARS:
        # setenv records the original state so delenv is undone correctly
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture(scope="session")
def js_parser():
    """Compiling the grammar is slow; share one parser."""
    return JSParser()


@pytest.fixture
def build_program(js_parser):
    """Parse sources (one SCRIPT each), annotate types, and build a Compiler."""
    def _build(*sources, exclusion_tags=DEFAULT_EXCLUSION_TAGS):
        ast = Ast()
        for index, source in enumerate(sources):
            js_parser.parse_into(ast, source, f"file{index}.js")
        registry = TypeAnnotator().annotate(ast)
        return ast, Compiler(registry, exclusion_tags)
    return _build
