"""Tests for span-based source rewriting."""
from pathlib import Path

from superreaper.reaper.js_remover import JSMethodRemover
from superreaper.reaper.super_methods import RemoveSuperMethodsPass, RemovedMethod

from conftest import CLASS_PREAMBLE


def span_of(source, text):
    start = source.index(text)
    return start, start + len(text)


class TestRemoveSpans:
    """Character-span deletion."""

    def test_removes_line_and_newline(self):
        source = "a();\nb();\nc();\n"
        remover = JSMethodRemover()

        modified, count = remover.remove_spans(source, [span_of(source, "b();")])

        assert modified == "a();\nc();\n"
        assert count == 1

    def test_removes_indentation_and_crlf(self):
        source = "{\r\n    b();  \r\n}\r\n"
        remover = JSMethodRemover()

        modified, _ = remover.remove_spans(source, [span_of(source, "b();")])

        assert modified == "{\r\n}\r\n"

    def test_keeps_code_before_span_on_same_line(self):
        source = "a(); b();\nc();"
        remover = JSMethodRemover()

        modified, _ = remover.remove_spans(source, [span_of(source, "b();")])

        assert modified == "a(); c();"

    def test_span_at_end_without_newline(self):
        source = "a();\nb();"
        modified, _ = JSMethodRemover().remove_spans(source, [span_of(source, "b();")])

        assert modified == "a();\n"

    def test_overlapping_spans_are_merged(self):
        source = "a();\nbbbb();\nc();\n"
        start, end = span_of(source, "bbbb();")

        modified, count = JSMethodRemover().remove_spans(source, [(start, end - 2), (start + 2, end)])

        assert modified == "a();\nc();\n"
        assert count == 1

    def test_multiple_spans(self):
        source = "a();\nb();\nc();\nd();\n"
        spans = [span_of(source, "d();"), span_of(source, "b();")]

        modified, count = JSMethodRemover().remove_spans(source, spans)

        assert modified == "a();\nc();\n"
        assert count == 2

    def test_no_spans(self):
        assert JSMethodRemover().remove_spans("a();", []) == ("a();", 0)


class TestRemovedMethods:
    """Rewriting with the spans the pass records."""

    def test_rewrite_keeps_other_code_identical(self, build_program):
        forward = """/**
 * Barks.
 * @override
 */
ns.Dog.prototype.bark = function(a, b) {
  ns.Dog.superClass_.bark.call(this, a, b);
};
"""
        tail = "\n// trailing comment\nns.Dog.prototype.run = function() { go(); };\n"
        source = CLASS_PREAMBLE + forward + tail
        ast, compiler = build_program(source)
        removed = RemoveSuperMethodsPass(compiler).process(ast)

        spans = JSMethodRemover().spans_for(removed)
        modified, count = JSMethodRemover().remove_spans(source, spans[Path("file0.js")])

        assert count == 1
        assert modified == CLASS_PREAMBLE + tail

    def test_spans_grouped_by_file(self):
        removed = [
            RemovedMethod("a.prototype.x", "one.js", 1, 0, 5),
            RemovedMethod("a.prototype.y", "two.js", 3, 10, 20),
            RemovedMethod("a.prototype.z", "one.js", 5, 30, 40),
            RemovedMethod("a.prototype.w", None, 1, 0, 1),
        ]

        spans = JSMethodRemover().spans_for(removed)

        assert spans == {
            Path("one.js"): [(0, 5), (30, 40)],
            Path("two.js"): [(10, 20)],
        }

    def test_rewrite_file(self, tmp_path):
        path = tmp_path / "x.js"
        path.write_bytes(b"a();\r\nb();\r\n")

        count = JSMethodRemover().rewrite_file(path, [(6, 10)])

        assert count == 1
        assert path.read_bytes() == b"a();\r\n"
