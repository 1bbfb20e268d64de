"""Tests for the Lark JavaScript front end."""
import pytest

from superreaper.analyzer.ast_nodes import Ast, Token
from superreaper.analyzer.parser import JSParseError
from superreaper.analyzer.qualified_name import get_qualified_name


def first_statement(ast):
    script = ast.scripts()[0]
    return ast.first_child(script)


class TestStatementShapes:
    """The tree follows the Closure node layout."""

    def test_method_assignment(self, js_parser):
        ast = js_parser.parse("a.B.prototype.c = function(x, y) { return x; };")

        statement = first_statement(ast)
        assert ast.token(statement) == Token.EXPR_RESULT
        assign = ast.first_child(statement)
        assert ast.token(assign) == Token.ASSIGN
        assert str(get_qualified_name(ast, ast.first_child(assign))) == "a.B.prototype.c"

        fn = ast.second_child(assign)
        assert ast.token(fn) == Token.FUNCTION
        name, params, body = ast.children(fn)
        assert ast.token(name) == Token.NAME and ast.string(name) == ""
        assert [ast.string(p) for p in ast.children(params)] == ["x", "y"]
        assert ast.token(body) == Token.BLOCK
        assert ast.token(ast.first_child(body)) == Token.RETURN

    def test_call_children(self, js_parser):
        ast = js_parser.parse("A.superClass_.m.call(this, a, 'b', 3);")

        call = ast.first_child(first_statement(ast))
        assert ast.token(call) == Token.CALL
        callee, receiver, a, b, three = ast.children(call)
        assert str(get_qualified_name(ast, callee)) == "A.superClass_.m.call"
        assert ast.token(receiver) == Token.THIS
        assert ast.token(a) == Token.NAME
        assert ast.token(b) == Token.STRING and ast.string(b) == "b"
        assert ast.token(three) == Token.NUMBER

    def test_function_declaration(self, js_parser):
        ast = js_parser.parse("function f(a) { g(a); }")

        fn = first_statement(ast)
        assert ast.token(fn) == Token.FUNCTION
        assert ast.string(ast.first_child(fn)) == "f"

    def test_var_statement(self, js_parser):
        ast = js_parser.parse("var x = 1, y;")

        var = first_statement(ast)
        assert ast.token(var) == Token.VAR
        x, y = ast.children(var)
        assert ast.string(x) == "x" and ast.child_count(x) == 1
        assert ast.string(y) == "y" and ast.child_count(y) == 0

    def test_compound_assignment_is_not_assign(self, js_parser):
        ast = js_parser.parse("a.b += function() {};")

        expression = ast.first_child(first_statement(ast))
        assert ast.token(expression) == Token.OTHER
        assert ast.string(expression) == "+="

    def test_default_and_rest_params_are_not_names(self, js_parser):
        ast = js_parser.parse("f = function(a, b = 2, ...c) {};")

        fn = ast.second_child(ast.first_child(first_statement(ast)))
        kinds = [ast.token(p) for p in ast.children(ast.second_child(fn))]
        assert kinds == [Token.NAME, Token.OTHER, Token.OTHER]

    def test_parents_are_linked(self, js_parser):
        ast = js_parser.parse("a.b = function() { c(); };")

        for n in ast.subtree(ast.root):
            for child in ast.children(n):
                assert ast.parent(child) == n


class TestSyntaxCoverage:
    """Closure-style sources beyond the method pattern parse cleanly."""

    @pytest.mark.parametrize("source", [
        "if (a) { b(); } else if (c) d(); else {}",
        "for (var i = 0; i < n; i++) { total += i; }",
        "for (;;) { break; }",
        "for (var k in obj) continue;",
        "while (!done) { step(); }",
        "do { x--; } while (x > 0);",
        "try { risky(); } catch (e) { log(e); } finally { close(); }",
        "switch (x) { case 1: a(); break; default: b(); }",
        "throw new Error('bad');",
        "var o = {a: 1, 'b': [1, 2, 3], c: function() {}, default: null};",
        "var t = typeof x === 'undefined' ? void 0 : x instanceof Y;",
        "x = a && b || !c;",
        "new goog.structs.Map();",
        "let s = `template`; const n = 0x1F + .5e3;",
        "f(...args);",
        "(function() { 'use strict'; })();",
        ";",
        "a[b] = c[d](e);",
    ])
    def test_parses(self, js_parser, source):
        ast = js_parser.parse(source)

        assert len(ast.scripts()) == 1


class TestPositions:
    """Offsets and lines map nodes back to the source text."""

    def test_statement_span(self, js_parser):
        source = "var a;\n\nns.A.prototype.f = function() {};\nvar b;\n"
        ast = js_parser.parse(source)

        statement = ast.children(ast.scripts()[0])[1]
        node = ast.node(statement)
        assert source[node.start:node.end] == "ns.A.prototype.f = function() {};"
        assert node.line == 3

    def test_crlf_offsets(self, js_parser):
        source = "var a;\r\nb.c = function() {};\r\n"
        ast = js_parser.parse(source)

        node = ast.node(ast.children(ast.scripts()[0])[1])
        assert source[node.start:node.end] == "b.c = function() {};"
        assert node.line == 2


class TestJSDocAttachment:
    """JSDoc is attached where Closure keeps it."""

    def test_assignment_carries_jsdoc(self, js_parser):
        source = "/** @wizaction */\nns.A.prototype.f = function() {};"
        ast = js_parser.parse(source)

        statement = first_statement(ast)
        assign = ast.first_child(statement)
        assert ast.jsdoc(statement) is None
        assert ast.jsdoc(assign).has_tag("wizaction")
        assert ast.jsdoc(assign).start == 0

    def test_var_and_function_declarations(self, js_parser):
        source = "/** @constructor */\nvar A = function() {};\n/** @return {number} */\nfunction f() { return 1; }"
        ast = js_parser.parse(source)

        var, fn = ast.children(ast.scripts()[0])
        assert ast.jsdoc(var).is_constructor
        assert ast.jsdoc(fn).return_type == "number"

    def test_plain_comments_are_ignored(self, js_parser):
        ast = js_parser.parse("/* @wizaction */\na.b = function() {};\n// @wizaction\nc.d = 1;")

        for n in ast.subtree(ast.root):
            assert ast.jsdoc(n) is None

    def test_plain_comments_between_jsdoc_and_statement(self, js_parser):
        source = ("/** @wizaction @return {number} */\n"
                  "// bound by the wiz framework\n"
                  "/* see bug 12 */\n"
                  "a.b = function() { return 1; };")
        ast = js_parser.parse(source)

        info = ast.jsdoc(ast.first_child(first_statement(ast)))
        assert info is not None, "JSDoc above a line comment should still attach"
        assert info.has_tag("wizaction")
        assert info.return_type == "number"
        assert info.start == 0

    def test_code_before_plain_comment_blocks_jsdoc(self, js_parser):
        ast = js_parser.parse("/** @wizaction */ x();\n// note\na.b = function() {};")

        second = ast.children(ast.scripts()[0])[1]
        assert ast.jsdoc(ast.first_child(second)) is None

    def test_code_between_comment_and_statement(self, js_parser):
        ast = js_parser.parse("/** @wizaction */ x(); a.b = function() {};")

        second = ast.children(ast.scripts()[0])[1]
        assert ast.jsdoc(ast.first_child(second)) is None


class TestErrors:
    """Syntax errors carry the file and position."""

    def test_error_position(self, js_parser):
        with pytest.raises(JSParseError) as exc_info:
            js_parser.parse("a = 1;\nvar = 2;", "broken.js")

        error = exc_info.value
        assert error.file_path == "broken.js"
        assert error.line == 2
        assert error.column >= 1
        assert "broken.js:2:" in str(error)

    def test_unexpected_end_of_input(self, js_parser):
        with pytest.raises(JSParseError) as exc_info:
            js_parser.parse("a.b = function() {", "eof.js")

        assert exc_info.value.line >= 1

    def test_is_value_error(self, js_parser):
        with pytest.raises(ValueError):
            js_parser.parse("@@@")

    def test_failed_file_leaves_program_untouched(self, js_parser):
        ast = Ast()
        js_parser.parse_into(ast, "a = 1;", "good.js")

        with pytest.raises(JSParseError):
            js_parser.parse_into(ast, "a = ;", "bad.js")

        assert [ast.string(s) for s in ast.scripts()] == ["good.js"]

    def test_parse_file(self, js_parser, tmp_path):
        path = tmp_path / "ok.js"
        path.write_text("a.b = function() {};\n", encoding="utf-8")
        ast = Ast()

        script = js_parser.parse_file(ast, path)

        assert ast.string(script) == str(path)

    def test_non_utf8_file(self, js_parser, tmp_path):
        path = tmp_path / "latin.js"
        path.write_bytes(b"var s = '\xe9';\n")

        with pytest.raises(JSParseError):
            js_parser.parse_file(Ast(), path)
