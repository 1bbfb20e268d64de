"""Lark-based JavaScript parser producing the arena syntax tree."""
from bisect import bisect_right
from functools import lru_cache
from pathlib import Path
from typing import List

from lark import Lark, Token as LarkToken, Tree
from lark.exceptions import UnexpectedInput

from .ast_nodes import Ast, Token
from .jsdoc import parse_jsdoc


_GRAMMAR_PATH = Path(__file__).with_name("javascript.lark")

# Statement rules that may carry a leading JSDoc comment
_STATEMENT_RULES = {
    "expression_statement", "var_statement", "function_declaration",
    "return_statement", "if_statement", "for_statement", "for_in_statement",
    "while_statement", "do_statement", "try_statement", "switch_statement",
    "throw_statement", "break_statement", "continue_statement", "block",
    "empty_statement",
}

# Operator wrappers carry no operands
_OPERATOR_RULES = {"binop", "unary_op", "assign_op", "prop_name"}


@lru_cache(maxsize=1)
def _grammar_source() -> str:
    return _GRAMMAR_PATH.read_text(encoding="utf-8")


class JSParseError(ValueError):
    """Syntax error in a JavaScript source file."""

    def __init__(self, file_path: str, line: int, column: int, message: str):
        super().__init__(f"{file_path}:{line}:{column}: {message}")
        self.file_path = file_path
        self.line = line
        self.column = column
        self.message = message


class JSParser:
    """Parser for the ES5 subset used by Closure-style code."""

    SUPPORTED_EXTENSIONS = {'.js'}

    def __init__(self):
        """Compile the grammar.

        Comments are ignored by the grammar; the lexer callback keeps them
        so JSDoc can be attached to the statements that follow.
        """
        self._comments: List[LarkToken] = []
        self.parser = Lark(
            _grammar_source(),
            parser="lalr",
            lexer="basic",
            propagate_positions=True,
            maybe_placeholders=False,
            lexer_callbacks={"COMMENT": self._comments.append},
        )

    def parse(self, source: str, file_path: str = "<memory>") -> Ast:
        """Parse one source into a fresh program tree.

        Raises:
            JSParseError: If the source is not valid input
        """
        ast = Ast()
        self.parse_into(ast, source, file_path)
        return ast

    def parse_into(self, ast: Ast, source: str, file_path: str) -> int:
        """Parse source and append it as a SCRIPT under ast's ROOT.

        Args:
            ast: Program tree to extend
            source: JavaScript source text
            file_path: Path recorded on the SCRIPT node

        Returns:
            Handle of the new SCRIPT node

        Raises:
            JSParseError: If the source is not valid input
        """
        self._comments.clear()
        try:
            tree = self.parser.parse(source)
        except UnexpectedInput as e:
            line, column = e.line, e.column
            if line is None or line < 1:
                # Unexpected end of input
                line = source.count("\n") + 1
                column = len(source) - source.rfind("\n")
            raise JSParseError(file_path, line, column, _describe(e)) from e

        comments = sorted(self._comments, key=lambda c: c.start_pos)
        builder = _AstBuilder(ast, source, comments)
        script = builder.build_script(tree, file_path)
        ast.append_child(ast.root, script)
        return script

    def parse_file(self, ast: Ast, file_path: str | Path) -> int:
        """Read a UTF-8 file and parse it into ast.

        Raises:
            JSParseError: If the file is not UTF-8 or not valid input
            OSError: If the file cannot be read
        """
        file_path = Path(file_path)
        try:
            # Offsets must match the bytes on disk, so keep \r\n as is
            with open(file_path, 'r', encoding='utf-8', newline='') as f:
                source = f.read()
        except UnicodeDecodeError as e:
            raise JSParseError(str(file_path), 1, 1, f"not valid UTF-8 ({e.reason})") from e
        return self.parse_into(ast, source, str(file_path))


def _describe(error: UnexpectedInput) -> str:
    token = getattr(error, "token", None)
    if token is not None:
        if token.type == "$END":
            return "unexpected end of input"
        return f"unexpected token {str(token)!r}"
    char = getattr(error, "char", None)
    if char is not None:
        return f"unexpected character {char!r}"
    return "unexpected end of input"


class _AstBuilder:
    """Converts a Lark parse tree into arena nodes, bottom-up."""

    def __init__(self, ast: Ast, source: str, comments: List[LarkToken]):
        self.ast = ast
        self.source = source
        self.comments = comments
        self.comment_ends = [c.end_pos for c in comments]

    # Entry -------------------------------------------------------------

    def build_script(self, tree: Tree, file_path: str) -> int:
        statements = [self.build(child) for child in tree.children]
        return self.ast.new_node(Token.SCRIPT, file_path, statements,
                                 start=0, end=len(self.source), line=1)

    def build(self, item) -> int:
        """Build any tree or token, attaching JSDoc to statements."""
        if isinstance(item, LarkToken):
            return self._token(item)

        handler = getattr(self, f"_build_{item.data}", None)
        node = handler(item) if handler else self._generic(item)

        if item.data in _STATEMENT_RULES:
            self._attach_jsdoc(node, item)
        return node

    # Helpers -----------------------------------------------------------

    def _new(self, token: Token, item, string: str = "", children=()) -> int:
        start, end, line = _span(item)
        return self.ast.new_node(token, string, children, start=start, end=end, line=line)

    def _operands(self, tree: Tree) -> List[int]:
        return [
            self.build(child) for child in tree.children
            if not (isinstance(child, Tree) and child.data in _OPERATOR_RULES)
        ]

    def _token(self, token: LarkToken) -> int:
        if token.type == "NAME":
            return self._new(Token.NAME, token, str(token))
        if token.type == "NUMBER":
            return self._new(Token.NUMBER, token, str(token))
        if token.type in ("STRING", "TEMPLATE"):
            return self._new(Token.STRING, token, str(token)[1:-1])
        return self._new(Token.OTHER, token, str(token))

    def _generic(self, tree: Tree) -> int:
        children = [
            self.build(child) for child in tree.children
            if not (isinstance(child, Tree) and child.data in _OPERATOR_RULES)
            and not (isinstance(child, LarkToken) and child.type in ("VAR", "LET", "CONST"))
        ]
        return self._new(Token.OTHER, tree, str(tree.data), children)

    def _attach_jsdoc(self, node: int, tree: Tree):
        start, _, _ = _span(tree)
        # Nearest /** */ comment before the statement; plain comments in
        # between are skipped, code in between is not
        boundary = start
        index = bisect_right(self.comment_ends, start) - 1
        info = None
        while index >= 0:
            comment = self.comments[index]
            if self.source[comment.end_pos:boundary].strip():
                return
            info = parse_jsdoc(str(comment), comment.start_pos)
            if info is not None:
                break
            boundary = comment.start_pos
            index -= 1
        if info is None:
            return

        # Closure keeps the JSDoc of `a.b = ...;` on the assignment
        target = node
        if self.ast.is_expr_result(node):
            expression = self.ast.first_child(node)
            if expression is not None and self.ast.is_assign(expression):
                target = expression
        self.ast.node(target).jsdoc = info

    # Statements --------------------------------------------------------

    def _build_expression_statement(self, tree: Tree) -> int:
        return self._new(Token.EXPR_RESULT, tree, children=[self.build(tree.children[0])])

    def _build_return_statement(self, tree: Tree) -> int:
        return self._new(Token.RETURN, tree, children=[self.build(c) for c in tree.children])

    def _build_block(self, tree: Tree) -> int:
        return self._new(Token.BLOCK, tree, children=[self.build(c) for c in tree.children])

    _build_function_body = _build_block

    def _build_var_statement(self, tree: Tree) -> int:
        kind = str(tree.children[0])
        declarators = [self.build(c) for c in tree.children[1:]]
        return self._new(Token.VAR, tree, kind, declarators)

    def _build_declarator(self, tree: Tree) -> int:
        name_token = tree.children[0]
        initializer = [self.build(c) for c in tree.children[1:]]
        return self._new(Token.NAME, tree, str(name_token), initializer)

    def _build_function_declaration(self, tree: Tree) -> int:
        return self._function(tree)

    def _build_function_expression(self, tree: Tree) -> int:
        return self._function(tree)

    def _function(self, tree: Tree) -> int:
        name = ""
        name_item = None
        params: List[int] = []
        body = None
        for child in tree.children:
            if isinstance(child, LarkToken):
                name = str(child)
                name_item = child
            elif child.data == "params":
                params = [self.build(p) for p in child.children]
            else:
                body = self.build(child)

        start, _, line = _span(tree)
        if name_item is not None:
            name_node = self._new(Token.NAME, name_item, name)
        else:
            name_node = self.ast.new_node(Token.NAME, "", start=start, end=start, line=line)
        param_list = self.ast.new_node(Token.PARAM_LIST, children=params,
                                       start=start, end=start, line=line)
        return self._new(Token.FUNCTION, tree, name, [name_node, param_list, body])

    def _build_simple_param(self, tree: Tree) -> int:
        return self._new(Token.NAME, tree, str(tree.children[0]))

    # Expressions -------------------------------------------------------

    def _build_name(self, tree: Tree) -> int:
        return self._new(Token.NAME, tree, str(tree.children[0]))

    def _build_this(self, tree: Tree) -> int:
        return self._new(Token.THIS, tree, "this")

    def _build_number(self, tree: Tree) -> int:
        return self._new(Token.NUMBER, tree, str(tree.children[0]))

    def _build_string(self, tree: Tree) -> int:
        return self._new(Token.STRING, tree, str(tree.children[0])[1:-1])

    def _build_getprop(self, tree: Tree) -> int:
        target, prop = tree.children
        return self._new(Token.GETPROP, tree, str(prop.children[0]), [self.build(target)])

    def _build_getelem(self, tree: Tree) -> int:
        return self._new(Token.GETELEM, tree, children=self._operands(tree))

    def _build_call(self, tree: Tree) -> int:
        callee, arguments = tree.children
        children = [self.build(callee)] + [self.build(arg) for arg in arguments.children]
        return self._new(Token.CALL, tree, children=children)

    def _build_assign(self, tree: Tree) -> int:
        target, operator, value = tree.children
        op = str(operator.children[0])
        token = Token.ASSIGN if op == "=" else Token.OTHER
        string = "" if op == "=" else op
        return self._new(token, tree, string, [self.build(target), self.build(value)])


def _span(item) -> tuple:
    """(start, end, line) of a Lark tree or token."""
    if isinstance(item, LarkToken):
        return item.start_pos or 0, item.end_pos or 0, item.line or 0
    meta = item.meta
    if getattr(meta, "empty", True):
        return 0, 0, 0
    return meta.start_pos, meta.end_pos, meta.line
