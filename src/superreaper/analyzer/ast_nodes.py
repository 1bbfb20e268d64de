"""Arena-backed syntax tree for parsed JavaScript programs.

Nodes live in a flat list owned by the Ast and are addressed by integer
handles. Parent links are navigation only; detaching a node unlinks its
handle from the parent's child list and leaves the node data in the arena.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple


class Token(Enum):
    """Node kinds, following the Closure AST shape."""
    ROOT = "root"
    SCRIPT = "script"
    BLOCK = "block"
    EXPR_RESULT = "expr_result"
    VAR = "var"
    NAME = "name"
    ASSIGN = "assign"
    FUNCTION = "function"
    PARAM_LIST = "param_list"
    CALL = "call"
    GETPROP = "getprop"
    GETELEM = "getelem"
    THIS = "this"
    RETURN = "return"
    STRING = "string"
    NUMBER = "number"
    OTHER = "other"


@dataclass
class JSDocInfo:
    """Annotations read from a /** ... */ comment."""
    tags: frozenset = frozenset()
    return_type: Optional[str] = None
    extends: Optional[str] = None
    start: int = 0  # Source offset of the comment opener

    @property
    def is_constructor(self) -> bool:
        return "constructor" in self.tags

    @property
    def is_interface(self) -> bool:
        return "interface" in self.tags or "record" in self.tags

    @property
    def is_override(self) -> bool:
        return "override" in self.tags or "inheritDoc" in self.tags

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


@dataclass
class Node:
    """A single arena slot."""
    token: Token
    string: str = ""
    children: List[int] = field(default_factory=list)
    parent: Optional[int] = None
    jsdoc: Optional[JSDocInfo] = None
    jstype: object = None  # JSType, attached by the type annotator
    start: int = 0
    end: int = 0
    line: int = 0


class Ast:
    """Program tree made of arena nodes addressed by handle."""

    def __init__(self):
        """Create an empty program with a ROOT node at handle 0."""
        self.nodes: List[Node] = []
        self.root = self.new_node(Token.ROOT)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def new_node(self, token: Token, string: str = "", children=(),
                 start: int = 0, end: int = 0, line: int = 0) -> int:
        """Allocate a node and adopt the given children.

        Args:
            token: Node kind
            string: Identifier, property name, literal text or script path
            children: Handles of detached nodes to adopt, in order
            start: Source offset where the node begins
            end: Source offset just past the node
            line: 1-based line of the node start

        Returns:
            Handle of the new node

        Raises:
            ValueError: If a child already has a parent
        """
        handle = len(self.nodes)
        self.nodes.append(Node(token, string, start=start, end=end, line=line))
        for child in children:
            self.append_child(handle, child)
        return handle

    def append_child(self, parent: int, child: int):
        """Attach a detached node as the last child of parent."""
        child_node = self.nodes[child]
        if child_node.parent is not None:
            raise ValueError(f"Node {child} already has parent {child_node.parent}")
        child_node.parent = parent
        self.nodes[parent].children.append(child)

    def detach(self, n: int):
        """Unlink n from its parent. The subtree below n stays intact."""
        node = self.nodes[n]
        if node.parent is None:
            raise ValueError(f"Node {n} is not attached")
        self.nodes[node.parent].children.remove(n)
        node.parent = None

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def node(self, n: int) -> Node:
        return self.nodes[n]

    def token(self, n: int) -> Token:
        return self.nodes[n].token

    def string(self, n: int) -> str:
        return self.nodes[n].string

    def children(self, n: int) -> Tuple[int, ...]:
        return tuple(self.nodes[n].children)

    def child_count(self, n: int) -> int:
        return len(self.nodes[n].children)

    def has_one_child(self, n: int) -> bool:
        return len(self.nodes[n].children) == 1

    def child_at(self, n: int, index: int) -> Optional[int]:
        kids = self.nodes[n].children
        if 0 <= index < len(kids):
            return kids[index]
        return None

    def first_child(self, n: int) -> Optional[int]:
        return self.child_at(n, 0)

    def second_child(self, n: int) -> Optional[int]:
        return self.child_at(n, 1)

    def last_child(self, n: int) -> Optional[int]:
        kids = self.nodes[n].children
        return kids[-1] if kids else None

    def parent(self, n: int) -> Optional[int]:
        return self.nodes[n].parent

    def grandparent(self, n: int) -> Optional[int]:
        parent = self.nodes[n].parent
        if parent is None:
            return None
        return self.nodes[parent].parent

    def is_attached(self, n: int) -> bool:
        """True if n is reachable from the ROOT through parent links."""
        current = n
        while current is not None:
            if current == self.root:
                return True
            current = self.nodes[current].parent
        return False

    def subtree(self, n: int) -> Iterator[int]:
        """Pre-order iteration over n and all of its descendants."""
        stack = [n]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.nodes[current].children))

    def enclosing(self, n: int, *tokens: Token) -> Optional[int]:
        """Nearest proper ancestor of n whose token is one of tokens."""
        current = self.nodes[n].parent
        while current is not None:
            if self.nodes[current].token in tokens:
                return current
            current = self.nodes[current].parent
        return None

    def script_path(self, n: int) -> Optional[str]:
        """Path of the SCRIPT containing n, or None for detached nodes."""
        if self.token(n) == Token.SCRIPT:
            return self.string(n)
        script = self.enclosing(n, Token.SCRIPT)
        return self.string(script) if script is not None else None

    def scripts(self) -> Tuple[int, ...]:
        return self.children(self.root)

    # ------------------------------------------------------------------
    # Shape predicates
    # ------------------------------------------------------------------

    def is_function(self, n: int) -> bool:
        return self.nodes[n].token == Token.FUNCTION

    def is_assign(self, n: int) -> bool:
        return self.nodes[n].token == Token.ASSIGN

    def is_expr_result(self, n: int) -> bool:
        return self.nodes[n].token == Token.EXPR_RESULT

    def is_call(self, n: int) -> bool:
        return self.nodes[n].token == Token.CALL

    def is_return(self, n: int) -> bool:
        return self.nodes[n].token == Token.RETURN

    def is_this(self, n: int) -> bool:
        return self.nodes[n].token == Token.THIS

    def is_name(self, n: int) -> bool:
        return self.nodes[n].token == Token.NAME

    def is_getprop(self, n: int) -> bool:
        return self.nodes[n].token == Token.GETPROP

    def is_var(self, n: int) -> bool:
        return self.nodes[n].token == Token.VAR

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    def jsdoc(self, n: int) -> Optional[JSDocInfo]:
        return self.nodes[n].jsdoc

    def jstype(self, n: int):
        return self.nodes[n].jstype

    def set_jstype(self, n: int, jstype):
        self.nodes[n].jstype = jstype

    def best_jsdoc_for_function(self, fn: int) -> Optional[JSDocInfo]:
        """JSDoc describing a function, wherever the parser attached it.

        Assignments carry the comment on the ASSIGN node, `var` declarations
        on the VAR statement, and function declarations on the FUNCTION.
        """
        own = self.nodes[fn].jsdoc
        if own is not None:
            return own
        parent = self.parent(fn)
        if parent is None:
            return None
        if self.is_assign(parent):
            return self.nodes[parent].jsdoc
        if self.is_name(parent):
            grandparent = self.parent(parent)
            if grandparent is not None and self.is_var(grandparent):
                return self.nodes[grandparent].jsdoc
        return None
