"""Structured qualified names (e.g. ns.Foo.prototype.bar).

A qualified name is a sequence of segments. Each segment records how it is
reached from the previous one, so `prototype` and `superClass_` accesses can
be found by segment instead of by substring search.
"""
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from .ast_nodes import Ast, Token


PROTOTYPE = "prototype"
SUPERCLASS = "superClass_"


class Access(Enum):
    ROOT = "root"
    MEMBER = "member"
    PROTOTYPE = "prototype"
    SUPERCLASS = "superclass"


class Segment(NamedTuple):
    name: str
    access: Access


def _access_for(name: str, position: int) -> Access:
    if position == 0:
        return Access.ROOT
    if name == PROTOTYPE:
        return Access.PROTOTYPE
    if name == SUPERCLASS:
        return Access.SUPERCLASS
    return Access.MEMBER


@dataclass(frozen=True)
class QualifiedName:
    """Immutable dotted path of tagged segments."""
    segments: Tuple[Segment, ...]

    @classmethod
    def from_names(cls, names) -> "QualifiedName":
        """Build from plain segment names, deriving each access tag.

        Raises:
            ValueError: If names is empty or contains an empty name
        """
        names = tuple(names)
        if not names or any(not name for name in names):
            raise ValueError(f"Invalid qualified name segments: {names!r}")
        return cls(tuple(Segment(name, _access_for(name, i)) for i, name in enumerate(names)))

    @classmethod
    def parse(cls, dotted: str) -> "QualifiedName":
        return cls.from_names(dotted.split("."))

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(segment.name for segment in self.segments)

    @property
    def root(self) -> str:
        return self.segments[0].name

    @property
    def last(self) -> str:
        return self.segments[-1].name

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return ".".join(self.names)

    def child(self, name: str) -> "QualifiedName":
        """This name extended by one member segment."""
        return QualifiedName.from_names(self.names + (name,))

    def parent(self) -> Optional["QualifiedName"]:
        """This name without its last segment, or None for a root name."""
        if len(self.segments) == 1:
            return None
        return QualifiedName.from_names(self.names[:-1])

    def split_on(self, access: Access) -> Optional[Tuple["QualifiedName", "QualifiedName"]]:
        """Split around the single interior segment reached via access.

        `ns.Foo.prototype.bar` split on PROTOTYPE gives (`ns.Foo`, `bar`).
        The marker must occur exactly once, with at least one segment on
        each side; otherwise there is no split.
        """
        positions = [
            i for i, segment in enumerate(self.segments)
            if segment.access == access and 0 < i < len(self.segments) - 1
        ]
        if len(positions) != 1:
            return None
        marker = positions[0]
        return (
            QualifiedName.from_names(self.names[:marker]),
            QualifiedName.from_names(self.names[marker + 1:]),
        )


def get_qualified_name(ast: Ast, n: int) -> Optional[QualifiedName]:
    """Qualified name of a NAME / THIS / GETPROP chain, or None."""
    properties = []
    current = n
    while ast.token(current) == Token.GETPROP:
        properties.append(ast.string(current))
        current = ast.first_child(current)
        if current is None:
            return None
    token = ast.token(current)
    if token == Token.NAME:
        if not ast.string(current):
            return None
        root = ast.string(current)
    elif token == Token.THIS:
        root = "this"
    else:
        return None
    return QualifiedName.from_names([root] + list(reversed(properties)))


def matches_qualified_name(ast: Ast, n: int, other: int) -> bool:
    """True if both nodes have a qualified name and the names are equal."""
    name = get_qualified_name(ast, n)
    return name is not None and name == get_qualified_name(ast, other)


def get_function_name(ast: Ast, fn: int) -> Optional[QualifiedName]:
    """Name a function literal is bound to.

    `a.b = function() {}` gives `a.b`, `var f = function() {}` gives `f`
    and `function g() {}` gives `g`. Anything else has no name.
    """
    parent = ast.parent(fn)
    if parent is not None:
        if ast.is_assign(parent) and ast.first_child(parent) != fn:
            return get_qualified_name(ast, ast.first_child(parent))
        if ast.is_name(parent):
            return get_qualified_name(ast, parent)
    name_node = ast.first_child(fn)
    if name_node is not None and ast.is_name(name_node) and ast.string(name_node):
        return QualifiedName.from_names([ast.string(name_node)])
    return None
