"""Host services shared by compiler passes."""
import logging
from typing import Iterable, List, Optional

from .ast_nodes import Ast, Token
from .js_types import TypeRegistry

logger = logging.getLogger(__name__)

DEFAULT_EXCLUSION_TAGS = frozenset({"wizaction"})


class Compiler:
    """Type registry, annotation lookup and change bookkeeping for a program.

    Passes never mutate anything through the compiler; they only notify it.
    The recorded handles let callers see which scopes a pass changed and which
    function literals it removed.
    """

    def __init__(self, type_registry: Optional[TypeRegistry] = None,
                 exclusion_tags: Iterable[str] = DEFAULT_EXCLUSION_TAGS):
        self.type_registry = type_registry if type_registry is not None else TypeRegistry()
        self.exclusion_tags = frozenset(exclusion_tags)
        self.changed_scopes: List[int] = []
        self.deleted_functions: List[int] = []

    def has_exclusion_marker(self, ast: Ast, n: int) -> bool:
        """True if the JSDoc on n carries any exclusion tag."""
        jsdoc = ast.jsdoc(n)
        if jsdoc is None:
            return False
        return any(jsdoc.has_tag(tag) for tag in self.exclusion_tags)

    def report_change_to_enclosing_scope(self, ast: Ast, n: int):
        """Record that the scope containing n changed."""
        if ast.token(n) in (Token.FUNCTION, Token.SCRIPT, Token.ROOT):
            scope = n
        else:
            scope = ast.enclosing(n, Token.FUNCTION, Token.SCRIPT, Token.ROOT)
        if scope is None:
            scope = ast.root
        logger.debug(f"Scope changed: {ast.token(scope).name} #{scope}")
        self.changed_scopes.append(scope)

    def mark_functions_deleted(self, ast: Ast, n: int):
        """Record every function literal in the subtree at n as deleted."""
        for child in ast.subtree(n):
            if ast.is_function(child):
                self.deleted_functions.append(child)
