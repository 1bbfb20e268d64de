"""Removal of methods that only forward to the same superclass method.

A prototype method such as

    ns.Dog.prototype.bark = function(a, b) {
      ns.Dog.superClass_.bark.call(this, a, b);
    };

changes nothing about how `bark` behaves: without it, the call dispatches to
the superclass method with the same receiver and arguments. The pass finds
such declarations and detaches their statements.

It runs in three phases over one RemovalContext:

1. SuperMethodCollector records every matching declaration by name.
2. DuplicateMethodFilter drops any name declared more than once.
3. The remaining declarations are detached.

Both traversals finish before the tree is mutated.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from superreaper.analyzer.ast_nodes import Ast
from superreaper.analyzer.compiler import Compiler
from superreaper.analyzer.qualified_name import (
    Access, QualifiedName, get_function_name, matches_qualified_name, get_qualified_name,
)
from superreaper.analyzer.traversal import traverse

logger = logging.getLogger(__name__)

SUPERCLASS_MARKER = Access.SUPERCLASS
PROTOTYPE_MARKER = Access.PROTOTYPE
CALL_SUFFIX = "call"

# The callee and the explicit `this` come before the forwarded arguments
EXTRA_CALL_CHILDREN = 2


class SuperMethodRemovalError(RuntimeError):
    """A recorded candidate is no longer a removable statement."""


@dataclass
class RemovedMethod:
    """One declaration removed by the pass."""
    qualified_name: str
    file_path: Optional[str]
    line: int
    start: int  # Includes the leading JSDoc comment
    end: int

    def to_dict(self) -> Dict:
        return {
            "qualified_name": self.qualified_name,
            "file_path": self.file_path,
            "line": self.line,
            "start": self.start,
            "end": self.end,
        }


@dataclass
class RemovalContext:
    """Candidate table shared by the collect and filter phases."""
    candidates: Dict[QualifiedName, int] = field(default_factory=dict)


def is_function_assignment(ast: Ast, n: int, parent: Optional[int]) -> bool:
    """True for the function in a `name = function() {...};` statement."""
    if parent is None or not ast.is_function(n) or not ast.is_assign(parent):
        return False
    grandparent = ast.parent(parent)
    return grandparent is not None and ast.is_expr_result(grandparent)


class SuperCallMatcher:
    """Decides whether a call is an exact forward to the superclass method."""

    def __init__(self, compiler: Compiler):
        self.compiler = compiler

    def matches(self, ast: Ast, fn: int, call: int, method_name: QualifiedName) -> bool:
        return (
            self.arguments_match(ast, fn, call)
            and self.return_matches(ast, call)
            and self.function_name_matches(ast, method_name, call)
        )

    def arguments_match(self, ast: Ast, fn: int, call: int) -> bool:
        """True if the call passes `this` and then exactly fn's parameters."""
        params = ast.children(ast.second_child(fn))
        if len(params) + EXTRA_CALL_CHILDREN != ast.child_count(call):
            return False

        if not ast.is_this(ast.second_child(call)):
            return False

        args = ast.children(call)[EXTRA_CALL_CHILDREN:]
        for param, arg in zip(params, args):
            if not ast.is_name(arg) or not matches_qualified_name(ast, param, arg):
                return False
        return True

    def return_matches(self, ast: Ast, call: int) -> bool:
        """True if the call's result is returned whenever it has one.

        A callee without a known function type never matches.
        """
        callee_type = ast.jstype(ast.first_child(call))
        if callee_type is None or not callee_type.is_function_type():
            return False

        return_type = callee_type.to_maybe_function_type().return_type
        if (return_type is not None
                and not return_type.is_void_type()
                and not return_type.is_unknown_type()):
            return ast.is_return(ast.parent(call))
        return True

    def function_name_matches(self, ast: Ast, enclosing_name: QualifiedName, call: int) -> bool:
        """True if the call targets the enclosing method on the superclass.

        The enclosing name has the form `ns.Foo.prototype.bar`. The callee is
        either `ns.Foo.superClass_.bar.call` or `ns.Base.prototype.bar.call`,
        where the registry must confirm that ns.Base is ns.Foo's superclass.
        """
        call_name = get_qualified_name(ast, ast.first_child(call))
        if call_name is None:
            return False

        enclosing = enclosing_name.split_on(PROTOTYPE_MARKER)
        if enclosing is None:
            return False
        enclosing_class, method = enclosing
        method_call = method.child(CALL_SUFFIX)

        via_superclass = call_name.split_on(SUPERCLASS_MARKER)
        if (via_superclass is not None
                and via_superclass[0] == enclosing_class
                and via_superclass[1] == method_call):
            # goog.inherits and class lowering emit this form; trusted as is
            return True

        via_prototype = call_name.split_on(PROTOTYPE_MARKER)
        if via_prototype is None or via_prototype[1] != method_call:
            return False

        called_class = via_prototype[0]
        registry = self.compiler.type_registry
        subclass_type = registry.get_global_type(str(enclosing_class))
        called_class_type = registry.get_global_type(str(called_class))
        if subclass_type is None or called_class_type is None:
            return False

        object_type = subclass_type.to_maybe_object_type()
        if object_type is None or object_type.get_constructor() is None:
            return False

        super_constructor = object_type.get_super_class_constructor()
        if super_constructor is None:
            return False
        return super_constructor.get_instance_type() is called_class_type


class SuperMethodCollector:
    """Records every trivial super-forwarding declaration in the context."""

    def __init__(self, compiler: Compiler):
        self.compiler = compiler
        self.matcher = SuperCallMatcher(compiler)

    def visit(self, ast: Ast, n: int, parent: Optional[int], context: RemovalContext):
        if not is_function_assignment(ast, n, parent):
            return
        if self.compiler.has_exclusion_marker(ast, parent):
            return

        body = ast.last_child(n)
        if body is None or not ast.has_one_child(body):
            return
        statement = ast.first_child(body)
        if not (ast.is_expr_result(statement) or ast.is_return(statement)):
            return
        if not ast.has_one_child(statement) or not ast.is_call(ast.first_child(statement)):
            return

        method_name = get_function_name(ast, n)
        if method_name is None:
            return

        call = ast.first_child(statement)
        if self.matcher.matches(ast, n, call, method_name):
            logger.debug(f"Candidate super forward: {method_name}")
            context.candidates[method_name] = n


class DuplicateMethodFilter:
    """Drops candidates whose name is assigned another function elsewhere."""

    def visit(self, ast: Ast, n: int, parent: Optional[int], context: RemovalContext):
        if not is_function_assignment(ast, n, parent):
            return
        method_name = get_function_name(ast, n)
        if method_name is None:
            return
        recorded = context.candidates.get(method_name)
        if recorded is not None and recorded != n:
            logger.debug(f"Keeping {method_name}: declared more than once")
            del context.candidates[method_name]


class RemoveSuperMethodsPass:
    """Removes prototype methods that only call the same superclass method."""

    def __init__(self, compiler: Compiler):
        self.compiler = compiler

    def process(self, ast: Ast, root: Optional[int] = None) -> List[RemovedMethod]:
        """Run the pass over the program.

        Args:
            ast: Annotated program tree
            root: Subtree to process (default: the whole program)

        Returns:
            One record per removed declaration

        Raises:
            SuperMethodRemovalError: If a candidate's statement is not attached
        """
        root = ast.root if root is None else root
        context = RemovalContext()

        traverse(ast, root, SuperMethodCollector(self.compiler), context)
        traverse(ast, root, DuplicateMethodFilter(), context)

        removed = [self._remove(ast, name, fn) for name, fn in context.candidates.items()]
        context.candidates.clear()
        return removed

    def _remove(self, ast: Ast, name: QualifiedName, fn: int) -> RemovedMethod:
        statement = ast.grandparent(fn)
        if statement is None or not ast.is_expr_result(statement) or not ast.is_attached(statement):
            raise SuperMethodRemovalError(
                f"Cannot remove {name}: its statement is no longer in the program"
            )

        record = self._describe(ast, name, statement)
        scope = ast.parent(statement)
        ast.detach(statement)
        self.compiler.mark_functions_deleted(ast, statement)
        self.compiler.report_change_to_enclosing_scope(ast, scope)

        logger.info(f"Removed super forward {name} ({record.file_path}:{record.line})")
        return record

    def _describe(self, ast: Ast, name: QualifiedName, statement: int) -> RemovedMethod:
        node = ast.node(statement)
        start = node.start
        jsdoc = ast.jsdoc(ast.first_child(statement))
        if jsdoc is not None:
            start = min(start, jsdoc.start)
        return RemovedMethod(
            qualified_name=str(name),
            file_path=ast.script_path(statement),
            line=node.line,
            start=start,
            end=node.end,
        )
