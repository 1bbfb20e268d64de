"""Closure-style type annotation from JSDoc and goog.inherits.

Builds the TypeRegistry (classes, superclass links, method signatures) and
attaches a FunctionType to the callee of every call it can resolve.
"""
import logging
from typing import Dict, List, Optional, Tuple

import networkx as nx

from .ast_nodes import Ast, JSDocInfo
from .js_types import (
    FunctionType, JSType, NamedType, TypeRegistry, UNKNOWN_TYPE, VOID_TYPE,
)
from .qualified_name import (
    Access, QualifiedName, get_function_name, get_qualified_name,
)

logger = logging.getLogger(__name__)

INHERITS_FUNCTION = "goog.inherits"

_VOID_NAMES = {"void", "undefined"}
_UNKNOWN_NAMES = {"?", "*"}
_CALL_METHODS = {"call", "apply"}

# (qualified name, FUNCTION handle, JSDoc)
Declaration = Tuple[QualifiedName, int, Optional[JSDocInfo]]


class TypeAnnotator:
    """Populates a TypeRegistry and call types for a parsed program."""

    def __init__(self, registry: Optional[TypeRegistry] = None):
        self.registry = registry if registry is not None else TypeRegistry()
        # Edge (child, parent) for every accepted superclass link
        self.inheritance = nx.DiGraph()
        self.interfaces = set()

    def annotate(self, ast: Ast) -> TypeRegistry:
        """Annotate every SCRIPT under ast's ROOT.

        Args:
            ast: Parsed program

        Returns:
            The populated registry
        """
        declarations = self._function_declarations(ast)
        self._declare_classes(ast, declarations)
        self._declare_functions(ast, declarations)
        self._attach_call_types(ast)
        return self.registry

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def _function_declarations(self, ast: Ast) -> List[Declaration]:
        declarations = []
        for n in ast.subtree(ast.root):
            if not ast.is_function(n):
                continue
            name = get_function_name(ast, n)
            if name is None:
                continue
            declarations.append((name, n, ast.best_jsdoc_for_function(n)))
        return declarations

    def _declare_classes(self, ast: Ast, declarations: List[Declaration]):
        extends: Dict[str, str] = {}
        for name, _, jsdoc in declarations:
            if jsdoc is None or not (jsdoc.is_constructor or jsdoc.is_interface):
                continue
            self.registry.declare_constructor(str(name))
            self.inheritance.add_node(str(name))
            if not jsdoc.is_constructor:
                self.interfaces.add(str(name))
            if jsdoc.extends:
                extends[str(name)] = jsdoc.extends

        # goog.inherits wins over @extends
        extends.update(self._inherits_calls(ast))

        for child, parent in extends.items():
            self._link(child, parent)

    def _inherits_calls(self, ast: Ast) -> Dict[str, str]:
        links = {}
        for n in ast.subtree(ast.root):
            if not ast.is_call(n) or ast.child_count(n) != 3:
                continue
            callee = get_qualified_name(ast, ast.first_child(n))
            if callee is None or str(callee) != INHERITS_FUNCTION:
                continue
            child = get_qualified_name(ast, ast.child_at(n, 1))
            parent = get_qualified_name(ast, ast.child_at(n, 2))
            if child is not None and parent is not None:
                links[str(child)] = str(parent)
        return links

    def _link(self, child: str, parent: str):
        if self.registry.get_constructor(child) is None:
            logger.debug(f"Ignoring superclass of undeclared class {child}")
            return
        if self.registry.get_constructor(parent) is None:
            logger.debug(f"Superclass {parent} of {child} is not a declared class")
            return
        if child in self.interfaces or parent in self.interfaces:
            # Interfaces extend other interfaces, never a superclass
            logger.debug(f"Ignoring interface inheritance: {child} extends {parent}")
            return
        if child == parent or nx.has_path(self.inheritance, parent, child):
            logger.warning(f"Ignoring cyclic inheritance: {child} extends {parent}")
            return
        self.inheritance.add_edge(child, parent)
        self.registry.set_super_class(child, parent)

    def _depth(self, class_name: str) -> int:
        if class_name not in self.inheritance:
            return 0
        return len(nx.descendants(self.inheritance, class_name))

    # ------------------------------------------------------------------
    # Functions and methods
    # ------------------------------------------------------------------

    def _declare_functions(self, ast: Ast, declarations: List[Declaration]):
        overrides = []
        for name, fn, jsdoc in declarations:
            if self.registry.get_constructor(str(name)) is not None:
                continue

            split = name.split_on(Access.PROTOTYPE)
            if split is None:
                fn_type = FunctionType(str(name), self._return_type(ast, fn, jsdoc))
                self.registry.declare_function(str(name), fn_type)
                continue

            class_name, member = split
            if len(member) != 1 or self.registry.get_constructor(str(class_name)) is None:
                continue

            if jsdoc is not None and jsdoc.is_override and jsdoc.return_type is None:
                overrides.append((str(class_name), member.last, fn))
                continue
            fn_type = FunctionType(str(name), self._return_type(ast, fn, jsdoc))
            self.registry.declare_method(str(class_name), member.last, fn_type)

        # Base classes first, so an override can inherit an inherited override
        overrides.sort(key=lambda item: self._depth(item[0]))
        for class_name, method_name, fn in overrides:
            name = f"{class_name}.prototype.{method_name}"
            inherited = None
            super_name = self.registry.super_class_name(class_name)
            if super_name is not None:
                inherited = self.registry.find_method(super_name, method_name)
            if inherited is not None:
                return_type = inherited.return_type
            else:
                return_type = self._inferred_return_type(ast, fn)
            self.registry.declare_method(class_name, method_name, FunctionType(name, return_type))

    def _return_type(self, ast: Ast, fn: int, jsdoc: Optional[JSDocInfo]) -> JSType:
        if jsdoc is not None and jsdoc.return_type is not None:
            return self._declared_type(jsdoc.return_type)
        return self._inferred_return_type(ast, fn)

    def _declared_type(self, expression: str) -> JSType:
        """Type named by a JSDoc type expression."""
        expression = expression.strip()
        if expression in _VOID_NAMES:
            return VOID_TYPE
        if expression in _UNKNOWN_NAMES:
            return UNKNOWN_TYPE
        constructor = self.registry.get_constructor(expression.lstrip("!?"))
        if constructor is not None:
            return constructor.get_instance_type()
        return NamedType(expression)

    def _inferred_return_type(self, ast: Ast, fn: int) -> JSType:
        """UNKNOWN if the body returns a value, otherwise VOID."""
        body = ast.last_child(fn)
        if body is None:
            return VOID_TYPE
        stack = list(ast.children(body))
        while stack:
            n = stack.pop()
            if ast.is_function(n):
                continue
            if ast.is_return(n) and ast.child_count(n) > 0:
                return UNKNOWN_TYPE
            stack.extend(ast.children(n))
        return VOID_TYPE

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def _attach_call_types(self, ast: Ast):
        for n in ast.subtree(ast.root):
            if not ast.is_call(n):
                continue
            callee = ast.first_child(n)
            name = get_qualified_name(ast, callee)
            if name is None:
                continue
            callee_type = self.resolve_callee(name)
            if callee_type is not None:
                ast.set_jstype(callee, callee_type)

    def resolve_callee(self, name: QualifiedName) -> Optional[FunctionType]:
        """Function type of a called qualified name, or None."""
        if len(name) > 1 and name.last in _CALL_METHODS:
            # Function.prototype.call/apply keep the signature; strip once so
            # a method itself named call or apply still resolves
            name = name.parent()

        split = name.split_on(Access.SUPERCLASS)
        if split is not None:
            class_name, member = split
            if len(member) != 1:
                return None
            super_name = self.registry.super_class_name(str(class_name))
            if super_name is None:
                return None
            return self.registry.find_method(super_name, member.last)

        split = name.split_on(Access.PROTOTYPE)
        if split is not None:
            class_name, member = split
            if len(member) != 1:
                return None
            return self.registry.find_method(str(class_name), member.last)

        if any(segment.access != Access.MEMBER and segment.access != Access.ROOT
               for segment in name.segments):
            return None
        return self.registry.get_function(str(name))
