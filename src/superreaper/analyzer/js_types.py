"""Nominal type model and the global type registry.

Only what the super-method pass compares is modelled: whether a callee is a
function, the shape of its return type, and which constructor a class
inherits from. Instance types compare by identity.
"""
from typing import Dict, Iterator, Optional


class JSType:
    """Base class of all types."""

    def is_void_type(self) -> bool:
        return False

    def is_unknown_type(self) -> bool:
        return False

    def is_function_type(self) -> bool:
        return False

    def to_maybe_function_type(self) -> Optional["FunctionType"]:
        return None

    def to_maybe_object_type(self) -> Optional["InstanceType"]:
        return None


class VoidType(JSType):
    def is_void_type(self) -> bool:
        return True

    def __repr__(self) -> str:
        return "VoidType()"


class UnknownType(JSType):
    def is_unknown_type(self) -> bool:
        return True

    def __repr__(self) -> str:
        return "UnknownType()"


VOID_TYPE = VoidType()
UNKNOWN_TYPE = UnknownType()


class NamedType(JSType):
    """A declared value type we do not model further (string, Array, ...)."""

    def __init__(self, name: str):
        self.name = name

    def __eq__(self, other) -> bool:
        return isinstance(other, NamedType) and other.name == self.name

    def __hash__(self) -> int:
        return hash(("named", self.name))

    def __repr__(self) -> str:
        return f"NamedType({self.name!r})"


class FunctionType(JSType):
    """Type of a callable: plain function, method or constructor."""

    def __init__(self, name: str, return_type: Optional[JSType] = None,
                 is_constructor: bool = False):
        self.name = name
        self.return_type = return_type
        self.is_constructor = is_constructor
        self.super_class_constructor: Optional["FunctionType"] = None
        self._instance_type: Optional["InstanceType"] = None

    def is_function_type(self) -> bool:
        return True

    def to_maybe_function_type(self) -> "FunctionType":
        return self

    def get_instance_type(self) -> Optional["InstanceType"]:
        """Instance type of a constructor; None for plain functions."""
        if not self.is_constructor:
            return None
        if self._instance_type is None:
            self._instance_type = InstanceType(self)
        return self._instance_type

    def __repr__(self) -> str:
        kind = "constructor" if self.is_constructor else "function"
        return f"FunctionType({kind} {self.name!r} -> {self.return_type!r})"


class InstanceType(JSType):
    """Type of the instances created by one constructor."""

    def __init__(self, constructor: Optional[FunctionType]):
        self.constructor = constructor

    @property
    def name(self) -> str:
        return self.constructor.name if self.constructor else "?"

    def to_maybe_object_type(self) -> "InstanceType":
        return self

    def get_constructor(self) -> Optional[FunctionType]:
        return self.constructor

    def get_super_class_constructor(self) -> Optional[FunctionType]:
        if self.constructor is None:
            return None
        return self.constructor.super_class_constructor

    def __repr__(self) -> str:
        return f"InstanceType({self.name!r})"


class TypeRegistry:
    """Read-mostly lookup of global types by qualified class name."""

    def __init__(self):
        self._constructors: Dict[str, FunctionType] = {}
        self._methods: Dict[tuple, FunctionType] = {}
        self._functions: Dict[str, FunctionType] = {}

    # Classes -----------------------------------------------------------

    def declare_constructor(self, name: str) -> FunctionType:
        """Register a constructor (idempotent) and return its type."""
        constructor = self._constructors.get(name)
        if constructor is None:
            constructor = FunctionType(name, VOID_TYPE, is_constructor=True)
            self._constructors[name] = constructor
        return constructor

    def set_super_class(self, name: str, super_name: str):
        """Record that class name extends class super_name.

        Raises:
            KeyError: If either class has not been declared
        """
        self._constructors[name].super_class_constructor = self._constructors[super_name]

    def get_constructor(self, name: str) -> Optional[FunctionType]:
        return self._constructors.get(name)

    def get_global_type(self, name: str) -> Optional[JSType]:
        """Instance type of the class called name, or None if unknown."""
        constructor = self._constructors.get(name)
        if constructor is None:
            return None
        return constructor.get_instance_type()

    def constructor_names(self) -> Iterator[str]:
        return iter(self._constructors)

    def super_class_name(self, name: str) -> Optional[str]:
        constructor = self._constructors.get(name)
        if constructor is None or constructor.super_class_constructor is None:
            return None
        return constructor.super_class_constructor.name

    # Members -----------------------------------------------------------

    def declare_method(self, class_name: str, method_name: str, method_type: FunctionType):
        self._methods[(class_name, method_name)] = method_type

    def get_own_method(self, class_name: str, method_name: str) -> Optional[FunctionType]:
        return self._methods.get((class_name, method_name))

    def find_method(self, class_name: str, method_name: str) -> Optional[FunctionType]:
        """Look a method up on class_name, then along its superclass chain."""
        seen = set()
        current = class_name
        while current is not None and current not in seen:
            seen.add(current)
            method = self._methods.get((current, method_name))
            if method is not None:
                return method
            current = self.super_class_name(current)
        return None

    def declare_function(self, name: str, function_type: FunctionType):
        self._functions[name] = function_type

    def get_function(self, name: str) -> Optional[FunctionType]:
        """A declared plain function or constructor called name."""
        return self._functions.get(name) or self._constructors.get(name)
