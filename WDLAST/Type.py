"""
WDL data types, as written in declarations

WDL has both atomic types such as ``Int``, ``Boolean``, and ``String``; and
parametric types like ``Array[String]`` and
``Map[String,Array[Array[Float]]]``. Here, each type annotation is represented
by an immutable instance of a Python class inheriting from ``WDLAST.Type.Base``,
carrying the source position where it was written.

An atomic type like ``Int`` is represented by ``WDLAST.Type.Int(pos)``. The
optional quantifier wraps another type, so ``Int?`` is
``WDLAST.Type.Optional(pos, WDLAST.Type.Int(pos))``; the nonempty quantifier of
``Array[T]+`` is a flag on the array type. Struct types are referenced by name
with ``WDLAST.Type.StructInstance``, which this package doesn't resolve.

Types compare equal when they're structurally identical, regardless of source
position: ``Array[Int]+`` equals ``Array[Int]+`` but not ``Array[Int]``.

.. inheritance-diagram:: WDLAST.Type
   :top-classes: WDLAST.Type.Base
"""
from abc import ABC
from typing import Iterable, Tuple

from ._error_util import SourcePosition
from .Error import SourceNode


class Base(SourceNode, ABC):
    """The abstract base class for WDL types

    Each specific type inherits from this base, e.g.::

        assert issubclass(WDLAST.Type.Int, WDLAST.Type.Base)
    """

    @property
    def optional(self) -> bool:
        """
        :type: bool

        True when the type has the optional quantifier, ``T?``"""
        return False

    @property
    def parameters(self) -> Iterable["Base"]:
        """
        :type: Iterable[WDLAST.Type.Base]

        The type's parameters, if any (e.g. item type of Array; left & right
        types of Pair; etc.)
        """
        return []

    @property
    def children(self) -> Iterable[SourceNode]:
        return self.parameters

    def __str__(self) -> str:
        return type(self).__name__


class Boolean(Base):
    pass


class Float(Base):
    pass


class Int(Base):
    pass


class File(Base):
    pass


class Directory(Base):
    pass


class String(Base):
    pass


class Object(Base):
    """Type of the legacy ``object {...}`` literal"""


class Optional(Base):
    """``T?``, the optional quantifier applied to another type"""

    wrapped_type: Base
    """:type: WDLAST.Type.Base"""

    def __init__(self, pos: SourcePosition, wrapped_type: Base) -> None:
        super().__init__(pos)
        self.wrapped_type = wrapped_type

    @property
    def optional(self) -> bool:
        return True

    @property
    def parameters(self) -> Iterable[Base]:
        yield self.wrapped_type

    def __str__(self) -> str:
        return str(self.wrapped_type) + "?"


class Array(Base):
    """
    Array type, parameterized by the type of the constituent items.
    """

    item_type: Base
    """
    :type: WDLAST.Type.Base
    """

    nonempty: bool
    """
    :type: bool

    True when the array has the nonempty quantifier, ``Array[T]+``
    """

    def __init__(self, pos: SourcePosition, item_type: Base, nonempty: bool = False) -> None:
        super().__init__(pos)
        self.item_type = item_type
        self.nonempty = nonempty

    def __str__(self) -> str:
        return "Array[" + str(self.item_type) + "]" + ("+" if self.nonempty else "")

    @property
    def parameters(self) -> Iterable[Base]:
        yield self.item_type


class Map(Base):
    """
    Map type, parameterized by the (key,value) item type.
    """

    item_type: Tuple[Base, Base]
    """
    :type: Tuple[WDLAST.Type.Base,WDLAST.Type.Base]
    """

    def __init__(self, pos: SourcePosition, key_type: Base, value_type: Base) -> None:
        super().__init__(pos)
        self.item_type = (key_type, value_type)

    def __str__(self) -> str:
        return "Map[" + str(self.item_type[0]) + "," + str(self.item_type[1]) + "]"

    @property
    def parameters(self) -> Iterable[Base]:
        yield self.item_type[0]
        yield self.item_type[1]


class Pair(Base):
    """
    Pair type, parameterized by the left and right item types.
    """

    left_type: Base
    """
    :type: WDLAST.Type.Base
    """
    right_type: Base
    """
    :type: WDLAST.Type.Base
    """

    def __init__(self, pos: SourcePosition, left_type: Base, right_type: Base) -> None:
        super().__init__(pos)
        self.left_type = left_type
        self.right_type = right_type

    def __str__(self) -> str:
        return "Pair[" + str(self.left_type) + "," + str(self.right_type) + "]"

    @property
    def parameters(self) -> Iterable[Base]:
        yield self.left_type
        yield self.right_type


class StructInstance(Base):
    """
    Reference to a struct type by name; the struct definition may be in the same document or an
    imported one, and isn't looked up here.
    """

    type_name: str
    """
    :type: str

    The struct type name as it appears in the declaration; possibly an alias introduced by an
    import statement.
    """

    def __init__(self, pos: SourcePosition, type_name: str) -> None:
        super().__init__(pos)
        self.type_name = type_name

    def __str__(self) -> str:
        return self.type_name
