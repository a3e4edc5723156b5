"""
Values in task & workflow ``meta`` and ``parameter_meta`` sections

These sections hold JSON-like metadata rather than WDL expressions: ``null``, Booleans, numbers,
strings without placeholders, arrays, and objects. Each value is a ``WDLAST.Meta.Base`` node with a
source position; ``.json`` gives the equivalent plain Python value (``None``, ``bool``, ``int``,
``float``, ``str``, ``list``, ``dict``).
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Iterable

from ._error_util import SourcePosition
from .Error import SourceNode


class Base(SourceNode, ABC):
    """Superclass of meta values"""

    @property
    @abstractmethod
    def json(self) -> Any:
        """
        :type: Any

        the value as plain Python data
        """
        ...


class Null(Base):
    def __init__(self, pos: SourcePosition) -> None:
        super().__init__(pos)

    @property
    def json(self) -> Any:
        return None


class Boolean(Base):
    value: bool

    def __init__(self, pos: SourcePosition, value: bool) -> None:
        super().__init__(pos)
        self.value = value

    @property
    def json(self) -> Any:
        return self.value


class Int(Base):
    value: int
    radix: int

    _eq_exclude = ("pos", "radix")

    def __init__(self, pos: SourcePosition, value: int, radix: int = 10) -> None:
        super().__init__(pos)
        self.value = value
        self.radix = radix

    @property
    def json(self) -> Any:
        return self.value


class Float(Base):
    value: float

    def __init__(self, pos: SourcePosition, value: float) -> None:
        super().__init__(pos)
        self.value = value

    @property
    def json(self) -> Any:
        return self.value


class String(Base):
    value: str
    """:type: str

    with escape sequences decoded"""

    def __init__(self, pos: SourcePosition, value: str) -> None:
        super().__init__(pos)
        self.value = value

    @property
    def json(self) -> Any:
        return self.value


class Array(Base):
    items: List[Base]
    """:type: List[WDLAST.Meta.Base]"""

    def __init__(self, pos: SourcePosition, items: List[Base]) -> None:
        super().__init__(pos)
        self.items = items

    @property
    def json(self) -> Any:
        return [item.json for item in self.items]

    @property
    def children(self) -> Iterable[SourceNode]:
        return self.items


class Object(Base):
    members: Dict[str, Base]
    """:type: Dict[str,WDLAST.Meta.Base]

    in the order written"""

    def __init__(self, pos: SourcePosition, members: Dict[str, Base]) -> None:
        super().__init__(pos)
        self.members = members

    @property
    def json(self) -> Any:
        return {k: v.json for k, v in self.members.items()}

    @property
    def children(self) -> Iterable[SourceNode]:
        return self.members.values()
