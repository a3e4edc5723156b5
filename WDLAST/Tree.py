"""
Abstract syntax tree (AST) for WDL documents, containing tasks and workflows, which contain
declarations, calls, and scatter & if sections. The AST is constructed by
:func:`~WDLAST.parse_source` or :func:`~WDLAST.parse_file`.

The ``WDLAST.Tree.*`` classes are also exported by the base ``WDLAST`` module, i.e.
``WDLAST.Tree.Document`` can be abbreviated ``WDLAST.Document``.

.. inheritance-diagram:: WDLAST.Tree
"""

from typing import List, Optional, Dict, Tuple, Union, Iterable
from abc import ABC
from ._error_util import SourcePosition
from .Error import SourceNode
from . import Type, Expr, Meta


class DocumentElement(SourceNode, ABC):
    """
    Base class for the top-level elements of a document body: imports, struct type definitions,
    tasks, and workflows
    """


class WorkflowNode(SourceNode, ABC):
    """
    Base class for the elements of a workflow body: declarations, calls, and scatter/if sections
    """


class Version(SourceNode):
    """The ``version`` statement heading a document"""

    identifier: str
    """
    :type: str

    e.g. ``1.1``
    """

    def __init__(self, pos: SourcePosition, identifier: str) -> None:
        super().__init__(pos)
        self.identifier = identifier

    def __str__(self) -> str:
        return "version " + self.identifier


class Import(DocumentElement):
    """An import statement, recorded as written (the imported document isn't loaded)"""

    uri: str
    """:type: str"""

    namespace: str
    """
    :type: str

    Namespace given with ``as``, or else inferred from the URI basename
    """

    aliases: Dict[str, str]
    """
    :type: Dict[str,str]

    Struct type aliases, imported name to local name, in the order written
    """

    def __init__(
        self, pos: SourcePosition, uri: str, namespace: str, aliases: Dict[str, str]
    ) -> None:
        super().__init__(pos)
        self.uri = uri
        self.namespace = namespace
        self.aliases = aliases


class Decl(WorkflowNode):
    """
    A value declaration within a task, workflow, or struct type definition
    """

    type: Type.Base
    ":type: WDLAST.Type.Base"
    name: str
    """Declared value name

    :type: str"""
    expr: Optional[Expr.Base]
    """:type: Optional[WDLAST.Expr.Base]

    Bound expression, if any"""

    def __init__(
        self,
        pos: SourcePosition,
        type: Type.Base,
        name: str,
        expr: Optional[Expr.Base] = None,
    ) -> None:
        super().__init__(pos)
        self.type = type
        self.name = name
        self.expr = expr

    def __str__(self) -> str:
        if self.expr is None:
            return "{} {}".format(str(self.type), self.name)
        return "{} {} = {}".format(str(self.type), self.name, str(self.expr))

    @property
    def children(self) -> Iterable[SourceNode]:
        """"""
        yield self.type
        if self.expr:
            yield self.expr


class StructTypeDef(DocumentElement):
    """WDL struct type definition"""

    name: str
    """
    :type: str

    Name of the struct type (in the current document)
    """

    members: List[Decl]
    """
    :type: List[WDLAST.Tree.Decl]

    Member declarations (without initializers) in the order written; the names are distinct
    """

    def __init__(self, pos: SourcePosition, name: str, members: List[Decl]) -> None:
        super().__init__(pos)
        self.name = name
        self.members = members

    @property
    def member_types(self) -> Dict[str, Type.Base]:
        """
        :type: Dict[str,WDLAST.Type.Base]

        Member names and types
        """
        return {decl.name: decl.type for decl in self.members}

    @property
    def children(self) -> Iterable[SourceNode]:
        return self.members


class Command(SourceNode):
    """
    Task command template: literal shell script text interleaved with placeholders
    """

    parts: List[Union[str, Expr.Placeholder]]
    """
    :type: List[Union[str,WDLAST.Expr.Placeholder]]

    Text is verbatim from the source (escape sequences are left for the shell), except that
    common leading whitespace has been stripped from each line, along with whitespace-only first
    and last lines.
    """

    heredoc: bool
    """
    :type: bool

    True for ``command <<< ... >>>``, False for ``command { ... }``
    """

    def __init__(
        self, pos: SourcePosition, parts: List[Union[str, Expr.Placeholder]], heredoc: bool
    ) -> None:
        super().__init__(pos)
        self.parts = parts
        self.heredoc = heredoc

    def __str__(self) -> str:
        return "".join(str(part) for part in self.parts)

    @property
    def children(self) -> Iterable[SourceNode]:
        for part in self.parts:
            if isinstance(part, Expr.Placeholder):
                yield part


class Task(DocumentElement):
    """
    WDL Task
    """

    name: str
    """:type: str"""
    inputs: List[Decl]
    """:type: List[WDLAST.Tree.Decl]

    Declarations in the ``input{}`` task section, if it's present"""
    postinputs: List[Decl]
    """:type: List[WDLAST.Tree.Decl]

    Private declarations outside of the ``input{}`` task section"""
    command: Command
    ":type: WDLAST.Tree.Command"
    outputs: List[Decl]
    """:type: List[WDLAST.Tree.Decl]

    Output declarations, each with an initializer"""
    parameter_meta: Dict[str, Meta.Base]
    """:type: Dict[str,WDLAST.Meta.Base]

    ``parameter_meta{}`` section"""
    runtime: Dict[str, Expr.Base]
    """:type: Dict[str,WDLAST.Expr.Base]

    ``runtime{}`` section, with keys and corresponding expressions"""
    meta: Dict[str, Meta.Base]
    """:type: Dict[str,WDLAST.Meta.Base]

    ``meta{}`` section"""

    def __init__(
        self,
        pos: SourcePosition,
        name: str,
        inputs: List[Decl],
        postinputs: List[Decl],
        command: Command,
        outputs: List[Decl],
        parameter_meta: Dict[str, Meta.Base],
        runtime: Dict[str, Expr.Base],
        meta: Dict[str, Meta.Base],
    ) -> None:
        super().__init__(pos)
        self.name = name
        self.inputs = inputs
        self.postinputs = postinputs
        self.command = command
        self.outputs = outputs
        self.parameter_meta = parameter_meta
        self.runtime = runtime
        self.meta = meta

    @property
    def children(self) -> Iterable[SourceNode]:
        """"""
        yield from self.inputs
        yield from self.postinputs
        yield self.command
        yield from self.outputs
        yield from self.runtime.values()
        yield from self.meta.values()
        yield from self.parameter_meta.values()


class Call(WorkflowNode):
    """A call (within a workflow) to a task or sub-workflow"""

    callee_id: List[str]
    """
    :type: List[str]

    The called task; either one string naming a task in the current document, or an import
    namespace and task name.
    """
    alias: Optional[str]
    """:type: Optional[str]

    Name given with ``as``, if any"""

    inputs: List[Tuple[str, Expr.Base]]
    """
    :type: List[Tuple[str,WDLAST.Expr.Base]]

    Call inputs provided, in the order written. A bare name ``x`` supplied as an input appears as
    ``("x", Expr.Ident("x"))``."""

    def __init__(
        self,
        pos: SourcePosition,
        callee_id: List[str],
        alias: Optional[str],
        inputs: List[Tuple[str, Expr.Base]],
    ) -> None:
        super().__init__(pos)
        assert callee_id
        self.callee_id = callee_id
        self.alias = alias
        self.inputs = inputs

    @property
    def name(self) -> str:
        """:type: str

        Call name, defaults to task/workflow name"""
        return self.alias if self.alias is not None else self.callee_id[-1]

    @property
    def children(self) -> Iterable[SourceNode]:
        """"""
        for _, ex in self.inputs:
            yield ex


class WorkflowSection(WorkflowNode, ABC):
    """
    Base class for workflow nodes representing scatter and conditional sections
    """

    body: List[WorkflowNode]
    """
    :type: List[WorkflowNode]

    Section body, potentially including nested sections.
    """

    def __init__(self, pos: SourcePosition, body: List[WorkflowNode]) -> None:
        super().__init__(pos)
        self.body = body


class Scatter(WorkflowSection):
    """Workflow scatter section"""

    variable: str
    """
    :type: string

    Scatter variable name"""
    expr: Expr.Base
    """
    :type: WDLAST.Expr.Base

    Expression for the array over which to scatter"""

    def __init__(
        self, pos: SourcePosition, variable: str, expr: Expr.Base, body: List[WorkflowNode]
    ) -> None:
        super().__init__(pos, body)
        self.variable = variable
        self.expr = expr

    @property
    def children(self) -> Iterable[SourceNode]:
        """"""
        yield self.expr
        yield from self.body


class Conditional(WorkflowSection):
    """Workflow conditional (if) section"""

    expr: Expr.Base
    """
    :type: WDLAST.Expr.Base

    Boolean expression"""

    def __init__(self, pos: SourcePosition, expr: Expr.Base, body: List[WorkflowNode]) -> None:
        super().__init__(pos, body)
        self.expr = expr

    @property
    def children(self) -> Iterable[SourceNode]:
        """"""
        yield self.expr
        yield from self.body


class Workflow(DocumentElement):
    name: str
    ":type: str"
    inputs: List[Decl]
    """:type: List[WDLAST.Tree.Decl]

    Declarations in the ``input{}`` workflow section, if it's present"""
    body: List[WorkflowNode]
    """:type: List[Union[WDLAST.Tree.Decl,WDLAST.Tree.Call,WDLAST.Tree.Scatter,WDLAST.Tree.Conditional]]

    Workflow body in between ``input{}`` and ``output{}`` sections, if any
    """
    outputs: List[Decl]
    """:type: List[WDLAST.Tree.Decl]

    Workflow output declarations, each with an initializer"""
    parameter_meta: Dict[str, Meta.Base]
    """
    :type: Dict[str,WDLAST.Meta.Base]

    ``parameter_meta{}`` section"""
    meta: Dict[str, Meta.Base]
    """
    :type: Dict[str,WDLAST.Meta.Base]

    ``meta{}`` section"""

    def __init__(
        self,
        pos: SourcePosition,
        name: str,
        inputs: List[Decl],
        body: List[WorkflowNode],
        outputs: List[Decl],
        parameter_meta: Dict[str, Meta.Base],
        meta: Dict[str, Meta.Base],
    ) -> None:
        super().__init__(pos)
        self.name = name
        self.inputs = inputs
        self.body = body
        self.outputs = outputs
        self.parameter_meta = parameter_meta
        self.meta = meta

    @property
    def children(self) -> Iterable[SourceNode]:
        """"""
        yield from self.inputs
        yield from self.body
        yield from self.outputs
        yield from self.meta.values()
        yield from self.parameter_meta.values()


class Document(SourceNode):
    """
    Top-level document: the version statement followed by imports, struct type definitions,
    tasks, and up to one workflow. Returned by :func:`~WDLAST.parse_source`.
    """

    source_text: str
    """
    :type: str

    Original WDL source code text, from which a formatter can recover comments using the source
    positions of the nodes. Not compared by ``==``.
    """

    version: Version
    """
    :type: WDLAST.Tree.Version
    """

    body: List[DocumentElement]
    """
    :type: List[Union[WDLAST.Tree.Import,WDLAST.Tree.StructTypeDef,WDLAST.Tree.Task,WDLAST.Tree.Workflow]]

    Document elements following the version statement, in the order written
    """

    _eq_exclude = ("pos", "source_text")

    def __init__(
        self,
        source_text: str,
        pos: SourcePosition,
        version: Version,
        body: List[DocumentElement],
    ) -> None:
        super().__init__(pos)
        self.source_text = source_text
        self.version = version
        self.body = body

    @property
    def source_lines(self) -> List[str]:
        """
        :type: List[str]

        Original WDL source code text split by newlines. ``SourcePosition`` line numbers are
        one-based, so line number ``L`` corresponds to ``source_lines[L-1]``.
        """
        return self.source_text.split("\n")

    @property
    def imports(self) -> List[Import]:
        """:type: List[WDLAST.Tree.Import]"""
        return [elt for elt in self.body if isinstance(elt, Import)]

    @property
    def struct_typedefs(self) -> List[StructTypeDef]:
        """:type: List[WDLAST.Tree.StructTypeDef]"""
        return [elt for elt in self.body if isinstance(elt, StructTypeDef)]

    @property
    def tasks(self) -> List[Task]:
        """:type: List[WDLAST.Tree.Task]"""
        return [elt for elt in self.body if isinstance(elt, Task)]

    @property
    def workflow(self) -> Optional[Workflow]:
        """:type: Optional[WDLAST.Tree.Workflow]"""
        return next((elt for elt in self.body if isinstance(elt, Workflow)), None)

    @property
    def children(self) -> Iterable[SourceNode]:
        """"""
        yield self.version
        yield from self.body
