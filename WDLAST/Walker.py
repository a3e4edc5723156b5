# pylint: disable=assignment-from-no-return
from typing import Any, List, Optional
from . import Error, Expr, Tree, Type, Meta


class Base:
    """
    Helper base class for traversing the WDL abstract syntax tree. When called
    on a node, invokes the appropriate method (document, version, import_doc,
    struct_typedef, task, command, workflow, call, scatter, conditional, decl,
    type, expr, meta). The base implementations of these methods recurse into
    the node's "children." Overriding subclasses can thus invoke their super at
    the appropriate point for preorder or postorder traversal (or omit super to
    prevent further descent).

    ``
    class PrintUnconditionalCallNames(Walker.Base):
        def conditional(self, obj):
            # skip everything inside conditionals by NOT calling
            #   super().conditional(obj)
            pass
        def call(self, obj):
            print(obj.name)
    walker = PrintUnconditionalCallNames()
    walker(wdl_document)
    ``

    If initialized with ``auto_descend=True``, then super invocations do
    nothing (they can be omitted) and child nodes are recursed just after
    each method invocation (preorder traversal).
    """

    auto_descend: bool

    def __init__(self, auto_descend: bool = False) -> None:
        self.auto_descend = auto_descend

    def __call__(self, obj: Error.SourceNode, descend: Optional[bool] = None) -> Any:
        ans = None
        if isinstance(obj, Tree.Document):
            ans = self.document(obj)
        elif isinstance(obj, Tree.Version):
            ans = self.version(obj)
        elif isinstance(obj, Tree.Import):
            ans = self.import_doc(obj)
        elif isinstance(obj, Tree.StructTypeDef):
            ans = self.struct_typedef(obj)
        elif isinstance(obj, Tree.Task):
            ans = self.task(obj)
        elif isinstance(obj, Tree.Command):
            ans = self.command(obj)
        elif isinstance(obj, Tree.Workflow):
            ans = self.workflow(obj)
        elif isinstance(obj, Tree.Call):
            ans = self.call(obj)
        elif isinstance(obj, Tree.Scatter):
            ans = self.scatter(obj)
        elif isinstance(obj, Tree.Conditional):
            ans = self.conditional(obj)
        elif isinstance(obj, Tree.Decl):
            ans = self.decl(obj)
        elif isinstance(obj, Type.Base):
            ans = self.type(obj)
        elif isinstance(obj, Expr.Base):
            ans = self.expr(obj)
        elif isinstance(obj, Meta.Base):
            ans = self.meta(obj)
        else:
            assert False, type(obj)
        if descend is None:
            descend = self.auto_descend
        if descend:
            for ch in obj.children:
                self(ch)
        return ans

    def _descend(self, obj: Error.SourceNode) -> Any:
        if not self.auto_descend:
            for ch in obj.children:
                self(ch)

    def document(self, obj: Tree.Document) -> Any:
        self._descend(obj)

    def version(self, obj: Tree.Version) -> Any:
        self._descend(obj)

    def import_doc(self, obj: Tree.Import) -> Any:
        self._descend(obj)

    def struct_typedef(self, obj: Tree.StructTypeDef) -> Any:
        self._descend(obj)

    def task(self, obj: Tree.Task) -> Any:
        self._descend(obj)

    def command(self, obj: Tree.Command) -> Any:
        self._descend(obj)

    def workflow(self, obj: Tree.Workflow) -> Any:
        self._descend(obj)

    def call(self, obj: Tree.Call) -> Any:
        self._descend(obj)

    def scatter(self, obj: Tree.Scatter) -> Any:
        self._descend(obj)

    def conditional(self, obj: Tree.Conditional) -> Any:
        self._descend(obj)

    def decl(self, obj: Tree.Decl) -> Any:
        self._descend(obj)

    def type(self, obj: Type.Base) -> Any:
        self._descend(obj)

    def expr(self, obj: Expr.Base) -> Any:
        self._descend(obj)

    def meta(self, obj: Meta.Base) -> Any:
        self._descend(obj)


class Multi(Base):
    """
    Multiplexes several walkers to run "concurrently" in one traversal of the
    AST, which will be more efficient than running them separately. This only
    works with ``auto_descend=True`` walkers.
    """

    _walkers: List[Base]

    def __init__(self, walkers: List[Base]) -> None:
        for w in walkers:
            assert w.auto_descend
        self._walkers = walkers
        super().__init__(auto_descend=True)

    def __call__(self, obj: Error.SourceNode, descend: Optional[bool] = None) -> Any:
        # each walker's own dispatch picks the method; Multi does the descending
        for w in self._walkers:
            w(obj, descend=False)
        if descend is None or descend:
            for ch in obj.children:
                self(ch)
