from bindquery.abstract_syntax_tree.models import ASTNode, NamedStatementNode, StatementNode
from bindquery.compiler.compiled_query import CompiledQuery
from bindquery.compiler.expansion import expand
from bindquery.compiler.named import bind_named
from bindquery.compiler.rebind import BindStyle, bind_style_for, rebind
from bindquery.traversal.visitor_pattern import Visitor

# ==================================================
# Statement Compiler
# ==================================================

# mysql-connector substitutes '%s' tokens only and sends '%%' through as written.
_MYSQL_DIALECTS = frozenset({"mysql", "mariadb"})


class StatementCompiler(Visitor):
    """
    A visitor that compiles statement nodes into a driver-ready query:
    expand list arguments, then rebind placeholders into the driver's style.

    escape_percent is passed on to rebind (None keeps the per-style default);
    backslash_escapes makes the scanner accept MySQL's '\\'' string escapes.
    """

    def __init__(
        self,
        bind_style: BindStyle = BindStyle.QMARK,
        *,
        escape_percent: bool | None = None,
        backslash_escapes: bool = False,
    ) -> None:
        self.bind_style = BindStyle(bind_style)
        self.escape_percent = escape_percent
        self.backslash_escapes = backslash_escapes

    @classmethod
    def for_dialect(cls, dialect: str) -> "StatementCompiler":
        if dialect.strip().lower() in _MYSQL_DIALECTS:
            return cls(bind_style_for(dialect), escape_percent=False, backslash_escapes=True)
        return cls(bind_style_for(dialect))

    def compile(self, node: ASTNode) -> CompiledQuery:
        """
        The main entry point for compiling a statement node.
        """
        return self.finalize(self.visit(node))

    def finalize(self, compiled: CompiledQuery) -> CompiledQuery:
        """
        Rebinds an already expanded query (generic '?' syntax) into the driver's style.
        """
        sql = rebind(
            compiled.sql,
            self.bind_style,
            escape_percent=self.escape_percent,
            backslash_escapes=self.backslash_escapes,
        )
        return CompiledQuery(sql=sql, params=list(compiled.params))

    def visit_StatementNode(self, node: StatementNode) -> CompiledQuery:
        return expand(node.template, node.args, backslash_escapes=self.backslash_escapes)

    def visit_NamedStatementNode(self, node: NamedStatementNode) -> CompiledQuery:
        source = node.source if node.source is not None else {}
        return bind_named(node.template, source, backslash_escapes=self.backslash_escapes)
