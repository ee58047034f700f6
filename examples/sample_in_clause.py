"""
Shows what the statement builder produces, without touching a database.

Run:
    poetry run python examples/sample_in_clause.py
"""

from bindquery.abstract_syntax_tree.models import ListNode, ScalarNode, StatementNode
from bindquery.compiler import BindStyle, StatementCompiler, bind_named, build_ordered_in_query, expand, rebind


def main() -> None:
    ids = [21, 30, 22, 32, 23, 33]

    expanded = expand("SELECT name, age FROM users WHERE age > ? AND id IN (?)", [18, ids])
    print(expanded.sql)
    print(expanded.params)

    print(rebind(expanded.sql, BindStyle.DOLLAR))
    print(rebind(expanded.sql, BindStyle.AT))

    ordered = build_ordered_in_query("SELECT name, age FROM users", "id", ids, "mysql")
    print(ordered.sql)
    print(ordered.params)

    named = bind_named("SELECT * FROM users WHERE name = :name OR id IN (:ids)", {"name": "Alice", "ids": ids})
    print(named)

    compiled = StatementCompiler(BindStyle.FORMAT).compile(
        StatementNode("UPDATE users SET age = ? WHERE id IN (?)", [ScalarNode(2), ListNode((21, 28))])
    )
    print(compiled)


if __name__ == "__main__":
    main()
