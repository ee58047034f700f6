import pytest

from bindquery.compiler.errors import MalformedTemplateError
from bindquery.compiler.expansion import expand
from bindquery.compiler.rebind import BindStyle, bind_style_for, rebind

SQL = "select * from t where a = ? and id in (?,?,?)"


@pytest.mark.parametrize(
    "style, expected",
    [
        (BindStyle.QMARK, "select * from t where a = ? and id in (?,?,?)"),
        (BindStyle.FORMAT, "select * from t where a = %s and id in (%s,%s,%s)"),
        (BindStyle.DOLLAR, "select * from t where a = $1 and id in ($2,$3,$4)"),
        (BindStyle.NUMERIC, "select * from t where a = :1 and id in (:2,:3,:4)"),
        (BindStyle.AT, "select * from t where a = @p1 and id in (@p2,@p3,@p4)"),
    ],
)
def test_rebind_styles(style, expected):
    assert rebind(SQL, style) == expected


def test_rebind_accepts_style_values():
    assert rebind("id = ?", "dollar") == "id = $1"


def test_rebind_after_expand_numbers_in_order():
    compiled = expand("a = ? and id in (?) and b = ?", [1, [2, 3], 4])

    assert rebind(compiled.sql, BindStyle.DOLLAR) == "a = $1 and id in ($2,$3) and b = $4"
    assert compiled.params == [1, 2, 3, 4]


@pytest.mark.parametrize("style", list(BindStyle))
def test_rebinding_a_rebound_statement_is_a_no_op(style):
    once = rebind(SQL, style)

    assert rebind(once, style) == once


PERCENT_SQL = "select id from users where name like 'A%' and id % 2 = 0 and id in (?,?)"


def test_rebind_format_doubles_literal_percent():
    rebound = rebind(PERCENT_SQL, BindStyle.FORMAT)

    assert rebound == "select id from users where name like 'A%%' and id %% 2 = 0 and id in (%s,%s)"


@pytest.mark.parametrize("style", [BindStyle.QMARK, BindStyle.DOLLAR, BindStyle.NUMERIC, BindStyle.AT])
def test_rebind_keeps_percent_for_other_styles(style):
    assert "like 'A%' and id % 2" in rebind(PERCENT_SQL, style)


def test_rebind_format_percent_escaping_can_be_turned_off():
    rebound = rebind(PERCENT_SQL, BindStyle.FORMAT, escape_percent=False)

    assert rebound == "select id from users where name like 'A%' and id % 2 = 0 and id in (%s,%s)"


def test_rebind_leaves_percent_alone_without_placeholders():
    assert rebind("select 7 % 2, 'A%' from t", BindStyle.FORMAT) == "select 7 % 2, 'A%' from t"


def test_rebinding_a_format_statement_with_percent_is_a_no_op():
    once = rebind(PERCENT_SQL, BindStyle.FORMAT)

    assert rebind(once, BindStyle.FORMAT) == once


def test_rebind_skips_placeholders_in_comments():
    sql = "select ? -- why?\nfrom t /* or ? */ where id = ?"

    assert rebind(sql, BindStyle.DOLLAR) == "select $1 -- why?\nfrom t /* or ? */ where id = $2"


def test_rebind_leaves_quoted_question_marks():
    assert rebind("select '?', ? from t", BindStyle.DOLLAR) == "select '?', $1 from t"


def test_rebind_rejects_unbalanced_quotes():
    with pytest.raises(MalformedTemplateError):
        rebind("select * from t where name = 'x and id = ?", BindStyle.DOLLAR)
    with pytest.raises(MalformedTemplateError):
        rebind("select `col from t", BindStyle.QMARK)


def test_bind_style_for_dialects():
    assert bind_style_for("sqlite") is BindStyle.QMARK
    assert bind_style_for("MySQL") is BindStyle.FORMAT
    assert bind_style_for("postgres") is BindStyle.FORMAT
    assert bind_style_for("mssql") is BindStyle.AT
    assert bind_style_for("oracle") is BindStyle.NUMERIC

    with pytest.raises(ValueError):
        bind_style_for("dbase")
