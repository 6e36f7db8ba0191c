import pytest

from mcp_roll.errors import BadExpression, BadInteger, DegenerateExpression, DiceError, ParseError
from mcp_roll.parser import ExpressionParser, parse_expression


@pytest.mark.parametrize(
    ("text", "error", "prefix"),
    [
        ("x", BadExpression, "[BAD_EXPRESSION]"),
        ("", BadExpression, "[BAD_EXPRESSION]"),
        ("d", BadExpression, "[BAD_EXPRESSION]"),
        (" 2d6", BadExpression, "[BAD_EXPRESSION]"),
        ("0d6", BadExpression, "[BAD_EXPRESSION]"),
        ("d0", BadExpression, "[BAD_EXPRESSION]"),
        ("99999999999", BadInteger, "[BAD_INTEGER]"),
        ("99999999999d6", BadInteger, "[BAD_INTEGER]"),
        ("2d6+99999999999", BadInteger, "[BAD_INTEGER]"),
        ("2d6r99999999999", BadInteger, "[BAD_INTEGER]"),
        ("2d6!99999999999", BadInteger, "[BAD_INTEGER]"),
    ],
)
def test_parse_rejections(text, error, prefix):
    with pytest.raises(error) as exc:
        parse_expression(text)
    assert str(exc.value).startswith(prefix)
    assert isinstance(exc.value, ParseError)
    assert isinstance(exc.value, DiceError)


def test_bad_integer_keeps_captured_text_and_cause():
    with pytest.raises(BadInteger) as exc:
        parse_expression("2d99999999999")
    assert exc.value.text == "99999999999"
    assert isinstance(exc.value.cause, OverflowError)
    assert exc.value.__cause__ is exc.value.cause


def test_bad_expression_keeps_original_text():
    with pytest.raises(BadExpression) as exc:
        parse_expression("fireball")
    assert exc.value.text == "fireball"


@pytest.mark.parametrize("text", ["d6r6", "d6r7", "2d6!1", "2d6r3!4", "d1!"])
def test_strict_parser_rejects_degenerate_expressions(text):
    with pytest.raises(DegenerateExpression) as exc:
        ExpressionParser(strict=True).parse(text)
    assert str(exc.value).startswith("[DEGENERATE_EXPRESSION]")
    assert exc.value.expression == parse_expression(text)


def test_lenient_parser_keeps_degenerate_expressions():
    expression = parse_expression("d6r6")
    assert expression.reroll == 6
    assert not expression.terminates
