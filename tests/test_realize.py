import random

import pytest

from mcp_roll.dice import realize
from mcp_roll.models import Highlight, RealizedExpression
from mcp_roll.parser import parse_expression
from mcp_roll.realizer import RandomRealizer, SequenceRealizer


def roll(text, draws):
    realizer = SequenceRealizer(draws)
    return realize(parse_expression(text), realizer)


@pytest.mark.parametrize(
    ("text", "draws", "total"),
    [
        ("2d6", [2, 3], 5),
        ("a20", [2, 20], 20),
        ("s20", [20, 2], 2),
        ("2d6r2", [2, 3, 5], 8),
        ("2d6!5", [3, 5, 2], 10),
        ("2d6r2!5", [1, 2, 5, 6, 3, 4], 18),
        ("a2d6r!5", [1, 5, 3, 2], 10),
        ("s2d6re5", [1, 5, 3, 2], 5),
        ("2d6+3", [1, 1], 5),
    ],
)
def test_realize_totals(text, draws, total):
    assert roll(text, draws).sum() == total


def test_rerolled_values_are_not_stored():
    result = roll("2d6r2", [2, 3, 5])
    assert result.values == (3, 5)


def test_exploded_values_follow_their_trigger():
    result = roll("2d6!5", [3, 5, 2])
    assert result.values == (3, 5, 2)


def test_exploded_value_is_rerolled_before_storage():
    # 6 explodes, the follow-up 1 is rerolled into 4.
    result = roll("d6r!", [6, 1, 4])
    assert result.values == (6, 4)


def test_advantage_applies_to_first_die_only():
    # First die: max(1, 2). Second die: a single draw of 1, not max(1, 6).
    result = roll("a2d6", [1, 2, 1, 6])
    assert result.values == (2, 1)


def test_disadvantage_applies_to_first_die_only():
    result = roll("s2d6", [5, 3, 6])
    assert result.values == (3, 6)


def test_results_are_highlighted_by_value():
    result = roll("3d6!", [1, 6, 6, 3, 4])
    assert list(result.results()) == [
        (Highlight.LOW, 1),
        (Highlight.HIGH, 6),
        (Highlight.HIGH, 6),
        (Highlight.NORMAL, 3),
        (Highlight.NORMAL, 4),
    ]


def test_results_can_be_iterated_again():
    result = roll("2d6", [1, 6])
    assert list(result.results()) == list(result.results())


def test_modifier_is_carried_over():
    result = roll("d20-2", [10])
    assert result.modifier == -2
    assert result.sides == 20
    assert result.sum() == 8


@pytest.mark.parametrize(
    ("text", "draws", "critical"),
    [
        ("d20", [20], True),
        ("d20+5", [20], True),
        ("a20", [3, 20], True),
        ("d20", [19], False),
        ("2d6", [6, 6], False),
        ("d6!", [6, 2], False),
    ],
)
def test_is_critical(text, draws, critical):
    assert roll(text, draws).is_critical() is critical


def test_highlight_low_wins_on_one_sided_die():
    result = RealizedExpression(values=(1,), sides=1)
    assert list(result.results()) == [(Highlight.LOW, 1)]


@pytest.mark.parametrize("text", ["2d6", "4d6r2!5", "a20+3", "s3d8r3", "10d4!4", "d2r1"])
def test_realize_terminates_and_stays_in_range(text):
    expression = parse_expression(text)
    realizer = RandomRealizer(random.Random(1234))

    for _ in range(200):
        result = realize(expression, realizer)
        assert len(result.values) >= expression.count
        for value in result.values:
            assert 1 <= value <= expression.sides
            assert not expression.should_reroll(value)
