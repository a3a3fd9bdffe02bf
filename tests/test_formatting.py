import pytest

from app.services.formatting import round_money, percentage


@pytest.mark.parametrize(
    "value,expected",
    [
        (0, 0),
        (19.999, 20.0),
        (10.125, 10.13),
        (0.125, 0.13),
        (100, 100.0),
        (33.3333, 33.33),
    ],
)
def test_round_money_half_up(value, expected):
    assert round_money(value) == expected


def test_percentage():
    assert percentage(1, 3) == 33.33
    assert percentage(2, 3) == 66.67
    assert percentage(50, 50) == 100.0


def test_percentage_of_zero_whole_is_zero():
    assert percentage(5, 0) == 0
    assert percentage(0, 0) == 0
