import math

import pytest

from frequency import FrequencyTable


def test_build_counts_present_symbols_only():
    table = FrequencyTable.build(b"abracadabra")
    assert table == {ord("a"): 5, ord("b"): 2, ord("r"): 2, ord("c"): 1, ord("d"): 1}
    assert ord("z") not in table
    assert table.total == 11


def test_build_empty_input():
    table = FrequencyTable.build(b"")
    assert len(table) == 0
    assert table.total == 0
    assert table.entropy() == 0.0


def test_iteration_is_in_symbol_order():
    table = FrequencyTable.build(b"zyxzyz")
    assert list(table) == [ord("x"), ord("y"), ord("z")]


def test_zero_counts_dropped_and_invalid_rejected():
    assert FrequencyTable({1: 0, 2: 3}) == {2: 3}
    with pytest.raises(ValueError):
        FrequencyTable({256: 1})
    with pytest.raises(ValueError):
        FrequencyTable({3: -1})


def test_entropy():
    assert FrequencyTable.build(b"aaaa").entropy() == 0.0
    assert FrequencyTable.build(b"abab").entropy() == pytest.approx(1.0)
    uniform = FrequencyTable.build(bytes(range(256)))
    assert uniform.entropy() == pytest.approx(8.0)
    skewed = FrequencyTable({0: 3, 1: 1})
    expected = -(0.75 * math.log2(0.75) + 0.25 * math.log2(0.25))
    assert skewed.entropy() == pytest.approx(expected)


def test_most_common_breaks_ties_by_symbol():
    table = FrequencyTable.build(b"ccbbad")
    assert table.most_common(3) == [(ord("b"), 2), (ord("c"), 2), (ord("a"), 1)]
    assert len(table.most_common(100)) == 4
