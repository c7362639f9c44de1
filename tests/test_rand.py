from itertools import islice

import pytest

from minicore.rand import ParkMiller


def test_first_value_from_seed_one():
    assert ParkMiller(1).next() == 33613


def test_minimal_standard_check_value():
    gen = ParkMiller(0)
    for _ in range(10000):
        value = gen.next()
    assert value == 1043618064


def test_values_stay_in_range():
    for seed in (0, 1, 31, 7177, 0x7FFFFFFD, 2**63):
        gen = ParkMiller(seed)
        for value in islice(gen, 200):
            assert 0 <= value <= 0x7FFFFFFD


def test_iteration_matches_next():
    a = ParkMiller(7)
    b = ParkMiller(7)
    assert list(islice(a, 5)) == [b.next() for _ in range(5)]


def test_value_is_the_new_state():
    gen = ParkMiller(42)
    value = gen.next()
    assert gen.state == value
    assert ParkMiller(value).next() == gen.next()


def test_seed_wraps_modulo():
    assert ParkMiller(0x7FFFFFFE).next() == ParkMiller(0).next()


def test_different_seeds_differ():
    a = list(islice(ParkMiller(1 ^ 31), 10))
    b = list(islice(ParkMiller(1 ^ 7177), 10))
    assert a != b
    assert len(set(a)) == 10


def test_negative_seed_rejected():
    with pytest.raises(ValueError):
        ParkMiller(-1)