import pytest

from election import ElectionClock


def test_unconfigured_clock_is_always_closed():
    clock = ElectionClock()
    assert (clock.start_time, clock.end_time) == (0.0, 0.0)
    for now in (-1.0, 0.0, 1.0, 1e12):
        assert not clock.is_open(now)


def test_configure_sets_window_from_now():
    clock = ElectionClock()
    window = clock.configure(2, now=1000.0)
    assert window.start_time == 1000.0
    assert window.end_time == 1000.0 + 7200
    assert clock.window == window


def test_window_is_exclusive_on_both_ends():
    clock = ElectionClock()
    clock.configure(1, now=1000.0)
    assert not clock.is_open(1000.0)
    assert clock.is_open(1000.5)
    assert clock.is_open(4599.0)
    assert not clock.is_open(4600.0)


def test_reconfigure_replaces_window():
    clock = ElectionClock()
    clock.configure(1, now=1000.0)
    clock.configure(1, now=10_000.0)
    assert not clock.is_open(2000.0)
    assert clock.is_open(10_001.0)


def test_fractional_hours():
    clock = ElectionClock()
    clock.configure(0.5, now=0.0)
    assert clock.end_time == 1800.0


@pytest.mark.parametrize("hours", [0, -1])
def test_non_positive_duration_rejected(hours):
    clock = ElectionClock()
    with pytest.raises(ValueError):
        clock.configure(hours, now=1000.0)
    assert not clock.window.configured


def test_remaining():
    clock = ElectionClock()
    clock.configure(1, now=1000.0)
    assert clock.remaining(1600.0) == 3000.0
    assert clock.remaining(5000.0) == 0.0
