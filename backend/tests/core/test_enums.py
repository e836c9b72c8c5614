"""Tests for the booking status vocabulary."""

import pytest

from servicehub.core.enums import BookingStatus


def test_terminal_statuses():
    assert BookingStatus.terminal() == {BookingStatus.COMPLETE, BookingStatus.CANCEL}
    assert BookingStatus.COMPLETE.is_terminal
    assert not BookingStatus.PROCESS.is_terminal


def test_active_statuses_exclude_terminal():
    assert BookingStatus.active() == {
        BookingStatus.PENDING,
        BookingStatus.WAITING,
        BookingStatus.PROCESS,
        BookingStatus.REQUEST,
    }


@pytest.mark.parametrize("raw", ["pending", "Pending", " PENDING "])
def test_parse_normalises_input_once(raw):
    assert BookingStatus.parse(raw) is BookingStatus.PENDING


def test_parse_rejects_unknown_status():
    with pytest.raises(ValueError):
        BookingStatus.parse("accepted")


def test_values_are_lower_case():
    assert all(status.value == status.value.lower() for status in BookingStatus)
