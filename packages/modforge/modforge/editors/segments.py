"""Helpers for comma-separated text segments that keep their own whitespace."""

from __future__ import annotations


def leading_whitespace(segment: str) -> str:
    return segment[: len(segment) - len(segment.lstrip())]


def trailing_whitespace(segment: str) -> str:
    return segment[len(segment.rstrip()) :]


def drop_segment(segments: list[str], index: int) -> None:
    """Remove one item in place, handing its outer whitespace to its neighbour.

    Dropping the first item keeps the list's leading whitespace, dropping the
    last keeps its trailing whitespace, so the text around the list does not
    drift.
    """
    segment = segments[index]
    leading = leading_whitespace(segment)
    trailing = trailing_whitespace(segment)
    if len(segments) == 1:
        segments[0] = leading + trailing
        return
    del segments[index]
    if index == 0:
        segments[0] = leading + segments[0].lstrip()
    elif index == len(segments):
        segments[-1] = segments[-1].rstrip() + trailing
