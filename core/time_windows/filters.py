"""
Time Segment Utilities

Set operations over lists of TimeSegment: union, difference, totals.
"""

from typing import Iterable, List

from .models import TimeSegment


def merge_adjacent_segments(segments: Iterable[TimeSegment], gap_tolerance_minutes: float = 0) -> List[TimeSegment]:
    """
    Merge adjacent or overlapping time segments.

    Overlapping cooking cycles must only be counted once, so every total
    is taken over the merged union.

    Args:
        segments: TimeSegment objects in any order
        gap_tolerance_minutes: Maximum gap between segments to merge (default 0)

    Returns:
        Sorted list of non-overlapping TimeSegment objects

    Example:
        >>> merged = merge_adjacent_segments(segments, gap_tolerance_minutes=30)
    """
    sorted_segments = sorted(
        (s for s in segments if not s.is_empty),
        key=lambda s: s.start
    )
    if not sorted_segments:
        return []

    merged = [sorted_segments[0]]

    for current in sorted_segments[1:]:
        previous = merged[-1]

        gap_minutes = (current.start - previous.end).total_seconds() / 60.0

        if gap_minutes <= gap_tolerance_minutes:
            merged[-1] = TimeSegment(
                start=previous.start,
                end=max(previous.end, current.end),
                description=previous.description
            )
        else:
            merged.append(current)

    return merged


def subtract_segments(base: Iterable[TimeSegment], removals: Iterable[TimeSegment]) -> List[TimeSegment]:
    """
    Remove every part of `base` covered by `removals`.

    Partial overlaps are clamped: a removal that starts before a base
    segment or ends after it only removes the overlapping part.

    Args:
        base: Segments to keep
        removals: Segments to cut out

    Returns:
        Sorted, merged list of the remaining segments
    """
    remaining = merge_adjacent_segments(base)
    cuts = merge_adjacent_segments(removals)

    for cut in cuts:
        next_remaining = []
        for segment in remaining:
            if not segment.overlaps_with(cut):
                next_remaining.append(segment)
                continue
            if segment.start < cut.start:
                next_remaining.append(TimeSegment(segment.start, cut.start, segment.description))
            if cut.end < segment.end:
                next_remaining.append(TimeSegment(cut.end, segment.end, segment.description))
        remaining = next_remaining

    return remaining


def intersect_segments(first: Iterable[TimeSegment], second: Iterable[TimeSegment]) -> List[TimeSegment]:
    """
    Return the parts of `second` that fall inside `first`.

    Descriptions are taken from `second`.
    """
    left = merge_adjacent_segments(first)
    right = merge_adjacent_segments(second)

    overlaps = []
    for segment in right:
        for window in left:
            overlap = segment.intersection(window)
            if overlap is not None and not overlap.is_empty:
                overlaps.append(overlap)

    return sorted(overlaps, key=lambda s: s.start)


def total_duration_minutes(segments: Iterable[TimeSegment]) -> float:
    """Calculate total time across all segments in minutes"""
    return sum(seg.duration_minutes for seg in segments)
