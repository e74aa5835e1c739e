"""Review and comment timeline compression."""

from __future__ import annotations

from models import Comment, CompressedEvent, Event, EventState, Review

# Review states that keep their own kind; every other spelling is a comment
_DISTINCT_REVIEW_STATES: frozenset[str] = frozenset({"APPROVED", "CHANGES_REQUESTED", "DISMISSED"})


def normalize_review_state(state: str) -> EventState:
    """Collapse 'COMMENTED', 'COMMENT', 'PENDING' and similar to COMMENTED."""
    upper = state.upper()
    if upper in _DISTINCT_REVIEW_STATES:
        return upper  # type: ignore[return-value]
    return "COMMENTED"


def to_events(reviews: list[Review], comments: list[Comment]) -> list[Event]:
    """
    Merge reviews and comments into one chronological event list.

    The sort is stable, so events with equal timestamps keep input order:
    reviews first, then comments.
    """
    events = [
        Event(created_at=r.created_at, author=r.author, state=normalize_review_state(r.state))
        for r in reviews
    ]
    events.extend(Event(created_at=c.created_at, author=c.author, state="COMMENTED") for c in comments)
    events.sort(key=lambda event: event.created_at)
    return events


def compress_events(events: list[Event]) -> list[CompressedEvent]:
    """
    Fold runs of adjacent events with the same author and state into one entry.

    Only adjacency matters: A, A, B, A compresses to A(2), B, A. There is no
    time window.
    """
    compressed: list[CompressedEvent] = []
    current: CompressedEvent | None = None

    for event in events:
        if current is not None and event.author == current.author and event.state == current.state:
            current = CompressedEvent(
                created_at=current.created_at,
                author=current.author,
                state=current.state,
                count=current.count + 1,
            )
            continue
        if current is not None:
            compressed.append(current)
        current = CompressedEvent(created_at=event.created_at, author=event.author, state=event.state)

    if current is not None:
        compressed.append(current)

    return compressed


def combine_reviews_and_comments(
    reviews: list[Review], comments: list[Comment]
) -> list[CompressedEvent]:
    """Build a pull request's compressed review/comment timeline."""
    return compress_events(to_events(reviews, comments))
