"""
Review scheduler for flashcards.

A self-rated recall quality (hard, medium, easy) overwrites the card's
difficulty and pushes its next review out by a matching number of days:

    hard   -> difficulty 1, review again in 1 day
    medium -> difficulty 2, review again in 2 days
    easy   -> difficulty 3, review again in 3 days

The interval grows linearly with the rating and does not accumulate across
reviews. Nothing here touches the database; callers persist the result.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Optional

from studyflow.core.exceptions import InvalidQualityError
from studyflow.utils.time_utils import utcnow


class Quality(IntEnum):
    """Self-rating after seeing a card's answer; higher means better recall."""
    HARD = 1
    MEDIUM = 2
    EASY = 3


# Days until the next review for each rating
REVIEW_INTERVAL_DAYS = {
    Quality.HARD: 1,
    Quality.MEDIUM: 2,
    Quality.EASY: 3,
}

# Cards rated easy on their latest review count as mastered
MASTERY_THRESHOLD = int(Quality.EASY)


@dataclass(frozen=True)
class ReviewResult:
    """New review state for a card after one answer."""
    difficulty: int
    last_reviewed: datetime
    next_review: datetime


def parse_quality(value) -> Quality:
    """
    Coerce a rating into a Quality.

    Accepts a Quality, the integers 1-3, or the labels 'hard', 'medium' and
    'easy' (any case).

    Raises:
        InvalidQualityError: for anything else, including booleans
    """
    if isinstance(value, Quality):
        return value
    if isinstance(value, bool):
        raise InvalidQualityError(value)
    if isinstance(value, int):
        try:
            return Quality(value)
        except ValueError:
            raise InvalidQualityError(value) from None
    if isinstance(value, str):
        try:
            return Quality[value.strip().upper()]
        except KeyError:
            raise InvalidQualityError(value) from None
    raise InvalidQualityError(value)


def schedule(card, quality, now: Optional[datetime] = None) -> ReviewResult:
    """
    Compute a card's review state after it was answered with `quality`.

    The card's previous difficulty is not used: the latest rating replaces
    it, and a card that was never reviewed is scheduled the same way as one
    with history. Identical inputs always give identical results.

    Args:
        card: Card being answered (anything with a `difficulty` attribute)
        quality: Rating accepted by parse_quality
        now: Time of the answer (defaults to current UTC time)

    Returns:
        ReviewResult with the new difficulty, last_reviewed and next_review

    Raises:
        InvalidQualityError: If quality is not hard, medium or easy
    """
    rating = parse_quality(quality)
    if now is None:
        now = utcnow()

    return ReviewResult(
        difficulty=int(rating),
        last_reviewed=now,
        next_review=now + timedelta(days=REVIEW_INTERVAL_DAYS[rating]),
    )


def is_due(card, now: Optional[datetime] = None) -> bool:
    """A card is due when it was never reviewed or its next review time has passed."""
    if card.next_review is None:
        return True
    if now is None:
        now = utcnow()
    return card.next_review <= now


def is_mastered(card) -> bool:
    return (card.difficulty or 0) >= MASTERY_THRESHOLD
