"""
Review session sequencer.

Drives one study pass over a fixed queue of due items:
Loading -> Active(cursor, queue) -> Finished

The queue is snapshotted on load. Items that become due later, or that
are failed during the session, are not re-queued; they come back in a
future session once next_review_at is reached again.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from spacedeck.application.scheduler import commit, preview_intervals, preview_labels
from spacedeck.domain.errors import SessionStateError
from spacedeck.domain.scheduling.models import (
    Rating,
    ReviewItem,
    SchedulingPolicy,
    SchedulingState,
)
from spacedeck.domain.scheduling.ports import SchedulingStateRepository

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class RevealedCard:
    """Answer side of the current item plus the projected interval per rating."""

    item: ReviewItem
    answer: str
    intervals: dict[Rating, int]
    labels: dict[Rating, str]


@dataclass
class RateOutcome:
    """
    Result of rating one item.

    persisted is False when storage rejected the write; the session has
    advanced anyway and the state should be retried out-of-band.
    """

    item_id: str
    rating: Rating
    new_state: SchedulingState
    persisted: bool = True
    error: Exception | None = field(default=None, compare=False)


def select_due(items: Iterable[ReviewItem], now: datetime) -> list[ReviewItem]:
    """Items whose next_review_at has passed, in input order."""
    return [item for item in items if item.state.is_due(now)]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReviewSession:
    """
    Finite-state sequencer for a single review pass.

    Finished is terminal; start a new ReviewSession to review again.
    """

    def __init__(
        self,
        policy: SchedulingPolicy,
        state_repo: SchedulingStateRepository,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            policy: The user's active scheduling policy.
            state_repo: Port that persists committed states.
            clock: Returns the current time; defaults to UTC now.
        """
        self._policy = policy
        self._repo = state_repo
        self._clock = clock or _utcnow

        self._status = SessionStatus.LOADING
        self._queue: tuple[ReviewItem, ...] = ()
        self._cursor = 0
        self._revealed = False
        self.outcomes: list[RateOutcome] = []

    # -- state -------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def queue(self) -> tuple[ReviewItem, ...]:
        return self._queue

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def is_revealed(self) -> bool:
        return self._revealed

    @property
    def current(self) -> ReviewItem | None:
        if self._status is not SessionStatus.ACTIVE:
            return None
        return self._queue[self._cursor]

    @property
    def failed_outcomes(self) -> list[RateOutcome]:
        """Ratings whose state could not be persisted."""
        return [o for o in self.outcomes if not o.persisted]

    def _require(self, status: SessionStatus, action: str) -> None:
        if self._status is not status:
            raise SessionStateError(f"Cannot {action} while session is {self._status.value}")

    # -- transitions -------------------------------------------------------

    def load(self, items: Iterable[ReviewItem]) -> SessionStatus:
        """
        Snapshot the due items and enter Active, or Finished if none are due.
        """
        self._require(SessionStatus.LOADING, "load")
        self._queue = tuple(select_due(items, self._clock()))
        self._cursor = 0
        self._revealed = False

        if self._queue:
            self._status = SessionStatus.ACTIVE
            logger.info(f"Review session started with {len(self._queue)} due items")
        else:
            self._status = SessionStatus.FINISHED
            logger.info("No items due, review session finished")
        return self._status

    def reveal(self) -> RevealedCard:
        """Show the current item's answer and the interval each rating would give."""
        self._require(SessionStatus.ACTIVE, "reveal")
        item = self._queue[self._cursor]
        self._revealed = True
        return RevealedCard(
            item=item,
            answer=item.back,
            intervals=preview_intervals(item.state, self._policy),
            labels=preview_labels(item.state, self._policy),
        )

    async def rate(self, rating: Rating | int | str) -> RateOutcome:
        """
        Commit a rating for the current item, persist it, and advance.

        The cursor advances even when persistence fails; the failure is
        recorded on the returned outcome and in failed_outcomes.

        Raises:
            SessionStateError: if not Active or the answer was not revealed.
            InvalidRatingError: if rating is not admissible; nothing is committed.
        """
        self._require(SessionStatus.ACTIVE, "rate")
        if not self._revealed:
            raise SessionStateError("Cannot rate before the answer is revealed")
        rating = Rating.parse(rating)

        item = self._queue[self._cursor]
        new_state = commit(item.state, self._policy, rating, now=self._clock())
        self._revealed = False

        outcome = RateOutcome(item_id=item.item_id, rating=rating, new_state=new_state)
        try:
            await self._repo.save_state(item.item_id, new_state)
        except Exception as e:
            logger.warning(f"Failed to persist state for {item.item_id}: {e}")
            outcome.persisted = False
            outcome.error = e

        self.outcomes.append(outcome)
        self._step_forward()
        return outcome

    def advance(self) -> SessionStatus:
        """Move to the next item without rating; past the last item the session finishes."""
        self._require(SessionStatus.ACTIVE, "advance")
        self._step_forward()
        return self._status

    def back(self) -> bool:
        """
        Move to the previous item without rating.

        Returns:
            False if already at the first item.
        """
        self._require(SessionStatus.ACTIVE, "go back")
        if self._cursor == 0:
            return False
        self._cursor -= 1
        self._revealed = False
        return True

    def _step_forward(self) -> None:
        self._revealed = False
        if self._cursor >= len(self._queue) - 1:
            self._status = SessionStatus.FINISHED
            logger.info(f"Review session finished, {len(self.outcomes)} items rated")
        else:
            self._cursor += 1
