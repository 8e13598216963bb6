"""Comparison recording for DiveRank.

Resolves one vote exactly once: duplicate check, Elo delta, history append
and both rating/counter updates commit together or not at all.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from diverank.core.errors import (
    DuplicateComparisonError,
    SameItemComparisonError,
    StaleRatingError,
    UnknownItemError,
)
from diverank.models import Comparison, DiveSite, pair_key
from diverank.services.storage import ComparisonRepository, DiveSiteRepository

if TYPE_CHECKING:
    from diverank.ranking import RatingModel
    from diverank.services.storage import DiveRankStore

logger = structlog.get_logger()


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "comparison_retry",
        attempt=retry_state.attempt_number,
        error=type(error).__name__ if error else None,
    )


class MatchRecorder:
    """Record resolved comparisons and apply their rating changes.

    Write conflicts reported by the store and concurrent changes to either
    site are retried from scratch. Each attempt re-runs the duplicate check,
    so a retried submission either commits once or fails with
    DuplicateComparisonError.
    """

    def __init__(
        self,
        store: DiveRankStore,
        model: RatingModel,
        max_attempts: int = 5,
    ) -> None:
        """Initialize match recorder.

        Args:
            store: Storage layer holding sites and comparisons.
            model: Rating model used to compute the delta.
            max_attempts: Attempts before a transient conflict is surfaced.
        """
        self._store = store
        self._model = model
        self.max_attempts = max_attempts

    async def record(
        self,
        winner_id: int,
        loser_id: int,
        actor_id: str | None = None,
    ) -> Comparison:
        """Resolve a comparison between two sites.

        Args:
            winner_id: Id of the chosen site.
            loser_id: Id of the other site.
            actor_id: Opaque actor id, None for anonymous votes.

        Returns:
            The persisted comparison, including id, delta and timestamp.

        Raises:
            SameItemComparisonError: winner_id equals loser_id.
            UnknownItemError: Either site does not exist.
            DuplicateComparisonError: The actor already voted on this pair.
        """
        if winner_id == loser_id:
            raise SameItemComparisonError(winner_id)

        key = pair_key(winner_id, loser_id)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_random_exponential(multiplier=0.05, max=1.0),
            retry=retry_if_exception_type((StaleRatingError, OperationalError)),
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    comparison = await self._store.run_session(
                        lambda session: self._resolve(session, winner_id, loser_id, actor_id, key)
                    )
        except DuplicateComparisonError:
            logger.info("duplicate_comparison", actor=actor_id, pair=key)
            raise

        logger.info(
            "comparison_recorded",
            id=comparison.id,
            winner=winner_id,
            loser=loser_id,
            points=comparison.points_changed,
            actor=actor_id,
        )
        return comparison

    def _resolve(
        self,
        session: Session,
        winner_id: int,
        loser_id: int,
        actor_id: str | None,
        key: str,
    ) -> Comparison:
        """One attempt at the whole unit of work, in a single transaction."""
        winner = session.get(DiveSite, winner_id)
        loser = session.get(DiveSite, loser_id)
        missing = [
            site_id for site_id, site in ((winner_id, winner), (loser_id, loser)) if site is None
        ]
        if missing:
            raise UnknownItemError(missing)

        if actor_id is not None and ComparisonRepository.has_voted_in(session, actor_id, key):
            raise DuplicateComparisonError(actor_id, key)

        update = self._model.update(winner.rating, loser.rating)

        try:
            comparison = ComparisonRepository.append(
                session, winner_id, loser_id, update.points_changed, actor_id
            )
            applied = DiveSiteRepository.update_rating_and_counter(
                session, winner, update.winner_rating, won=True
            ) and DiveSiteRepository.update_rating_and_counter(
                session, loser, update.loser_rating, won=False
            )
            if not applied:
                session.rollback()
                msg = f"Dive site {winner_id} or {loser_id} changed during comparison"
                raise StaleRatingError(msg)
            session.commit()
        except IntegrityError as e:
            session.rollback()
            if actor_id is None:
                raise
            # The (actor, pair) unique constraint lost a race with another submission
            if ComparisonRepository.has_voted_in(session, actor_id, key):
                raise DuplicateComparisonError(actor_id, key) from None
            msg = f"Competing vote on {key} by {actor_id} not yet committed"
            raise StaleRatingError(msg) from e

        return comparison
