"""Report game results for the logged-in player."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from client.api import PlayerView, ServiceResult
    from client.session import PlayerSession

logger = structlog.get_logger()


class OutcomeReporter:
    """Apply a game result to the mirror, then push the new totals to the service.

    The mirror is updated first and left as is when the call fails; the next
    successful refresh brings it back in line with the service. Calls are
    never retried.
    """

    def __init__(self, session: PlayerSession) -> None:
        self._session = session

    async def report_outcome(self, won: bool) -> ServiceResult[PlayerView]:  # noqa: FBT001
        session = self._session
        if not session.logged_in or session.handle is None:
            raise RuntimeError("No player is logged in")

        totals = session.mirror.apply_outcome(session.handle, won=won)
        result = await session.push_totals(score=totals.score, wins=totals.wins, losses=totals.losses)
        if not result.success:
            logger.warning(
                "outcome not saved by player service",
                handle=session.handle,
                won=won,
                status_code=result.status_code,
                message=result.message,
            )
        return result
