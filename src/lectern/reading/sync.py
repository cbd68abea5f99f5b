"""Reading position reconciliation driven by device heartbeats.

Each (user, book) pair has at most one progress row. The device that last
wrote it owns it: heartbeats from that device move the position and accrue
reading time, heartbeats from any other device are answered with the stored
state so the client can jump to it. Nothing is merged.

Time only accrues for gaps shorter than the heartbeat window, so a device
that slept or was backgrounded does not inflate the counters. Duplicate
heartbeats are not detected: two reports from the same device inside the
window each add their own elapsed time.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from lectern.library.access import require_readable
from lectern.library.database import Database
from lectern.library.models import HeartbeatRequest, HeartbeatResponse, ReadingProgress

log = logging.getLogger(__name__)

HEARTBEAT_WINDOW_SECONDS = 30


class PositionSync:
    def __init__(
        self, db: Database, window_seconds: int = HEARTBEAT_WINDOW_SECONDS
    ) -> None:
        self._db = db
        self._window = window_seconds

    @property
    def window_seconds(self) -> int:
        return self._window

    def elapsed_credit(self, last_read_at: Optional[float], now: float) -> int:
        """Seconds to add for a heartbeat arriving at ``now``."""
        if last_read_at is None:
            return 0
        elapsed = int(now - last_read_at)
        if 0 < elapsed < self._window:
            return elapsed
        return 0

    def ensure_progress(self, user_id: int, book_id: int) -> ReadingProgress:
        """Return the progress row, creating an unowned one if missing."""
        progress = self._db.get_progress(user_id, book_id)
        if progress is None:
            progress = ReadingProgress(user_id=user_id, book_id=book_id)
            self._db.put_progress(progress)
            log.debug("created progress for user %s book %s", user_id, book_id)
        return progress

    def heartbeat(
        self, user_id: int, request: HeartbeatRequest, now: Optional[float] = None
    ) -> HeartbeatResponse:
        require_readable(self._db, user_id, request.book_id)
        if now is None:
            now = time.time()

        stored = self._db.get_progress(user_id, request.book_id)
        if stored is None:
            self._db.put_progress(
                ReadingProgress(
                    user_id=user_id,
                    book_id=request.book_id,
                    position=request.position,
                    last_read_at=now,
                    last_device_id=request.device_id,
                )
            )
            log.debug(
                "first heartbeat user=%s book=%s device=%s",
                user_id,
                request.book_id,
                request.device_id,
            )
            return HeartbeatResponse(
                synced=True, position=request.position, reading_time=0
            )

        # Rows created by a detail view have no owner; a device must
        # take_over before its heartbeats are accepted.
        if stored.last_device_id != request.device_id:
            log.debug(
                "heartbeat from %s rejected, book %s owned by %s",
                request.device_id,
                request.book_id,
                stored.last_device_id,
            )
            return HeartbeatResponse(
                synced=False, position=stored.position, reading_time=stored.reading_time
            )

        credit = self.elapsed_credit(stored.last_read_at, now)
        stored.position = request.position
        stored.reading_time += credit
        stored.last_read_at = now
        stored.last_device_id = request.device_id
        self._db.put_progress(stored)
        if credit:
            self._db.increment_user_reading_time(user_id, credit)

        return HeartbeatResponse(
            synced=True, position=stored.position, reading_time=stored.reading_time
        )

    def take_over(
        self,
        user_id: int,
        book_id: int,
        device_id: str,
        now: Optional[float] = None,
    ) -> HeartbeatResponse:
        """Make ``device_id`` the owner, keeping the stored position and time.

        The caller adopts the returned position; the next heartbeat from the
        new owner starts accruing time again.
        """
        require_readable(self._db, user_id, book_id)
        if now is None:
            now = time.time()

        progress = self.ensure_progress(user_id, book_id)
        previous = progress.last_device_id
        progress.last_device_id = device_id
        progress.last_read_at = now
        self._db.put_progress(progress)
        log.info(
            "book %s for user %s handed from %s to %s",
            book_id,
            user_id,
            previous,
            device_id,
        )
        return HeartbeatResponse(
            synced=True, position=progress.position, reading_time=progress.reading_time
        )
