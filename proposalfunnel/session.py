from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, MutableMapping

from .config import get_settings
from .report.export import ReportExporter
from .report.sample import sample_report_input
from .types import ReportInput


logger = logging.getLogger(__name__)

REPORT_SESSION_KEY = 'aiReportData'


def store_report_input(bucket: MutableMapping[str, str], report_input: ReportInput) -> None:
    bucket[REPORT_SESSION_KEY] = json.dumps(report_input.wire_payload(), ensure_ascii=False)


def read_report_input(bucket: MutableMapping[str, str]) -> ReportInput | None:
    raw = bucket.get(REPORT_SESSION_KEY)
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.warning('Failed to parse cached report data: %s', exc)
        return None
    if not isinstance(payload, dict) or not payload.get('analysis'):
        logger.warning("Cached report data missing 'analysis' property")
        return None
    try:
        return ReportInput.model_validate(payload)
    except Exception as exc:
        logger.warning('Cached report data is not a valid report input: %s', exc)
        return None


async def resolve_report_input(
    bucket: MutableMapping[str, str],
    *,
    fallback_delay: float | None = None,
) -> ReportInput:
    """Return the cached report input, or the canned example after a short delay."""
    cached = read_report_input(bucket)
    if cached is not None:
        return cached

    delay = get_settings().fallback_delay_seconds if fallback_delay is None else fallback_delay
    logger.info('No valid session data found, falling back to the sample report in %.1fs', delay)
    if delay > 0:
        await asyncio.sleep(delay)
    return sample_report_input()


@dataclass
class ReportSession:
    session_id: str
    bucket: dict[str, str] = field(default_factory=dict)
    exporter: ReportExporter = field(default_factory=ReportExporter)
    last_seen: float = 0.0


class SessionStore:
    """In-memory per-visitor buckets; contents do not survive a restart.

    Sessions idle for longer than ``ttl_seconds`` are evicted, and the oldest
    idle ones go first once ``max_sessions`` is reached. A session with an
    export in flight is never evicted.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 3600.0,
        max_sessions: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._lock = threading.RLock()
        self._sessions: dict[str, ReportSession] = {}

    def get(self, session_id: str | None) -> ReportSession | None:
        if not session_id:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            now = self._clock()
            if now - session.last_seen > self.ttl_seconds and not session.exporter.exporting:
                self.discard(session_id)
                return None
            session.last_seen = now
            return session

    def get_or_create(self, session_id: str | None = None) -> ReportSession:
        with self._lock:
            existing = self.get(session_id)
            if existing is not None:
                return existing
            self.prune()
            new_id = uuid.uuid4().hex
            session = ReportSession(session_id=new_id, last_seen=self._clock())
            self._sessions[new_id] = session
            return session

    def store(self, session_id: str | None, payload: Any) -> ReportSession:
        report_input = payload if isinstance(payload, ReportInput) else ReportInput.model_validate(payload)
        with self._lock:
            session = self.get_or_create(session_id)
            store_report_input(session.bucket, report_input)
        return session

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def prune(self) -> int:
        """Evict expired sessions and make room for one more; returns how many were dropped."""
        with self._lock:
            now = self._clock()
            idle = sorted(
                (session for session in self._sessions.values() if not session.exporter.exporting),
                key=lambda session: session.last_seen,
            )
            dropped = [session for session in idle if now - session.last_seen > self.ttl_seconds]
            overflow = len(self._sessions) - len(dropped) - (self.max_sessions - 1)
            if overflow > 0:
                dropped_ids = {session.session_id for session in dropped}
                remaining = [session for session in idle if session.session_id not in dropped_ids]
                dropped.extend(remaining[:overflow])
            for session in dropped:
                self._sessions.pop(session.session_id, None)
        if dropped:
            logger.info('Evicted %s report session(s)', len(dropped))
        return len(dropped)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
