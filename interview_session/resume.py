"""Reconcile persisted in-progress sessions with live state machines."""
from __future__ import annotations

import logging
from typing import Optional

from observability.logger import log_event

from .boundaries import SessionStore
from .errors import PersistFailure
from .machine import InterviewStateMachine
from .models import InProgressSnapshot
from .phases import Phase

logger = logging.getLogger(__name__)


class ResumeController:
    """Decide between resume and discard for a returning candidate."""

    def __init__(self, store: SessionStore) -> None:
        self._store = store

    def load_pending_session(self, candidate_id: str) -> Optional[InProgressSnapshot]:
        """Return the pending snapshot for ``candidate_id`` if one exists."""

        return self._store.load_in_progress(candidate_id)

    def discard(self, candidate_id: str) -> bool:
        """Delete any pending snapshot; succeeds when nothing is pending."""

        try:
            self._store.discard_in_progress(candidate_id)
        except PersistFailure as exc:
            logger.warning("Failed to discard in-progress interview for %s: %s", candidate_id, exc.message)
            return False
        log_event("snapshot.discarded", candidate_id)
        return True

    def resume_into(self, machine: InterviewStateMachine) -> Optional[Phase]:
        """Load the machine owner's snapshot and rehydrate ``machine`` from it."""

        snapshot = self.load_pending_session(machine.candidate_id)
        if snapshot is None:
            return None
        log_event("snapshot.resumed", machine.candidate_id, question_count=snapshot.question_count)
        return machine.resume(snapshot)


__all__ = ["ResumeController"]
