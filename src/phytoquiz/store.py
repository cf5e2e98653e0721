import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from .config import settings
from .questions import QuestionProvider
from .session import QuizSession

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory quiz sessions keyed by cookie id, dropped after a timeout."""

    def __init__(self, timeout_minutes: Optional[int] = None):
        self.timeout = timedelta(
            minutes=timeout_minutes
            if timeout_minutes is not None
            else settings.SESSION_TIMEOUT_MINUTES
        )
        self.sessions: Dict[str, Tuple[QuizSession, datetime]] = {}

    def create(self, provider: QuestionProvider) -> Tuple[str, QuizSession]:
        session_id = str(uuid.uuid4())
        session = QuizSession(provider)
        self.sessions[session_id] = (session, datetime.now())
        logger.info(f"New session: {session_id}")
        return session_id, session

    def get(self, session_id: Optional[str]) -> Optional[QuizSession]:
        if not session_id or session_id not in self.sessions:
            return None
        session, created_at = self.sessions[session_id]
        if datetime.now() - created_at > self.timeout:
            logger.info(f"Session expired: {session_id}")
            self.discard(session_id)
            return None
        return session

    def discard(self, session_id: Optional[str]):
        entry = self.sessions.pop(session_id, None) if session_id else None
        if entry:
            entry[0].cancel()

    def __len__(self) -> int:
        return len(self.sessions)
