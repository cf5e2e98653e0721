from .config import settings
from .questions import QuestionProvider
from .store import SessionStore

question_provider = QuestionProvider(settings.BANKS_DIR)
session_store = SessionStore()
