"""SQLAlchemy models package."""

from app.models.user import User
from app.models.mentor import Mentor
from app.models.chat import Chat
from app.models.message import Message
from app.models.memory import MentorMemory
from app.models.knowledge_document import DocumentSource, KnowledgeDocument
from app.models.feedback import Feedback

__all__ = [
    "User",
    "Mentor",
    "Chat",
    "Message",
    "MentorMemory",
    "DocumentSource",
    "KnowledgeDocument",
    "Feedback",
]
