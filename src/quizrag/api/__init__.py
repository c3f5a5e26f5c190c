"""HTTP routers."""

from .chat import router as chat_router
from .quiz import router as quiz_router

__all__ = ["chat_router", "quiz_router"]
