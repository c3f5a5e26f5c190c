"""Conversation history kept in a JSON document on disk."""
from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from quizrag.errors import PersistenceFailed
from quizrag.telemetry import emit_exception

LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageMetadata(BaseModel):
    confidence: Optional[str] = None
    sources: List[str] = Field(default_factory=list)
    query: Optional[str] = None
    namespace: Optional[str] = None


class Message(BaseModel):
    type: Literal["user", "bot"]
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)
    metadata: MessageMetadata = Field(default_factory=MessageMetadata)


class Conversation(BaseModel):
    """One chat thread bound to an indexed document namespace."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str
    namespace: str
    filename: str
    file_url: Optional[str] = Field(None, alias="fileUrl")
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=_utcnow, alias="updatedAt")
    is_active: bool = Field(True, alias="isActive")


class JsonConversationStore:
    """Conversation records persisted as a single JSON file.

    Writes go to a temporary file that then replaces the original, so a
    crash mid-write never leaves a truncated history behind.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._conversations: Dict[str, Conversation] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def list(self, *, active_only: bool = True) -> List[Conversation]:
        """Return conversations, most recently updated first."""

        with self._lock:
            items = [
                conversation
                for conversation in self._conversations.values()
                if conversation.is_active or not active_only
            ]
        return sorted(items, key=lambda conversation: conversation.updated_at, reverse=True)

    def get(self, conversation_id: str) -> Optional[Conversation]:
        with self._lock:
            return self._conversations.get(conversation_id)

    def find_by_namespace(self, namespace: str) -> Optional[Conversation]:
        """Return the most recent active conversation for *namespace*."""

        for conversation in self.list():
            if conversation.namespace == namespace:
                return conversation
        return None

    def create(
        self,
        *,
        namespace: str,
        filename: str,
        title: str | None = None,
        file_url: str | None = None,
    ) -> Conversation:
        conversation = Conversation(
            title=title or filename,
            namespace=namespace,
            filename=filename,
            file_url=file_url,
        )
        with self._lock:
            self._commit({**self._conversations, conversation.id: conversation})
        LOGGER.info("Created conversation %s for namespace %s", conversation.id, namespace)
        return conversation

    def find_or_create(self, *, namespace: str, filename: str, file_url: str | None = None) -> Conversation:
        existing = self.find_by_namespace(namespace)
        if existing is not None:
            return existing
        return self.create(namespace=namespace, filename=filename, file_url=file_url)

    def append_messages(self, conversation_id: str, messages: List[Message]) -> Conversation:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                raise PersistenceFailed(f"Conversation {conversation_id} does not exist")
            updated = conversation.model_copy(
                update={"messages": [*conversation.messages, *messages], "updated_at": _utcnow()}
            )
            self._commit({**self._conversations, conversation_id: updated})
            return updated

    def delete(self, conversation_id: str) -> bool:
        with self._lock:
            if conversation_id not in self._conversations:
                return False
            self._commit({key: value for key, value in self._conversations.items() if key != conversation_id})
        LOGGER.info("Deleted conversation %s", conversation_id)
        return True

    def _commit(self, conversations: Dict[str, Conversation]) -> None:
        # The in-memory state only moves forward once the file write succeeded.
        self._save(conversations)
        self._conversations = conversations

    def _load(self) -> None:
        """Read the history file; an unreadable file starts an empty history.

        The unreadable file is moved aside to ``<name>.corrupt`` so the next
        save does not overwrite it.
        """

        if not self._path.exists():
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict) or not isinstance(payload.get("conversations", []), list):
                raise ValueError("expected an object holding a 'conversations' list")
        except (OSError, ValueError) as error:
            emit_exception(
                module=f"{__name__}.load",
                error=PersistenceFailed(f"Failed to load conversation history from {self._path}", cause=error),
                suggestion="Conversation history starts empty; inspect the .corrupt copy",
            )
            self._quarantine()
            return

        for record in payload.get("conversations", []):
            try:
                conversation = Conversation.model_validate(record)
            except ValidationError:
                LOGGER.warning("Skipping malformed conversation record in %s", self._path)
                continue
            self._conversations[conversation.id] = conversation

    def _quarantine(self) -> None:
        target = self._path.with_name(f"{self._path.name}.corrupt")
        try:
            self._path.replace(target)
        except OSError as error:
            LOGGER.warning("Could not move unreadable history %s aside: %s", self._path, error)
            return
        LOGGER.warning("Moved unreadable history %s to %s", self._path, target)

    def _save(self, conversations: Dict[str, Conversation]) -> None:
        payload = {
            "conversations": [
                conversation.model_dump(mode="json", by_alias=True)
                for conversation in conversations.values()
            ]
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as error:
            raise PersistenceFailed(f"Failed to save conversation history to {self._path}", cause=error) from error


__all__ = ["Conversation", "JsonConversationStore", "Message", "MessageMetadata"]
