import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lynqai.db import init_db
from lynqai.db.crud_helper import (
    ConversationCRUD,
    ChatMessageCRUD,
    conversation_crud,
    chat_message_crud,
)
from lynqai.errors import NotFound, StorageError
from lynqai.models.chat import Conversation as ConversationRow, Message as MessageRow
from lynqai.models.conversation import (
    ChatMessage,
    Conversation,
    ImageMessage,
    Platform,
    TextMessage,
)

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Storage failure while trying to {action}: {e}", exc_info=True)
        raise StorageError(f"Failed to {action}: {e}") from e


def row_to_message(row: Dict[str, Any]) -> ChatMessage:
    if row["kind"] == "image":
        return ImageMessage(
            sender=row["sender"],
            image_url=row["image_url"],
            message_id=row["id"],
            timestamp=row["timestamp"],
        )
    return TextMessage(
        sender=row["sender"],
        text=row["text"] or "",
        message_id=row["id"],
        timestamp=row["timestamp"],
    )


class ConversationStore:
    """
    Conversation persistence on top of the generic CRUD capability.

    Conversations are only ever created or appended to. Every write runs in a
    single transaction, so a turn's user and assistant messages land together
    or not at all.
    """

    def __init__(
        self,
        conversations: ConversationCRUD = conversation_crud,
        messages: ChatMessageCRUD = chat_message_crud,
    ) -> None:
        self.conversations = conversations
        self.messages = messages

    @classmethod
    def for_url(cls, db_url: str) -> "ConversationStore":
        return cls(
            ConversationCRUD(ConversationRow, db_url=db_url),
            ChatMessageCRUD(MessageRow, db_url=db_url),
        )

    def init_schema(self) -> None:
        with storage_errors("create tables"):
            init_db(self.conversations.db_url)

    def _add_messages(
        self,
        session: Session,
        conversation_id: str,
        messages: Sequence[ChatMessage],
        start: int,
        now: datetime,
    ) -> None:
        for offset, message in enumerate(messages):
            session.add(
                MessageRow(
                    id=new_id(),
                    conversation_id=conversation_id,
                    sender=message.sender.value,
                    kind=message.kind,
                    text=message.text if isinstance(message, TextMessage) else None,
                    image_url=message.image_url if isinstance(message, ImageMessage) else None,
                    sequence_order=start + offset,
                    timestamp=now,
                )
            )

    def create_conversation(
        self, user_id: str, platform: Platform, initial_messages: Sequence[ChatMessage]
    ) -> str:
        conversation_id = new_id()
        now = utcnow()
        with storage_errors("create conversation"):
            with self.conversations.transaction() as session:
                session.add(
                    ConversationRow(
                        id=conversation_id,
                        user_id=user_id,
                        platform=platform.value,
                        created_at=now,
                        last_updated=now,
                    )
                )
                session.flush()
                self._add_messages(session, conversation_id, initial_messages, 1, now)
        logger.info(f"Created conversation {conversation_id} for user {user_id}")
        return conversation_id

    def append_messages(self, conversation_id: str, messages: Sequence[ChatMessage]) -> None:
        now = utcnow()
        with storage_errors("append messages"):
            with self.conversations.transaction() as session:
                conversation = session.get(ConversationRow, conversation_id)
                if conversation is None:
                    raise NotFound(f"Conversation {conversation_id} not found")
                last = session.scalar(
                    select(func.max(MessageRow.sequence_order)).where(
                        MessageRow.conversation_id == conversation_id
                    )
                )
                self._add_messages(session, conversation_id, messages, (last or 0) + 1, now)
                conversation.last_updated = now
        logger.info(f"Appended {len(messages)} message(s) to conversation {conversation_id}")

    def _load_messages(self, conversation_ids: List[str]) -> Dict[str, List[ChatMessage]]:
        grouped: Dict[str, List[ChatMessage]] = {cid: [] for cid in conversation_ids}
        if not conversation_ids:
            return grouped
        rows = self.messages.list_resource(
            where=[MessageRow.conversation_id.in_(conversation_ids)],
            order_by=["sequence_order", "timestamp"],
        )
        for row in rows:
            grouped[row["conversation_id"]].append(row_to_message(row))
        return grouped

    def _to_conversation(self, row: Dict[str, Any], messages: List[ChatMessage]) -> Conversation:
        return Conversation(
            id=row["id"],
            user_id=row["user_id"],
            platform=row["platform"],
            messages=messages,
            created_at=row["created_at"],
            last_updated=row["last_updated"],
        )

    def get_conversation(self, conversation_id: str) -> Conversation:
        with storage_errors("retrieve conversation"):
            row = self.conversations.get_resource(resource_id=conversation_id)
            if row is None:
                raise NotFound(f"Conversation {conversation_id} not found")
            messages = self._load_messages([conversation_id])
        return self._to_conversation(row, messages[conversation_id])

    def list_conversations(self, user_id: str) -> List[Conversation]:
        with storage_errors("list conversations"):
            rows = self.conversations.list_resource(
                where=[ConversationRow.user_id == user_id],
                order_by=["-last_updated"],
            )
            messages = self._load_messages([row["id"] for row in rows])
        return [self._to_conversation(row, messages[row["id"]]) for row in rows]
