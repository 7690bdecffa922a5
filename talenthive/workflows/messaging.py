"""Direct messaging between users."""

from typing import Optional

from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..models.message import Conversation, Message
from ..models.notification import NotificationType
from ..models.user import User
from ..storage import JsonStore
from .common import get_user, paginate
from .notifications import NotificationCenter


class MessagingService:
    """Conversations and messages."""

    def __init__(self, store: JsonStore, notifications: NotificationCenter):
        self.store = store
        self.notifications = notifications

    def _conversation(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = self.store.get("conversations", Conversation, conversation_id)
        if not conversation:
            raise NotFoundError("Conversation not found")
        if not conversation.includes(user_id):
            raise ForbiddenError("You are not part of this conversation")
        return conversation

    def get_or_create_conversation(self, user_id: str, other_id: str, project_id: Optional[str] = None) -> Conversation:
        if user_id == other_id:
            raise ValidationError("You cannot message yourself")
        get_user(self.store, other_id)

        with self.store.lock:
            for conversation in self.store.load("conversations", Conversation):
                if set(conversation.participants) == {user_id, other_id} and conversation.project_id == project_id:
                    return conversation

            conversation = Conversation(participants=[user_id, other_id], project_id=project_id)
            self.store.insert("conversations", conversation)
            return conversation

    def list_conversations(self, user_id: str) -> list[dict]:
        """Conversations with unread counts, most recent activity first."""
        messages = self.store.load("messages", Message)
        conversations = [
            c for c in self.store.load("conversations", Conversation) if c.includes(user_id)
        ]
        conversations.sort(key=lambda c: c.last_message_at or c.created_at, reverse=True)

        return [
            {
                **c.to_dict(),
                "unread_count": sum(
                    1 for m in messages
                    if m.conversation_id == c.id and m.sender_id != user_id and user_id not in m.read_by
                ),
            }
            for c in conversations
        ]

    def send_message(self, conversation_id: str, sender: User, content: str,
                     attachments: Optional[list[dict]] = None) -> Message:
        if not (content or "").strip() and not attachments:
            raise ValidationError("Message cannot be empty")

        with self.store.lock:
            conversation = self._conversation(conversation_id, sender.id)
            message = Message(
                conversation_id=conversation.id,
                sender_id=sender.id,
                content=(content or "").strip(),
                attachments=attachments or [],
                read_by=[sender.id],
            )
            self.store.insert("messages", message)

            conversation.last_message = message.content[:100]
            conversation.last_message_at = message.created_at
            self.store.update("conversations", conversation)

        recipient = conversation.other_participant(sender.id)
        if recipient:
            self.notifications.notify(
                recipient,
                NotificationType.MESSAGE,
                f"New message from {sender.full_name}",
                message.content[:100],
                link=f"/messages/{conversation.id}",
                metadata={"conversation_id": conversation.id, "message_id": message.id},
            )
        return message

    def get_messages(self, conversation_id: str, user_id: str, page: int = 1, limit: int = 50) -> dict:
        """Messages oldest first within the requested page of newest messages."""
        self._conversation(conversation_id, user_id)
        messages = [m for m in self.store.load("messages", Message) if m.conversation_id == conversation_id]
        messages.sort(key=lambda m: m.created_at, reverse=True)

        result = paginate(messages, page, limit)
        result["items"] = [m.to_dict() for m in reversed(result["items"])]
        return result

    def mark_read(self, conversation_id: str, user_id: str) -> int:
        """Mark all messages in a conversation as read by the user."""
        with self.store.lock:
            self._conversation(conversation_id, user_id)
            messages = self.store.load("messages", Message)
            changed = 0
            for m in messages:
                if m.conversation_id == conversation_id and user_id not in m.read_by:
                    m.read_by.append(user_id)
                    changed += 1
            if changed:
                self.store.save("messages", messages)
            return changed
