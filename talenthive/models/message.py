"""Conversation and message models for direct messaging."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import uuid


@dataclass
class Conversation:
    """A two-person thread, optionally about a project."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    participants: list[str] = field(default_factory=list)
    project_id: Optional[str] = None
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    def includes(self, user_id: str) -> bool:
        return user_id in self.participants

    def other_participant(self, user_id: str) -> Optional[str]:
        return next((p for p in self.participants if p != user_id), None)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "participants": self.participants,
            "project_id": self.project_id,
            "last_message": self.last_message,
            "last_message_at": self.last_message_at.isoformat() if self.last_message_at else None,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Conversation":
        conversation = cls(
            id=data.get("id", str(uuid.uuid4())),
            participants=data.get("participants", []),
            project_id=data.get("project_id"),
            last_message=data.get("last_message"),
        )
        for field_name in ["last_message_at", "created_at"]:
            if data.get(field_name):
                setattr(conversation, field_name, datetime.fromisoformat(data[field_name]))
        return conversation


@dataclass
class Message:
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    conversation_id: str = ""
    sender_id: str = ""
    content: str = ""
    attachments: list[dict] = field(default_factory=list)
    read_by: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "conversation_id": self.conversation_id,
            "sender_id": self.sender_id,
            "content": self.content,
            "attachments": self.attachments,
            "read_by": self.read_by,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        message = cls(
            id=data.get("id", str(uuid.uuid4())),
            conversation_id=data.get("conversation_id", ""),
            sender_id=data.get("sender_id", ""),
            content=data.get("content", ""),
            attachments=data.get("attachments", []),
            read_by=data.get("read_by", []),
        )
        if data.get("created_at"):
            message.created_at = datetime.fromisoformat(data["created_at"])
        return message
