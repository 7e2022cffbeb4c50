"""Conversation messages between a client and a freelancer."""

from __future__ import annotations

import logging

from sqlalchemy import and_, or_

from skillswap.database.models import Message
from skillswap.services.base_service import BaseService

logger = logging.getLogger(__name__)


class MessageService(BaseService):
    def post(
        self,
        sender_id: int,
        receiver_id: int,
        content: str,
        project_id: int | None = None,
        is_system: bool = False,
    ) -> Message:
        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            project_id=project_id,
            content=content,
            is_system=is_system,
            created_at=self._utcnow_naive(),
        )
        self.db.add(message)
        self.commit()
        self.db.refresh(message)
        logger.info(
            "message.posted",
            extra={"event": "message.posted", "actor_id": sender_id, "recipient_id": receiver_id, "project_id": project_id},
        )
        return message

    def conversation(self, user_a: int, user_b: int, project_id: int | None = None) -> list[Message]:
        query = self.db.query(Message).filter(
            or_(
                and_(Message.sender_id == user_a, Message.receiver_id == user_b),
                and_(Message.sender_id == user_b, Message.receiver_id == user_a),
            )
        )
        if project_id is not None:
            query = query.filter(Message.project_id == project_id)
        return query.order_by(Message.created_at.asc(), Message.id.asc()).all()
