from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.service.ticketing.domain.entity.broadcast_notice_entity import BroadcastNotice


class PublishNoticeRequest(BaseModel):
    message: str

    class Config:
        json_schema_extra = {'example': {'message': 'Gate B is closed, please use Gate C'}}


class NoticeResponse(BaseModel):
    id: str
    event_id: str
    organizer_id: str
    message: str
    event_title: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, notice: BroadcastNotice) -> 'NoticeResponse':
        return cls(
            id=notice.id,
            event_id=notice.event_id,
            organizer_id=notice.organizer_id,
            message=notice.message,
            event_title=notice.event_title,
            created_at=notice.created_at,
        )


class NoticeFeedSseResponse(BaseModel):
    event_type: str
    event_id: str
    notices: List[NoticeResponse]
    new_notice_ids: List[str]
    is_backlog: bool
    pulse_active: bool


class NoticeSignalSseResponse(BaseModel):
    """pulse_cleared and stalled carry no notices"""

    event_type: str
    event_id: str
    reason: str = ''
