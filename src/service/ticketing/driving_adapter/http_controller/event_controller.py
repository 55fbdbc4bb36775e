from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.create_event_use_case import CreateEventUseCase
from src.service.ticketing.app.command.delete_event_use_case import DeleteEventUseCase
from src.service.ticketing.app.query.get_event_use_case import GetEventUseCase
from src.service.ticketing.app.query.list_events_use_case import ListEventsUseCase
from src.service.ticketing.driving_adapter.http_controller.auth.identity import (
    get_current_identity,
)
from src.service.ticketing.driving_adapter.schema.event_schema import (
    EventCreateRequest,
    EventResponse,
)


router = APIRouter()


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_event(
    request: EventCreateRequest,
    current_user_id: Optional[str] = Depends(get_current_identity),
    use_case: CreateEventUseCase = Depends(CreateEventUseCase.depends),
) -> EventResponse:
    event = await use_case.create_event(
        owner_id=current_user_id,
        title=request.title,
        description=request.description,
        category=request.category,
        lat=request.lat,
        lng=request.lng,
        start_time=request.start_time,
        end_time=request.end_time,
    )
    return EventResponse.from_entity(event)


@router.get('', status_code=status.HTTP_200_OK)
@Logger.io
async def list_events(
    category: Optional[str] = None,
    owner_id: Optional[str] = None,
    use_case: ListEventsUseCase = Depends(ListEventsUseCase.depends),
) -> List[EventResponse]:
    if owner_id is not None:
        events = await use_case.list_hosted_events(owner_id=owner_id)
    else:
        events = await use_case.list_events(category=category)
    return [EventResponse.from_entity(event) for event in events]


@router.get('/{event_id}', status_code=status.HTTP_200_OK)
@Logger.io
async def get_event(
    event_id: str,
    use_case: GetEventUseCase = Depends(GetEventUseCase.depends),
) -> EventResponse:
    event = await use_case.get_by_id(event_id=event_id)
    return EventResponse.from_entity(event)


@router.delete('/{event_id}', status_code=status.HTTP_204_NO_CONTENT)
@Logger.io
async def delete_event(
    event_id: str,
    current_user_id: Optional[str] = Depends(get_current_identity),
    use_case: DeleteEventUseCase = Depends(DeleteEventUseCase.depends),
) -> Response:
    await use_case.delete_event(event_id=event_id, owner_id=current_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
