from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sse_starlette.sse import EventSourceResponse

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.reserve_ticket_use_case import ReserveTicketUseCase
from src.service.ticketing.app.command.revoke_ticket_use_case import RevokeTicketUseCase
from src.service.ticketing.app.command.verify_ticket_use_case import VerifyTicketUseCase
from src.service.ticketing.app.query.ticket_pass_use_case import TicketPassUseCase
from src.service.ticketing.domain.enum.sse_event_type import SseEventType
from src.service.ticketing.domain.value_object.ticket_pass import TicketPass
from src.service.ticketing.driving_adapter.http_controller.auth.identity import (
    get_current_identity,
)
from src.service.ticketing.driving_adapter.schema.ticket_schema import (
    ReserveTicketRequest,
    TicketPassResponse,
    TokenSseResponse,
    VerificationResponse,
    VerifyTicketRequest,
)


router = APIRouter()


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def reserve_ticket(
    request: ReserveTicketRequest,
    current_user_id: Optional[str] = Depends(get_current_identity),
    use_case: ReserveTicketUseCase = Depends(ReserveTicketUseCase.depends),
    pass_use_case: TicketPassUseCase = Depends(TicketPassUseCase.depends),
) -> TicketPassResponse:
    ticket = await use_case.reserve(holder_id=current_user_id, event_id=request.event_id)
    return TicketPassResponse.from_pass(pass_use_case.issue_pass(ticket))


@router.get('/event/{event_id}/mine', status_code=status.HTTP_200_OK)
@Logger.io
async def get_my_ticket(
    event_id: str,
    current_user_id: Optional[str] = Depends(get_current_identity),
    use_case: TicketPassUseCase = Depends(TicketPassUseCase.depends),
) -> TicketPassResponse:
    ticket_pass = await use_case.find_my_ticket(holder_id=current_user_id, event_id=event_id)
    return TicketPassResponse.from_pass(ticket_pass)


@router.post('/verify', status_code=status.HTTP_200_OK)
@Logger.io
async def verify_ticket(
    request: VerifyTicketRequest,
    use_case: VerifyTicketUseCase = Depends(VerifyTicketUseCase.depends),
) -> VerificationResponse:
    """Door scan. ALREADY_ADMITTED is a normal 200 outcome, not an error."""
    result = await use_case.verify(token=request.token)
    return VerificationResponse.from_result(result)


@router.delete('/{ticket_id}', status_code=status.HTTP_204_NO_CONTENT)
@Logger.io
async def revoke_ticket(
    ticket_id: str,
    current_user_id: Optional[str] = Depends(get_current_identity),
    use_case: RevokeTicketUseCase = Depends(RevokeTicketUseCase.depends),
) -> Response:
    await use_case.revoke(ticket_id=ticket_id, organizer_id=current_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================ SSE Endpoints ============================


@router.get('/{ticket_id}/token/sse', status_code=status.HTTP_200_OK)
@Logger.io
async def stream_ticket_token(
    ticket_id: str,
    current_user_id: Optional[str] = Depends(get_current_identity),
    use_case: TicketPassUseCase = Depends(TicketPassUseCase.depends),
) -> EventSourceResponse:
    """SSE rotating verification token for the ticket holder's pass."""
    passes = await use_case.subscribe_tokens(ticket_id=ticket_id, holder_id=current_user_id)

    async def event_generator(
        stream: AsyncGenerator[TicketPass, None],
    ) -> AsyncGenerator[dict, None]:
        try:
            async for ticket_pass in stream:
                response = TokenSseResponse(
                    event_type=SseEventType.TOKEN_ROTATED.value,
                    ticket_id=ticket_pass.ticket.id,
                    token=ticket_pass.token,
                    time_window=ticket_pass.time_window,
                    state=ticket_pass.state.value,
                )
                yield {
                    'event': SseEventType.TOKEN_ROTATED.value,
                    'data': response.model_dump_json(),
                }
        finally:
            await stream.aclose()

    return EventSourceResponse(event_generator(passes))
