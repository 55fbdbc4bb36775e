from datetime import datetime
import time
from typing import Callable, Optional, Self

import anyio
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.dto.store_dto import UpdateStatus
from src.service.ticketing.app.interface.i_document_store import IDocumentStore
from src.service.ticketing.domain.entity.event_entity import EVENT_COLLECTION
from src.service.ticketing.domain.entity.ticket_entity import (
    CHECKED_IN_AT_FIELD,
    TICKET_COLLECTION,
    Ticket,
)
from src.service.ticketing.domain.errors import (
    MalformedTokenError,
    StoreUnavailableError,
    TicketNotFoundError,
)
from src.service.ticketing.domain.timestamp import utc_now
from src.service.ticketing.domain.value_object.verification_result import (
    UNKNOWN_EVENT_TITLE,
    VerificationOutcome,
    VerificationResult,
)
from src.service.ticketing.domain.value_object.verification_token import decode


class VerifyTicketUseCase:
    """
    Door check-in: turn a scanned token into an admission decision.

    At-most-once entry rests entirely on the store's conditional update of
    checked_in_at (null -> server time). Whoever loses that race, whether a
    second scanner or a retry, gets ALREADY_ADMITTED with the winning time.
    """

    def __init__(
        self,
        *,
        document_store: IDocumentStore,
        timeout_seconds: float = settings.VERIFY_TIMEOUT_SECONDS,
        max_age_windows: Optional[int] = settings.TOKEN_MAX_AGE_WINDOWS,
        window_seconds: int = settings.TOKEN_WINDOW_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.document_store = document_store
        self.timeout_seconds = timeout_seconds
        self.max_age_windows = max_age_windows
        self.window_seconds = window_seconds
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        document_store: IDocumentStore = Depends(Provide[Container.document_store]),
    ) -> Self:
        return cls(document_store=document_store)

    @Logger.io
    async def verify(self, *, token: str) -> VerificationResult:
        started = time.perf_counter()
        outcome = 'error'
        try:
            with self.tracer.start_as_current_span('use_case.verify_ticket'):
                parsed = decode(token)
                if not parsed.is_fresh(
                    now=self.clock(),
                    max_age_windows=self.max_age_windows,
                    interval=self.window_seconds,
                ):
                    raise MalformedTokenError('token window has expired')

                try:
                    with anyio.fail_after(self.timeout_seconds):
                        result = await self._check_in(ticket_id=parsed.ticket_id)
                except TimeoutError:
                    raise StoreUnavailableError(
                        f'verification timed out after {self.timeout_seconds}s'
                    ) from None

                outcome = result.outcome.value
                return result
        except MalformedTokenError:
            outcome = 'malformed'
            raise
        except TicketNotFoundError:
            outcome = 'not_found'
            raise
        except StoreUnavailableError:
            outcome = 'unavailable'
            raise
        except Exception:
            outcome = 'error'
            raise
        finally:
            metrics.record_verification(outcome=outcome, duration=time.perf_counter() - started)

    async def _check_in(self, *, ticket_id: str) -> VerificationResult:
        document = await self.document_store.get(
            collection=TICKET_COLLECTION, document_id=ticket_id
        )
        if document is None:
            raise TicketNotFoundError(ticket_id)
        ticket = Ticket.from_document(document.id, document.data)

        if ticket.is_admitted:
            return await self._already_admitted(ticket)

        update = await self.document_store.update_if(
            collection=TICKET_COLLECTION,
            document_id=ticket_id,
            field=CHECKED_IN_AT_FIELD,
            expected=None,
            changes={},
            server_timestamp_fields=(CHECKED_IN_AT_FIELD,),
        )

        if update.status is UpdateStatus.NOT_FOUND:
            # Revoked between the read and the write
            raise TicketNotFoundError(ticket_id)

        if update.status is UpdateStatus.CONDITION_FAILED:
            winner = update.document or await self.document_store.get(
                collection=TICKET_COLLECTION, document_id=ticket_id
            )
            if winner is None:
                raise TicketNotFoundError(ticket_id)
            Logger.base.info(f'🚪 [VERIFY] Lost check-in race for {ticket_id}')
            return await self._already_admitted(Ticket.from_document(winner.id, winner.data))

        assert update.document is not None
        admitted = Ticket.from_document(update.document.id, update.document.data)
        event_title = await self._event_title(admitted.event_id)
        Logger.base.info(f'✅ [VERIFY] Admitted ticket {ticket_id} to "{event_title}"')
        return VerificationResult(
            outcome=VerificationOutcome.ADMITTED,
            ticket_id=ticket_id,
            at=admitted.checked_in_at,
            event_title=event_title,
        )

    async def _already_admitted(self, ticket: Ticket) -> VerificationResult:
        Logger.base.info(f'⚠️ [VERIFY] Ticket {ticket.id} already admitted at {ticket.checked_in_at}')
        return VerificationResult(
            outcome=VerificationOutcome.ALREADY_ADMITTED,
            ticket_id=ticket.id,
            at=ticket.checked_in_at,
            event_title=await self._event_title(ticket.event_id),
        )

    async def _event_title(self, event_id: str) -> str:
        event = await self.document_store.get(collection=EVENT_COLLECTION, document_id=event_id)
        if event is None:
            return UNKNOWN_EVENT_TITLE
        return event.data.get('title') or UNKNOWN_EVENT_TITLE
