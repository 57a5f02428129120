"""httpx adapter for the REST message store."""
from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Callable, Self, Sequence, TypeVar

import httpx
from pydantic import BaseModel

from chat_sync.application.dto.page import ConversationPage, StartedConversation
from chat_sync.application.exceptions import (
    AppError,
    EntitlementError,
    ForbiddenError,
    NotFoundError,
    TransientError,
    ValidationError,
)
from chat_sync.config import Settings, settings as default_settings
from chat_sync.domain.entities.conversation import ConversationSummary
from chat_sync.domain.entities.message import Message
from chat_sync.domain.value_objects.seq import Seq, parse_seq
from chat_sync.infrastructure.http.mappers import (
    message_to_entity,
    page_to_dto,
    started_to_dto,
    summary_to_entity,
)
from chat_sync.infrastructure.http.schemas import (
    ConversationListResponse,
    ConversationPageSchema,
    ErrorResponse,
    MarkReadRequest,
    MarkReadResponse,
    SendMessageRequest,
    SendMessageResponse,
    StartConversationRequest,
    StartConversationResponse,
)

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)
ResultT = TypeVar("ResultT")


class HttpMessageStore:
    """Implements application.ports.store.MessageStore over HTTP/JSON."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or default_settings
        self._owns_client = client is None
        if client is None:
            headers = {"Accept": "application/json"}
            if self._settings.STORE_TOKEN:
                headers["Authorization"] = f"Bearer {self._settings.STORE_TOKEN}"
            client = httpx.AsyncClient(
                base_url=self._settings.STORE_BASE_URL,
                headers=headers,
                timeout=self._settings.HTTP_TIMEOUT_SECONDS,
            )
        self._client = client

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # MessageStore

    async def fetch_page(
        self,
        conversation_id: str,
        *,
        cursor: str | None = None,
        limit: int = 30,
    ) -> ConversationPage:
        params: dict[str, Any] = {"limit": limit}
        if cursor:
            params["cursor"] = cursor
        data = await self._request("GET", f"/conversations/{conversation_id}", params=params)
        return self._map(data, ConversationPageSchema, page_to_dto)

    async def post_message(
        self,
        conversation_id: str,
        body: str,
        *,
        client_msg_id: str | None = None,
    ) -> Message:
        request = SendMessageRequest(body=body, client_msg_id=client_msg_id)
        data = await self._request(
            "POST",
            f"/conversations/{conversation_id}/messages",
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
        message = self._map(data, SendMessageResponse, lambda s: message_to_entity(s.message))
        logger.debug("Message %s stored in conversation %s", message.id, conversation_id)
        return message

    async def mark_read(
        self,
        conversation_id: str,
        *,
        message_ids: Sequence[str] | None = None,
    ) -> Seq | None:
        if message_ids is None:
            request = MarkReadRequest(mark_all_as_read=True)
        else:
            request = MarkReadRequest(message_ids=list(message_ids))
        data = await self._request(
            "PATCH",
            f"/conversations/{conversation_id}/messages",
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
        return self._map(data, MarkReadResponse, lambda s: parse_seq(s.last_read_seq))

    # Conversation list

    async def list_conversations(self) -> list[ConversationSummary]:
        data = await self._request("GET", "/conversations")
        return self._map(
            data,
            ConversationListResponse,
            lambda s: [summary_to_entity(c) for c in s.conversations],
        )

    async def start_conversation(
        self,
        *,
        recipient_nanny_id: int | None = None,
        recipient_family_id: int | None = None,
    ) -> StartedConversation:
        if (recipient_nanny_id is None) == (recipient_family_id is None):
            raise ValidationError("Exactly one recipient is required")
        request = StartConversationRequest(
            recipient_nanny_id=recipient_nanny_id,
            recipient_family_id=recipient_family_id,
        )
        data = await self._request(
            "POST",
            "/conversations",
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
        return self._map(data, StartConversationResponse, lambda s: started_to_dto(s.conversation))

    # Internals

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransientError(f"Timed out calling {method} {url}") from exc
        except httpx.TransportError as exc:
            raise TransientError(f"Could not reach message store: {exc}") from exc

        if response.is_success:
            try:
                return response.json()
            except ValueError as exc:
                raise TransientError(f"Unreadable response from {method} {url}") from exc

        raise self._error_for(response)

    def _error_for(self, response: httpx.Response) -> AppError:
        try:
            error = ErrorResponse.model_validate(response.json())
        except ValueError:
            error = ErrorResponse(error=response.text[:200])

        status = response.status_code
        detail = error.error or response.reason_phrase
        logger.debug("Store answered %s: %s (code=%s)", status, detail, error.code)

        if status == 403 and error.code in self._settings.ENTITLEMENT_CODES:
            return EntitlementError(detail, code=error.code or "")
        if status in (401, 403):
            return ForbiddenError(detail)
        if status == 404:
            return NotFoundError(detail)
        if status in (400, 422):
            return ValidationError(detail)
        return TransientError(detail or f"HTTP {status}")

    @staticmethod
    def _map(
        data: Any,
        schema: type[SchemaT],
        convert: Callable[[SchemaT], ResultT],
    ) -> ResultT:
        try:
            return convert(schema.model_validate(data))
        except ValueError as exc:
            raise TransientError(f"Unexpected {schema.__name__} payload") from exc
