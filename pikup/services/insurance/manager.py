"""Insurance quote manager: one coverage quote life cycle per booking draft."""

import asyncio
from typing import Dict, Optional, Tuple

from loguru import logger

from ...constants import ITEM_VALUE_REQUIRED
from ...core.enums import QuoteState
from ...core.exceptions import InsuranceUnavailableError, ValidationError
from ...core.result import Result
from ...models.insurance import CoverageSelection, InsuranceQuote, InsuranceQuoteRequest
from .gateway import InsuranceGateway

RequestKey = Tuple


class InsuranceQuoteManager:
    """
    Tracks the coverage quote of one booking draft.

    States: idle, loading, ready, error. Toggling coverage never discards
    the cached quote. An errored request stays errored until ``retry()``
    or ``refresh()``; a different item value or trip is a new request.
    Responses arriving after ``close()`` or for a superseded request are
    dropped.
    """

    def __init__(self, gateway: InsuranceGateway, opt_out_allowed: bool = True):
        """
        Initialize quote manager.

        Args:
            gateway: Insurance quoting adapter
            opt_out_allowed: Whether coverage may be switched off
        """
        self.gateway = gateway
        self.opt_out_allowed = opt_out_allowed
        self.state = QuoteState.IDLE
        self.included = False
        self.quote: Optional[InsuranceQuote] = None
        self.error: Optional[InsuranceUnavailableError] = None
        self.closed = False
        self._request: Optional[InsuranceQuoteRequest] = None
        self._error_key: Optional[RequestKey] = None
        self._inflight: Dict[RequestKey, "asyncio.Task[Result]"] = {}

    @property
    def selection(self) -> CoverageSelection:
        return CoverageSelection(included=self.included, quote=self.quote)

    @property
    def error_message(self) -> Optional[str]:
        return self.error.user_message if self.error else None

    @property
    def request(self) -> Optional[InsuranceQuoteRequest]:
        return self._request

    @property
    def has_valid_quote(self) -> bool:
        return (
            self.quote is not None
            and self._request is not None
            and self.quote.is_valid_for(self._request)
        )

    @property
    def blocks_confirmation(self) -> bool:
        """Whether the booking cannot be confirmed in the current state."""
        if self.state == QuoteState.ERROR:
            return True
        return self.included and not self.has_valid_quote

    async def enable(self, request: InsuranceQuoteRequest) -> CoverageSelection:
        """Include coverage, reusing the cached quote when it still applies."""
        self.included = True
        return await self.ensure_quote(request)

    def disable(self) -> CoverageSelection:
        """
        Stop applying coverage. State and cached quote are left untouched.

        Raises:
            ValidationError: If coverage opt-out is not allowed
        """
        if not self.opt_out_allowed:
            raise ValidationError("Item coverage is required", field="coverage")
        self.included = False
        return self.selection

    async def ensure_quote(self, request: InsuranceQuoteRequest) -> CoverageSelection:
        """
        Make ``request`` the current request and fetch a quote if needed.

        No network call is made when a valid quote is cached, when the same
        request already failed, or when the manager is closed.
        """
        if self.closed:
            return self.selection

        self._request = request
        if self.has_valid_quote:
            self.state = QuoteState.READY
            self.error = None
            return self.selection

        if self.state == QuoteState.ERROR and self._error_key == request.key:
            return self.selection

        await self._fetch(request)
        return self.selection

    async def retry(self) -> CoverageSelection:
        """Leave the error state by requesting the current quote again."""
        if self._request is None or self.closed:
            return self.selection
        self._error_key = None
        await self._fetch(self._request)
        return self.selection

    async def refresh(self) -> CoverageSelection:
        """Drop the cached quote and request a fresh one."""
        if self._request is None or self.closed:
            return self.selection
        logger.info("Refreshing insurance quote")
        self.quote = None
        self._error_key = None
        await self._fetch(self._request)
        return self.selection

    def close(self) -> None:
        """Abandon the draft; late responses are discarded."""
        self.closed = True
        self._inflight.clear()

    async def _fetch(self, request: InsuranceQuoteRequest) -> None:
        if not request.has_item_value:
            self._fail(
                request,
                InsuranceUnavailableError("Item value is required", code=ITEM_VALUE_REQUIRED),
            )
            return

        self.state = QuoteState.LOADING
        self.error = None

        key = request.key
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self.gateway.request_quote(request))
            self._inflight[key] = task
        try:
            result = await asyncio.shield(task)
        finally:
            if self._inflight.get(key) is task:
                del self._inflight[key]

        if self.closed:
            logger.debug("Discarding insurance response for closed draft")
            return
        if self._request is None or self._request.key != key:
            logger.debug("Discarding insurance response for superseded request")
            return

        if result.is_success():
            self.quote = result.unwrap()
            self.state = QuoteState.READY
            self.error = None
            self._error_key = None
        else:
            self._fail(request, result.exception)

    def _fail(self, request: InsuranceQuoteRequest, error: Exception) -> None:
        if not isinstance(error, InsuranceUnavailableError):
            error = InsuranceUnavailableError(str(error), code=None)
        self.state = QuoteState.ERROR
        self.error = error
        self._error_key = request.key
        logger.warning(f"Insurance quote failed ({error.code}): {error.user_message}")
