"""Insurance quoting adapter."""

from loguru import logger

from ...constants import ERROR_COPY, INSURANCE_NO_QUOTE_ERROR, NETWORK_ERROR_MESSAGE
from ...core.exceptions import InsuranceUnavailableError, NetworkError, ValidationError
from ...core.result import Result, err, ok
from ...models.insurance import InsuranceQuote, InsuranceQuoteRequest
from ..api.client import PikupApiClient

INSURANCE_QUOTE_PATH = "/calculate-price"


class InsuranceGateway:
    """Requests coverage premiums from the pricing service's insurance mode."""

    def __init__(self, api: PikupApiClient):
        self.api = api

    async def request_quote(self, request: InsuranceQuoteRequest) -> Result[InsuranceQuote, str]:
        """
        Request a premium for ``request``.

        Failures carry an InsuranceUnavailableError whose user message comes
        from the error code when the service sent a known one.
        """
        try:
            response = await self.api.post_json(INSURANCE_QUOTE_PATH, request.to_payload())
        except NetworkError as e:
            logger.warning(f"Insurance quote request failed: {e}")
            return err(
                InsuranceUnavailableError(str(e), code=None, user_message=NETWORK_ERROR_MESSAGE)
            )

        if not response.success:
            code = response.error_code
            logger.warning(
                f"Insurance quote rejected (status={response.status}, code={code}): "
                f"{response.error_message}"
            )
            return err(
                InsuranceUnavailableError(
                    response.error_message,
                    code=code,
                    user_message=ERROR_COPY.get(code) if code else None,
                )
            )

        insurance = response.data.get("insurance")
        if not insurance:
            logger.warning("Insurance quote response carried no insurance offer")
            return err(
                InsuranceUnavailableError(
                    "Response carried no insurance offer",
                    code=None,
                    user_message=INSURANCE_NO_QUOTE_ERROR,
                )
            )

        try:
            quote = InsuranceQuote.from_service(insurance, request)
        except (KeyError, ValidationError) as e:
            logger.warning(f"Malformed insurance offer: {e}")
            return err(
                InsuranceUnavailableError(
                    f"Malformed insurance offer: {e}",
                    code=None,
                    user_message=INSURANCE_NO_QUOTE_ERROR,
                )
            )

        logger.info(f"Insurance quote {quote.quote_id} received: {quote.premium} {quote.currency}")
        return ok(quote)
