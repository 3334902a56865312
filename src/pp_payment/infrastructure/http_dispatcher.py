"""HttpPaymentDispatcher — POSTs payout requests to the treasury payment service.

Contract with the payment service:
    POST {PAYMENT_SERVICE_URL}/payouts
    Idempotency-Key: claim:<kind>:<record_id>
    {"destination": "...", "amount": "12.500000"}
    -> 200/201 {"reference": "..."}  (any other 2xx body: outcome unknown)
    -> 4xx      definitive rejection, nothing sent
    -> 5xx      outcome unknown
Connect errors are definitive (request never left); read timeouts are not.
"""

import logging
from decimal import Decimal

import httpx

from src.pp_payment.domain.dispatcher import (
    PaymentDispatchError,
    PaymentOutcomeUnknownError,
)

logger = logging.getLogger(__name__)


class HttpPaymentDispatcher:
    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def dispatch(
        self, destination: str, amount: Decimal, idempotency_key: str
    ) -> str:
        try:
            response = await self._client.post(
                "/payouts",
                json={"destination": destination, "amount": str(amount)},
                headers={"Idempotency-Key": idempotency_key},
            )
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            raise PaymentDispatchError(f"payment service unreachable: {e}") from e
        except httpx.RequestError as e:
            raise PaymentOutcomeUnknownError(f"transport failure after send: {e}") from e

        if response.status_code >= 500:
            logger.error(
                "Payout outcome unknown: key=%s status=%d",
                idempotency_key,
                response.status_code,
            )
            raise PaymentOutcomeUnknownError(
                f"payment service returned {response.status_code}"
            )
        if response.status_code >= 400:
            logger.warning(
                "Payout rejected: key=%s status=%d body=%s",
                idempotency_key,
                response.status_code,
                response.text[:200],
            )
            raise PaymentDispatchError(f"payment service returned {response.status_code}")

        # A 2xx means the payout was accepted; an unreadable body leaves us without
        # the reference, not without the payment.
        try:
            body = response.json()
        except ValueError as e:
            raise PaymentOutcomeUnknownError(
                f"payment service returned {response.status_code} with unreadable body"
            ) from e
        reference = body.get("reference") if isinstance(body, dict) else None
        if not reference:
            raise PaymentOutcomeUnknownError("payment service returned no reference")
        return str(reference)

    async def aclose(self) -> None:
        await self._client.aclose()
