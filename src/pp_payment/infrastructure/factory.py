"""Selects the PaymentDispatcherProtocol implementation from settings."""

from functools import lru_cache

from config.settings import settings
from src.pp_payment.domain.dispatcher import PaymentDispatcherProtocol
from src.pp_payment.infrastructure.http_dispatcher import HttpPaymentDispatcher
from src.pp_payment.infrastructure.simulated import SimulatedPaymentDispatcher


@lru_cache(maxsize=1)
def build_payment_dispatcher() -> PaymentDispatcherProtocol:
    if settings.PAYMENT_SERVICE_URL:
        return HttpPaymentDispatcher(
            settings.PAYMENT_SERVICE_URL,
            token=settings.PAYMENT_SERVICE_TOKEN,
            timeout=settings.PAYMENT_DISPATCH_TIMEOUT_SECONDS,
        )
    return SimulatedPaymentDispatcher()


async def close_payment_dispatcher() -> None:
    """Release the HTTP client, if one was built."""
    if build_payment_dispatcher.cache_info().currsize == 0:
        return
    dispatcher = build_payment_dispatcher()
    if isinstance(dispatcher, HttpPaymentDispatcher):
        await dispatcher.aclose()
    build_payment_dispatcher.cache_clear()
