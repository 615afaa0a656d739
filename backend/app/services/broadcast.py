"""
Broadcast dispatcher: fan one rendered newsletter out to every recipient.

Each recipient gets exactly one send attempt. Sends run concurrently,
bounded by a semaphore, and are joined with a single gather. A failing or
timed-out send becomes a failed BroadcastOutcome; it never skips sibling
sends and never fails the broadcast as a whole.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from app.models.newsletter import BroadcastOutcome, BroadcastSummary, FailedDelivery

logger = logging.getLogger(__name__)


class MailTransport(Protocol):
    async def send(self, address: str, subject: str, html_body: str) -> None:
        ...


@dataclass(frozen=True)
class BroadcastSettings:
    # In-flight sends per broadcast
    max_concurrency: int = 50
    # Seconds; None disables the per-delivery bound
    delivery_timeout: Optional[float] = 30.0


def _describe(exc: BaseException) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or exc.__class__.__name__


class BroadcastDispatcher:
    """Concurrent, isolated, single-attempt delivery to a recipient list."""

    def __init__(self, transport: MailTransport, settings: Optional[BroadcastSettings] = None):
        self.transport = transport
        self.settings = settings or BroadcastSettings()

    async def _deliver(
        self,
        semaphore: asyncio.Semaphore,
        address: str,
        subject: str,
        body: str,
        newsletter_id: Optional[str] = None,
    ) -> BroadcastOutcome:
        timeout = self.settings.delivery_timeout
        async with semaphore:
            try:
                await asyncio.wait_for(self.transport.send(address, subject, body), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Newsletter {newsletter_id}: delivery to {address} timed out after {timeout}s")
                return BroadcastOutcome(
                    email=address,
                    succeeded=False,
                    error=f"Delivery timed out after {timeout}s",
                )
            except Exception as e:
                logger.warning(f"Newsletter {newsletter_id}: failed to send to {address}: {_describe(e)}")
                return BroadcastOutcome(email=address, succeeded=False, error=_describe(e))

        return BroadcastOutcome(email=address, succeeded=True)

    async def broadcast(
        self,
        recipients: Sequence[str],
        subject: str,
        body: str,
        newsletter_id: Optional[str] = None,
    ) -> List[BroadcastOutcome]:
        """
        Send ``body`` to every address and wait for all sends to settle.

        Outcomes are returned in input order. The fan-out is shielded: if
        the caller is cancelled (e.g. the client disconnects), deliveries
        already dispatched still run to completion. ``newsletter_id`` only
        tags the per-recipient log lines.
        """
        if not recipients:
            return []

        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrency))
        fan_out = asyncio.gather(
            *(self._deliver(semaphore, address, subject, body, newsletter_id) for address in recipients)
        )
        outcomes = await asyncio.shield(fan_out)
        return list(outcomes)


def summarize(outcomes: Sequence[BroadcastOutcome]) -> BroadcastSummary:
    failed = [
        FailedDelivery(email=o.email, reason=o.error or "unknown error")
        for o in outcomes
        if not o.succeeded
    ]
    return BroadcastSummary(
        recipient_count=len(outcomes),
        success_count=len(outcomes) - len(failed),
        failure_count=len(failed),
        failed=failed,
    )
