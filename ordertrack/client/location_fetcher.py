"""
Location fetcher.

One ``poll`` per timer tick: calls the location-tracking endpoint and
returns either a fresh ``TrackingSessionModel`` or a typed failure. Never
raises for expected conditions; the widget turns failures into state.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Union

import httpx
from pydantic import ValidationError

from ordertrack.app.core.config import settings
from ordertrack.client.api_client import OrdersApiClient
from ordertrack.client.errors import ApiError
from ordertrack.client.tracking_session import TrackingSessionModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollFailure:
    message: str

    @property
    def user_message(self) -> str:
        return self.message


@dataclass(frozen=True)
class TrackingNotAvailable(PollFailure):
    """No delivery agent yet. A waiting state, not an error."""

    message: str = "Live tracking is not available yet. It starts once a delivery agent accepts the order."


@dataclass(frozen=True)
class FetchFailed(PollFailure):
    """Network or service failure. The next tick retries."""

    @property
    def user_message(self) -> str:
        return f"Unable to refresh the delivery location: {self.message}"


PollResult = Union[TrackingSessionModel, PollFailure]


class LocationFetcher:
    def __init__(self, api: OrdersApiClient, timeout_seconds: Optional[float] = None):
        self._api = api
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.poll_timeout_seconds

    async def poll(self, order_id: int) -> PollResult:
        """
        Fetch the live location payload for one order.

        Returns:
            TrackingSessionModel on success, ``TrackingNotAvailable`` when the
            service reports tracking disabled, ``FetchFailed`` otherwise
        """
        try:
            payload = await asyncio.wait_for(
                self._api.get_location_tracking(order_id), timeout=self.timeout_seconds
            )
            session = TrackingSessionModel.from_payload(payload)
        except asyncio.TimeoutError:
            logger.warning("Location poll for order %s timed out after %.1fs", order_id, self.timeout_seconds)
            return FetchFailed(f"request timed out after {self.timeout_seconds:g}s")
        except ApiError as exc:
            logger.warning("Location poll for order %s failed (%s): %s", order_id, exc.status_code, exc.message)
            return FetchFailed(exc.message)
        except httpx.HTTPError as exc:
            logger.warning("Location poll for order %s failed: %s", order_id, exc)
            return FetchFailed(str(exc) or type(exc).__name__)
        except ValidationError as exc:
            logger.warning("Location poll for order %s returned a malformed payload: %s", order_id, exc)
            return FetchFailed("malformed tracking data")

        if not session.is_ready():
            if session.message:
                return TrackingNotAvailable(session.message)
            return TrackingNotAvailable()
        return session
