"""
Status transition controller.

Drives the admin order list: offers only the statuses the transition table
allows, runs the cancellation confirmation step, and reloads the whole list
after every successful change instead of trusting local state.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional

import httpx

from ordertrack.app.domain.orders.transitions import allowed_next
from ordertrack.app.models.order_enums import OrderStatus
from ordertrack.app.schemas.order import OrderResponse
from ordertrack.client.api_client import OrdersApiClient
from ordertrack.client.errors import (
    ApiError,
    InvalidTransition,
    MissingReason,
    TransitionRejected,
)

logger = logging.getLogger(__name__)

# Blocking confirmation step: returns the reason typed by the user, or None if dismissed
ConfirmCancellation = Callable[[OrderResponse], Awaitable[Optional[str]]]


class StatusTransitionController:
    def __init__(
        self,
        api: OrdersApiClient,
        confirm_cancellation: ConfirmCancellation,
        on_orders_loaded: Optional[Callable[[List[OrderResponse]], None]] = None,
    ):
        self._api = api
        self._confirm_cancellation = confirm_cancellation
        self._on_orders_loaded = on_orders_loaded
        self._orders: Dict[int, OrderResponse] = {}
        self.load_error: Optional[str] = None

    @property
    def orders(self) -> List[OrderResponse]:
        return list(self._orders.values())

    def get(self, order_id: int) -> Optional[OrderResponse]:
        return self._orders.get(order_id)

    async def load_orders(self) -> List[OrderResponse]:
        """Replace the local order list with the service's."""
        orders = await self._api.get_all_orders()
        self._orders = {order.id: order for order in orders}
        self.load_error = None
        if self._on_orders_loaded:
            self._on_orders_loaded(orders)
        return orders

    def options_for(self, order_id: int) -> List[OrderStatus]:
        """Statuses to offer for an order, in lifecycle order."""
        order = self._orders.get(order_id)
        if order is None:
            return []
        allowed = allowed_next(order.status)
        return [status for status in OrderStatus if status in allowed]

    async def request_transition(self, order_id: int, target_status: OrderStatus | str) -> OrderResponse:
        """
        Request one status change.

        Args:
            order_id: Order to change
            target_status: Requested status

        Returns:
            The order as returned by the service (authoritative)

        Raises:
            InvalidTransition: Target not allowed from the current status (nothing sent)
            MissingReason: Cancelling with an empty or blank reason (nothing sent)
            TransitionRejected: The service refused; message is the service's own
        """
        # Transitions are offered from the loaded list; an order missing from
        # it costs one list fetch before the check, never a status update
        order = self._orders.get(order_id)
        if order is None:
            await self.load_orders()
            order = self._orders.get(order_id)
            if order is None:
                raise TransitionRejected(f"Order {order_id} not found", status_code=404)

        target = OrderStatus(target_status)
        if target not in allowed_next(order.status):
            raise InvalidTransition(order.status.value, target.value)

        reason = None
        if target == OrderStatus.CANCELLED:
            reason = (await self._confirm_cancellation(order) or "").strip()
            if not reason:
                raise MissingReason()

        # Not retried: a status change sends notifications
        try:
            updated = await self._api.update_order_status(order_id, target, reason)
        except ApiError as exc:
            logger.warning("Status change %s -> %s refused for order %s: %s",
                           order.status.value, target.value, order_id, exc.message)
            raise TransitionRejected(exc.message, status_code=exc.status_code) from exc
        except httpx.HTTPError as exc:
            logger.warning("Status change for order %s failed: %s", order_id, exc)
            raise TransitionRejected(f"Failed to update order status: {exc}") from exc

        logger.info("Order %s status %s -> %s", order_id, order.status.value, updated.status.value)
        await self._reload_after_transition()
        return updated

    async def _reload_after_transition(self) -> None:
        try:
            await self.load_orders()
        except (ApiError, httpx.HTTPError) as exc:
            # The change went through; only the list is stale
            self.load_error = f"Failed to load orders. {exc}"
            logger.warning("Order list reload failed: %s", exc)
