import httpx

from shared.config.settings import HTTP_TIMEOUT_SECONDS, NOTIFY_DRAIN_SECONDS

from .clients import HttpCatalogLookup, HttpOrderStore, HttpVendorNotifier
from .engine import CheckoutEngine
from .fanout import order_number_for
from .schemas import Cart, CheckoutResponse, FulfillmentResult

RETRY_MESSAGE = "There was an error processing your order. Please try again."
UNAVAILABLE_MESSAGE = "None of the items in your cart can be ordered right now. Please update your cart."


def placement_message(result: FulfillmentResult) -> str:
    if result.order_count > 1:
        return f"Your {result.order_count} orders have been placed with different vendors."
    return f"Your order #{order_number_for(result.primary_order_id)} has been placed."


class CheckoutService:
    def __init__(self, engine: CheckoutEngine, client: httpx.AsyncClient | None = None):
        self.engine = engine
        self.client = client

    @classmethod
    def over_http(cls) -> "CheckoutService":
        """Engine wired to the catalog, order and notification services."""
        client = httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)
        engine = CheckoutEngine(
            catalog=HttpCatalogLookup(client),
            store=HttpOrderStore(client),
            notifier=HttpVendorNotifier(client),
        )
        return cls(engine, client)

    async def checkout(self, cart: Cart) -> CheckoutResponse:
        result = await self.engine.create_order(cart)
        return CheckoutResponse(**result.model_dump(), message=placement_message(result))

    async def close(self):
        # Give detached vendor notifications a chance to finish before the client goes away
        await self.engine.dispatcher.drain(timeout=NOTIFY_DRAIN_SECONDS)
        if self.client is not None:
            await self.client.aclose()
