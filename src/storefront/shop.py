"""The storefront service: composition root for carts and checkout.

``Storefront`` owns the collaborators and hands out owner-scoped cart stores,
the login merger and checkout flows. Nothing cart related is global; every
operation goes through a store scoped to one owner identity, and carts are
persisted through the storefront domain's repository.
"""

from storefront.adapters.memory import InMemoryCatalogue, InMemoryOrderDesk, StaticCheckoutConfiguration
from storefront.cart.cart import Cart, CartOwner
from storefront.cart.merge import CartMerger
from storefront.cart.stock import StockGuard
from storefront.cart.store import CartStore
from storefront.catalogue import CatalogueLookup
from storefront.checkout.flow import CheckoutFlow
from storefront.checkout.order import OrderDesk
from storefront.config import Settings, settings as default_settings
from storefront.pricing.configuration import CheckoutConfiguration
from storefront.pricing.engine import PricingEngine
from storefront.results import Accepted, Result


class Storefront:
    def __init__(
        self,
        catalogue: CatalogueLookup,
        configuration: CheckoutConfiguration,
        orders: OrderDesk,
        settings: Settings | None = None,
    ):
        self.settings = settings or default_settings
        self.catalogue = catalogue
        self.configuration = configuration
        self.orders = orders
        self.guard = StockGuard()
        self.engine = PricingEngine(free_shipping_method=self.settings.free_shipping_method)
        self._checkouts: dict[str, CheckoutFlow] = {}

    @classmethod
    def in_memory(
        cls,
        settings: Settings | None = None,
        catalogue: InMemoryCatalogue | None = None,
        configuration: CheckoutConfiguration | None = None,
        orders: OrderDesk | None = None,
    ) -> "Storefront":
        catalogue = catalogue if catalogue is not None else InMemoryCatalogue()
        return cls(
            catalogue=catalogue,
            configuration=configuration if configuration is not None else StaticCheckoutConfiguration(),
            orders=orders if orders is not None else InMemoryOrderDesk(catalogue),
            settings=settings,
        )

    # -------------------------------------------------------------------
    # Carts
    # -------------------------------------------------------------------
    def cart_store(self, owner: CartOwner) -> CartStore:
        return CartStore(owner, self.catalogue, guard=self.guard)

    def merger(self) -> CartMerger:
        return CartMerger(catalogue=self.catalogue, policy=self.settings.merge_policy, guard=self.guard)

    async def login(self, guest: CartOwner, user: CartOwner) -> Accepted[Cart]:
        """Run the guest → user merge; call before serving the user's cart."""
        return await self.merger().merge(guest, user)

    # -------------------------------------------------------------------
    # Checkout sessions
    # -------------------------------------------------------------------
    async def begin_checkout(self, owner: CartOwner) -> Result[CheckoutFlow]:
        result = await CheckoutFlow.begin(
            self.cart_store(owner),
            self.configuration,
            self.orders,
            engine=self.engine,
            settings=self.settings,
            on_end=lambda session: self.end_checkout(session.session_id),
        )
        if result.ok:
            flow = result.value
            self._checkouts[flow.session.session_id] = flow
        return result

    def checkout(self, session_id: str) -> CheckoutFlow | None:
        return self._checkouts.get(session_id)

    def end_checkout(self, session_id: str) -> None:
        self._checkouts.pop(session_id, None)

    @property
    def open_checkouts(self) -> int:
        return len(self._checkouts)
