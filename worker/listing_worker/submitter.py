from __future__ import annotations

import logging

from listing_worker import portal
from listing_worker.fetchers.base import PageDriver
from listing_worker.models import Item, OutcomeKind

logger = logging.getLogger(__name__)


class ListingSubmitter:
    def __init__(self, probe_timeout_ms: int = 3000, register_settle_ms: int = 1000) -> None:
        self.probe_timeout_ms = probe_timeout_ms
        self.register_settle_ms = register_settle_ms

    async def submit(self, listing_page: PageDriver, item: Item) -> OutcomeKind:
        """Fill and submit the registration form; the page is always closed."""
        try:
            return await self._submit(listing_page, item)
        finally:
            await listing_page.close()

    async def _submit(self, listing_page: PageDriver, item: Item) -> OutcomeKind:
        await listing_page.click(portal.SKU_INPUT)
        await listing_page.fill(portal.SKU_INPUT, item.identifier)
        await listing_page.click(portal.MERCHANT_FULFILLED_OPTION)
        await listing_page.fill(portal.STOCK_INPUT, item.stock_text)
        await listing_page.fill(portal.PRICE_INPUT, item.price_text)
        await listing_page.click(portal.FORM_SUBMIT)

        # A missing register button means validation rejected the form. Nothing
        # has been saved at that point, so no rollback is attempted.
        if not await listing_page.probe_visible(portal.REGISTER_BUTTON, self.probe_timeout_ms):
            logger.info("Listing form rejected for %s", item.identifier)
            return OutcomeKind.INVALID_INPUT

        await listing_page.click(portal.REGISTER_BUTTON)
        await listing_page.wait_for_load()
        await listing_page.pause(self.register_settle_ms)
        return OutcomeKind.SUCCESS
