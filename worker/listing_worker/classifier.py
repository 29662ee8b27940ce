from __future__ import annotations

import logging
from dataclasses import dataclass

from listing_worker import portal
from listing_worker.fetchers.base import PageDriver
from listing_worker.models import OutcomeKind

logger = logging.getLogger(__name__)


@dataclass
class Classification:
    kind: OutcomeKind
    listing_page: PageDriver | None = None


class ItemClassifier:
    """Searches the catalogue for one item and decides which branch applies.

    The brand-restriction check is a bounded negative wait: a notice that has
    not rendered within ``probe_timeout_ms`` counts as absent, so a very slow
    page can yield a false "not restricted".
    """

    def __init__(self, search_url: str, probe_timeout_ms: int = 3000, search_settle_ms: int = 1000) -> None:
        self.search_url = search_url
        self.probe_timeout_ms = probe_timeout_ms
        self.search_settle_ms = search_settle_ms

    async def classify(self, page: PageDriver, search_term: str) -> Classification:
        await page.goto(self.search_url)
        await page.wait_visible(portal.SEARCH_BOX)
        await page.click(portal.SEARCH_BOX)
        await page.fill(portal.SEARCH_BOX, search_term)
        await page.click(portal.SEARCH_SUBMIT_BUTTON)
        await page.pause(self.search_settle_ms)

        if await page.is_present(portal.NO_RESULTS_TEXT):
            logger.info("No catalogue match for %s", search_term)
            return Classification(OutcomeKind.NOT_FOUND)

        await page.wait_visible(portal.EXPAND_DETAIL_ICON)
        await page.click(portal.EXPAND_DETAIL_ICON)
        await page.wait_for_load()

        if await page.probe_visible(portal.BRAND_RESTRICTION_TEXT, self.probe_timeout_ms):
            logger.info("Brand approval required for %s", search_term)
            return Classification(OutcomeKind.BRAND_RESTRICTED)

        await page.wait_visible(portal.SECONDARY_OPTION_TOGGLE)
        await page.click(portal.SECONDARY_OPTION_TOGGLE)
        await page.wait_visible(portal.STANDARD_LISTING_CARD)
        await page.click(portal.STANDARD_LISTING_CARD)

        listing_page = await page.click_and_wait_popup(portal.LIST_PRODUCT_BUTTON)
        return Classification(OutcomeKind.SUCCESS, listing_page=listing_page)
