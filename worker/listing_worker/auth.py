from __future__ import annotations

import logging

from listing_worker import portal
from listing_worker.errors import AuthError, DriverTimeoutError
from listing_worker.fetchers.base import PageDriver
from listing_worker.models import Credentials
from listing_worker.otp import OtpGenerator, TotpGenerator

MAX_OTP_ATTEMPTS = 3

logger = logging.getLogger(__name__)


class SessionAuthenticator:
    """Signs in to the seller portal and selects the account to list under.

    Waits that exceed the run's timeout budget surface as
    ``DriverTimeoutError`` and are left for the caller to handle.
    """

    def __init__(
        self,
        sign_in_url: str,
        region_name: str = "日本",
        otp_generator: OtpGenerator | None = None,
        otp_retry_delay_ms: int = 1500,
    ) -> None:
        self.sign_in_url = sign_in_url
        self.region_name = region_name
        self.otp_generator = otp_generator or TotpGenerator()
        self.otp_retry_delay_ms = otp_retry_delay_ms

    async def sign_in(self, page: PageDriver, credentials: Credentials, account_name: str) -> None:
        if not credentials.is_complete():
            raise AuthError("missing_credentials")

        await page.goto(self.sign_in_url)
        if not await page.is_present(portal.EMAIL_INPUT):
            logger.info("Session already authenticated; skipping sign-in")
            return

        await page.wait_visible(portal.EMAIL_INPUT)
        await page.fill(portal.EMAIL_INPUT, credentials.email)
        if await page.is_present(portal.EMAIL_NEXT_BUTTON):
            await page.click(portal.EMAIL_NEXT_BUTTON)

        await page.wait_visible(portal.PASSWORD_INPUT)
        await page.fill(portal.PASSWORD_INPUT, credentials.password)
        if not await page.is_present(portal.LOGIN_BUTTON):
            raise AuthError("control_not_found:login")
        await page.click(portal.LOGIN_BUTTON)
        await page.wait_for_load()

        await self._solve_otp_challenge(page, credentials.otp_secret)
        await self._select_account(page, account_name)
        logger.info("Signed in as %s", account_name)

    async def _solve_otp_challenge(self, page: PageDriver, otp_secret: str) -> None:
        if not await page.is_present(portal.OTP_INPUT):
            return

        for attempt in range(1, MAX_OTP_ATTEMPTS + 1):
            await page.wait_visible(portal.OTP_INPUT)
            code = self.otp_generator.generate(otp_secret)
            await page.fill(portal.OTP_INPUT, "")
            await page.fill(portal.OTP_INPUT, code)

            if not await page.is_present(portal.OTP_SUBMIT_BUTTON):
                raise AuthError("control_not_found:otp_submit")
            await page.click(portal.OTP_SUBMIT_BUTTON)
            await page.wait_for_load()

            if not await page.is_present(portal.OTP_INPUT):
                logger.debug("OTP challenge solved on attempt %d", attempt)
                return

            logger.warning("OTP attempt %d/%d rejected", attempt, MAX_OTP_ATTEMPTS)
            if attempt < MAX_OTP_ATTEMPTS:
                await page.pause(self.otp_retry_delay_ms)

        raise AuthError("otp_exhausted")

    async def _select_account(self, page: PageDriver, account_name: str) -> None:
        for name, selector in (
            ("account", portal.account_button(account_name)),
            ("region", portal.region_button(self.region_name)),
            ("select_account", portal.SELECT_ACCOUNT_BUTTON),
        ):
            try:
                await page.wait_visible(selector)
            except DriverTimeoutError as exc:
                raise AuthError(f"control_not_found:{name}") from exc
            await page.click(selector)
