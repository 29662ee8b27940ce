from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from listing_worker.models import DEFAULT_ACCOUNT, Credentials

SIGN_IN_URL = (
    "https://sellercentral-japan.amazon.com/ap/signin?openid.pape.max_auth_age=0"
    "&openid.return_to=https%3A%2F%2Fsellercentral-japan.amazon.com%2Fproduct-search%3Fref%3Dxx_catadd_dnav_xx"
    "&openid.identity=http%3A%2F%2Fspecs.openid.net%2Fauth%2F2.0%2Fidentifier_select"
    "&openid.assoc_handle=sc_jp_amazon_com_v2&openid.mode=checkid_setup&language=ja_JP"
    "&openid.claimed_id=http%3A%2F%2Fspecs.openid.net%2Fauth%2F2.0%2Fidentifier_select"
    "&pageId=sc_amazon_v3_unified&openid.ns=http%3A%2F%2Fspecs.openid.net%2Fauth%2F2.0"
)
PRODUCT_SEARCH_URL = "https://sellercentral-japan.amazon.com/product-search?ref=xx_catadd_dnav_xx"


class WorkerSettings(BaseSettings):
    seller_email: str = ""
    seller_password: str = ""
    otp_secret: str = ""
    account_name: str = DEFAULT_ACCOUNT.value
    region_name: str = "日本"

    headless: bool = True
    slow_mo_ms: int | None = None
    proxy_url: str | None = None

    # Uniform budget for navigation and element waits within a run.
    step_timeout_ms: int = Field(default=5000, ge=1)
    probe_timeout_ms: int = Field(default=3000, ge=0)
    otp_retry_delay_ms: int = Field(default=1500, ge=0)
    search_settle_ms: int = Field(default=1000, ge=0)
    register_settle_ms: int = Field(default=1000, ge=0)

    sign_in_url: str = SIGN_IN_URL
    product_search_url: str = PRODUCT_SEARCH_URL

    model_config = SettingsConfigDict(env_file=".env", env_prefix="LISTING_")

    def credentials(self) -> Credentials:
        return Credentials(email=self.seller_email, password=self.seller_password, otp_secret=self.otp_secret)


@lru_cache
def get_settings() -> WorkerSettings:
    return WorkerSettings()
