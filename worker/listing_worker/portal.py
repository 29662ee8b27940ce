"""Controls of the seller portal, as seen by a Japanese-locale browser."""

import re

from listing_worker.fetchers.base import Selector

# Sign-in
EMAIL_INPUT = Selector.role("textbox", "携帯電話番号またはEメールアドレスを入力します")
EMAIL_NEXT_BUTTON = Selector.role("button", "次に進む")
PASSWORD_INPUT = Selector.role("textbox", "パスワード")
LOGIN_BUTTON = Selector.role("button", "ログイン")
OTP_INPUT = Selector.role("textbox", "コードを入力する:")
OTP_SUBMIT_BUTTON = Selector.role("button", "サインイン")
SELECT_ACCOUNT_BUTTON = Selector.role("button", "アカウントを選択")


def account_button(account_name: str) -> Selector:
    return Selector.role("button", account_name)


def region_button(region_name: str) -> Selector:
    return Selector.role("button", region_name)


# Product search
SEARCH_BOX = Selector.role("textbox", "商品名、説明、キーワードを入力")
SEARCH_SUBMIT_BUTTON = Selector.role("button", "検索", within=Selector.test_id("omnibox-submit-button"))
NO_RESULTS_TEXT = Selector.text("検索クエリに一致する結果が見つかりません")
EXPAND_DETAIL_ICON = Selector.text("\ue005")  # icon-font glyph on the result row
BRAND_RESTRICTION_TEXT = Selector.text("このブランドには出品許可が必要です。")
SECONDARY_OPTION_TOGGLE = Selector.css("#katal-id-6")
STANDARD_LISTING_CARD = Selector.css(".standard-option-content")
LIST_PRODUCT_BUTTON = Selector.role("button", "この商品を出品する")

# Listing form
SKU_INPUT = Selector.role("textbox", "SKU")
MERCHANT_FULFILLED_OPTION = Selector.css("kat-box", has_text="私はこの商品を自分で発送します")
STOCK_INPUT = Selector.role("spinbutton", "在庫数")
PRICE_INPUT = Selector.role("textbox", "商品の販売価格")
FORM_SUBMIT = Selector.css("div", has_text=re.compile(r"^送信$"))
REGISTER_BUTTON = Selector.role("button", "商品の登録")
