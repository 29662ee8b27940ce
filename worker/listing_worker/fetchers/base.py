from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Selector:
    """Locates the first matching element on a page, in document order.

    ``by`` is one of ``role``, ``text``, ``css`` or ``test_id``. ``name`` is the
    accessible name for role lookups, ``has_text`` narrows css matches, and
    ``within`` scopes the lookup to another element.
    """

    by: str
    value: str
    name: str | None = None
    has_text: str | re.Pattern[str] | None = None
    within: Selector | None = None

    @classmethod
    def role(cls, role: str, name: str, within: Selector | None = None) -> Selector:
        return cls(by="role", value=role, name=name, within=within)

    @classmethod
    def text(cls, text: str) -> Selector:
        return cls(by="text", value=text)

    @classmethod
    def css(cls, selector: str, has_text: str | re.Pattern[str] | None = None) -> Selector:
        return cls(by="css", value=selector, has_text=has_text)

    @classmethod
    def test_id(cls, test_id: str) -> Selector:
        return cls(by="test_id", value=test_id)

    def describe(self) -> str:
        label = self.name or self.value
        if isinstance(self.has_text, re.Pattern):
            label = f"{label}[{self.has_text.pattern}]"
        elif self.has_text:
            label = f"{label}[{self.has_text}]"
        if self.within:
            return f"{self.within.describe()} > {label}"
        return label


class PageDriver(ABC):
    """One browsing context: the main page or a popup opened from it.

    Every wait raises ``DriverTimeoutError`` once its budget is exceeded, except
    ``probe_visible`` which turns an elapsed budget into ``False``.
    """

    @abstractmethod
    async def goto(self, url: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def wait_for_load(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def count(self, selector: Selector) -> int:
        raise NotImplementedError

    @abstractmethod
    async def wait_visible(self, selector: Selector, timeout_ms: int | None = None) -> None:
        raise NotImplementedError

    @abstractmethod
    async def probe_visible(self, selector: Selector, timeout_ms: int) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def click(self, selector: Selector) -> None:
        raise NotImplementedError

    @abstractmethod
    async def fill(self, selector: Selector, text: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def click_and_wait_popup(self, selector: Selector) -> PageDriver:
        raise NotImplementedError

    @abstractmethod
    async def pause(self, milliseconds: int) -> None:
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError

    async def is_present(self, selector: Selector) -> bool:
        return await self.count(selector) > 0


class BrowserSession(ABC):
    @abstractmethod
    async def new_page(self) -> PageDriver:
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError
