"""
Getter wrappers around decoded MediaWiki API responses.

The API returns plain JSON; these classes keep the raw payload available
while exposing the handful of fields callers usually want.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .wiki import MediaWiki


@dataclass
class MediaWikiUser:
    user_id: int
    user_name: str


class _ApiResponse:
    def __init__(self, data: dict[str, Any] | None) -> None:
        self.data: dict[str, Any] = data if isinstance(data, dict) else {}
        self.batchcomplete = self.data.get("batchcomplete", False)
        self.query: dict[str, Any] = self.data.get("query") or {}
        self.warnings = self.data.get("warnings")
        self.errors = self.data.get("errors")

    def has_warnings(self) -> bool:
        return self.warnings is not None

    def has_errors(self) -> bool:
        return self.errors is not None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.data!r}>"


def _pages(query: dict[str, Any]) -> list[dict[str, Any]]:
    # formatversion=2 returns a list, formatversion=1 a dict keyed by page id.
    pages = query.get("pages")
    if isinstance(pages, dict):
        return list(pages.values())
    if isinstance(pages, list):
        return pages
    return []


class PageResponse(_ApiResponse):
    """Page content and metadata for the first page of a ``page()`` call."""

    def __init__(self, data: dict[str, Any] | None, wiki: MediaWiki) -> None:
        super().__init__(data)
        self.wiki = wiki
        pages = _pages(self.query)
        self.page_details: dict[str, Any] | None = pages[0] if pages else None

    def html(self) -> str:
        return (self.page_details or {}).get("extract") or ""

    def title(self) -> str:
        return (self.page_details or {}).get("title") or ""

    def categories(self) -> list[str]:
        cats = (self.page_details or {}).get("categories") or []
        return [c["title"] for c in cats if isinstance(c, dict) and "title" in c]

    def edit(self, **options: Any) -> EditPageResponse:
        """Edit this page; ``text`` is required, the target comes from the page."""
        if not self.page_details:
            raise ValueError("Page details not available for editing.")
        pageid = self.page_details.get("pageid")
        title = self.page_details.get("title")
        if not pageid and not title:
            raise ValueError("Page title or ID is required for editing.")
        if not isinstance(options.get("text"), str):
            raise ValueError("Parameter 'text' is required for editing.")

        options.pop("title", None)
        options.pop("pageid", None)
        if pageid:
            options["pageid"] = pageid
        else:
            options["title"] = title
        return self.wiki.edit_page(**options)


class ParseResponse(_ApiResponse):
    def __init__(self, data: dict[str, Any] | None) -> None:
        super().__init__(data)
        self.parse: dict[str, Any] = self.data.get("parse") or {}

    def text(self) -> str:
        text = self.parse.get("text")
        # formatversion=1 wraps content as {"*": "..."}
        if isinstance(text, dict):
            return text.get("*", "")
        return text or ""

    html = text

    def title(self) -> str:
        return self.parse.get("title") or ""

    def categories(self) -> list[str]:
        out: list[str] = []
        for cat in self.parse.get("categories") or []:
            if isinstance(cat, dict):
                name = cat.get("category") or cat.get("*")
                if name:
                    out.append(name)
        return out


class SummaryResponse(_ApiResponse):
    def text(self) -> str:
        pages = _pages(self.query)
        if not pages:
            return ""
        return pages[0].get("extract") or ""


class UserInfoResponse(_ApiResponse):
    @property
    def userinfo(self) -> dict[str, Any]:
        return self.query.get("userinfo") or {}

    def is_anonymous(self) -> bool:
        info = self.userinfo
        return info.get("anon") is True or info.get("anon") == "" or info.get("id") == 0

    def user_id(self) -> int:
        return self.userinfo.get("id", -1)

    def user_name(self) -> str:
        return self.userinfo.get("name", "")

    def user_info(self) -> dict[str, Any]:
        return self.userinfo

    def user_options(self) -> dict[str, Any]:
        return self.userinfo.get("options") or {}


class TokensResponse(_ApiResponse):
    @property
    def tokens(self) -> dict[str, str]:
        return self.query.get("tokens") or {}

    def _token(self, name: str) -> str:
        return self.tokens.get(name, "")

    def csrf_token(self) -> str:
        return self._token("csrftoken")

    # The edit token is the csrf token since MediaWiki 1.24.
    edit_token = csrf_token

    def watch_token(self) -> str:
        return self._token("watchtoken")

    def patrol_token(self) -> str:
        return self._token("patroltoken")

    def rollback_token(self) -> str:
        return self._token("rollbacktoken")

    def user_rights_token(self) -> str:
        return self._token("userrightstoken")

    def login_token(self) -> str:
        return self._token("logintoken")

    def create_account_token(self) -> str:
        return self._token("createaccounttoken")


class EditPageResponse(_ApiResponse):
    """Result of ``action=edit``. Missing fields fall back to neutral defaults."""

    def __init__(self, data: dict[str, Any] | None) -> None:
        super().__init__(data)
        # action=edit answers at the top level, not under "query".
        self.edit: dict[str, Any] = self.data.get("edit") or self.query.get("edit") or {}

    def result(self) -> str:
        return self.edit.get("result", "Unknown")

    def page_id(self) -> int:
        return self.edit.get("pageid", 0)

    def title(self) -> str:
        return self.edit.get("title", "")

    def content_model(self) -> str:
        return self.edit.get("contentmodel", "")

    def old_revision_id(self) -> int:
        return self.edit.get("oldrevid", 0)

    def new_revision_id(self) -> int:
        return self.edit.get("newrevid", 0)

    def new_timestamp(self) -> str:
        return self.edit.get("newtimestamp", "")

    def is_watched(self) -> bool:
        return bool(self.edit.get("watched", False))

    def get_warnings(self) -> Any:
        return self.warnings

    def get_errors(self) -> Any:
        return self.errors
