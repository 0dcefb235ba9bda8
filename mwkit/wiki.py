from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from .backoff import RetryError
from .cookies import Cookie
from .errors import (
    LoginError,
    MediaWikiApiError,
    NotAuthorizedError,
    SiteInfoNotLoadedError,
)
from .models import Response
from .responses import (
    EditPageResponse,
    MediaWikiUser,
    PageResponse,
    ParseResponse,
    SummaryResponse,
    TokensResponse,
    UserInfoResponse,
)
from .session import Session
from .utils import filter_params, with_query

logger = logging.getLogger(__name__)

QUERY_OPTIONS = (
    "prop",
    "list",
    "meta",
    "indexpageids",
    "export",
    "titles",
    "pageids",
    "redirects",
    "srsearch",
    "srnamespace",
    "srlimit",
    "srprop",
    "srwhat",
    "srinfo",
    "rvlimit",
    "exintro",
    "explaintext",
    "uiprop",
    "type",
)


class MediaWiki:
    """
    Client for the MediaWiki Action API.

    Args:
        base_url: Wiki API endpoint; ``/api.php`` is appended when missing
        servedby, curtimestamp, responselanginfo, requestid, ascii, utf8:
            Global API parameters sent with every request when set
        format: Response format; only ``"json"`` is supported
        formatversion: JSON format version (default: 2)
        session: Session to send requests through; one is created otherwise
        **session_kwargs: Arguments for the Session/Client created when
            ``session`` is not given; combining both raises TypeError

    Example:
        with MediaWiki("https://en.wikipedia.org/w") as wiki:
            print(wiki.summary("Python (programming language)").text())
    """

    def __init__(
        self,
        base_url: str,
        *,
        servedby: bool | None = None,
        curtimestamp: bool | None = None,
        responselanginfo: bool | None = None,
        requestid: str | None = None,
        format: str = "json",
        formatversion: int = 2,
        ascii: bool | None = None,
        utf8: bool | None = None,
        session: Session | None = None,
        **session_kwargs,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        if session is not None and session_kwargs:
            raise TypeError(
                f"Session options {sorted(session_kwargs)} cannot be combined with session="
            )
        if format != "json":
            raise ValueError(
                f'Expected "json" format but got "{format}". Only JSON responses are supported.'
            )
        base_url = base_url.rstrip("/")
        self.base_url = base_url if base_url.endswith("/api.php") else f"{base_url}/api.php"
        self.params: dict[str, Any] = {
            "servedby": servedby,
            "curtimestamp": curtimestamp,
            "responselanginfo": responselanginfo,
            "requestid": requestid,
            "format": format,
            "formatversion": formatversion,
            "ascii": ascii,
            "utf8": utf8,
        }
        self.session = session if session is not None else Session(**session_kwargs)
        self.authorized = False
        self.site_info_data: dict[str, Any] | None = None

    # -- transport ---------------------------------------------------------

    def _merge_params(self, params: dict[str, Any] | None) -> dict[str, str]:
        # Caller keys follow the defaults, keeping a trailing token last.
        merged = filter_params(self.params)
        merged.update(filter_params(params or {}))
        return merged

    def fetch_data(
        self,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Send one API request and return the decoded JSON body.

        GET requests carry ``params`` in the query string, POST requests in a
        form-encoded body. Cookies are scoped to the API endpoint.
        """
        merged = self._merge_params(params)
        method = method.upper()
        try:
            if method == "GET":
                resp = self.session.request(
                    "GET",
                    with_query(self.base_url, merged),
                    headers=headers,
                    cookie_url=self.base_url,
                )
            else:
                resp = self.session.request(
                    method,
                    self.base_url,
                    headers=headers,
                    data=merged,
                    cookie_url=self.base_url,
                )
        except RetryError as exc:
            # Out of retries on an error status: report it like any other API error.
            if exc.response is None:
                raise
            resp = exc.response
        return self._decode(resp)

    def _decode(self, resp: Response) -> Any:
        text = resp.text
        if not resp.ok:
            try:
                response_data = json.loads(text)
            except ValueError:
                response_data = None
            raise MediaWikiApiError(
                f"Request failed with status {resp.status_code}",
                resp.status_code,
                text,
                response_data,
            )
        try:
            return json.loads(text)
        except ValueError as exc:
            raise MediaWikiApiError(
                f"Invalid JSON in response with status {resp.status_code}",
                resp.status_code,
                text,
            ) from exc

    def _post(self, params: dict[str, Any]) -> Any:
        return self.fetch_data("POST", params=params)

    # -- authentication ----------------------------------------------------

    def login(self, username: str, password: str) -> MediaWikiUser:
        """
        Log in with ``action=login``.

        Use BotPasswords (``User@BotName``); main-account passwords are
        rejected by most wikis for this flow.
        """
        token_response = self.query(meta=["tokens"], type="login")
        query = (token_response or {}).get("query") or {}
        login_token = (query.get("tokens") or {}).get("logintoken")
        if not login_token:
            raise LoginError("Failed to retrieve initial login token")

        login_response = self._post(
            {
                "action": "login",
                "lgname": username,
                "lgpassword": password,
                "lgtoken": login_token,
            }
        )
        details = (login_response or {}).get("login") or {}

        if details.get("result") == "NeedToken":
            challenge = details.get("token")
            if not challenge:
                raise LoginError(
                    'Login responded with "NeedToken" but did not provide a challenge token.'
                )
            login_response = self._post(
                {
                    "action": "login",
                    "lgname": username,
                    "lgpassword": password,
                    "lgtoken": challenge,
                }
            )
            details = (login_response or {}).get("login") or {}

        result = details.get("result")
        if result != "Success":
            reason = details.get("reason") or "Unknown reason"
            if isinstance(reason, dict):
                reason = reason.get("text") or reason.get("code") or "Unknown reason"
            logger.info("Login for %s failed: %s", username, result)
            raise LoginError(f"Login failed. Result: {result}, Reason: {reason}")

        self.authorized = True
        user = MediaWikiUser(user_id=details.get("lguserid"), user_name=details.get("lgusername"))
        logger.info("Logged in as %s", user.user_name)
        return user

    def logout(self) -> bool:
        if not self.authorized:
            raise NotAuthorizedError("You are not authorized.")
        token = self.get_token(["csrf"]).csrf_token()
        if not token:
            raise MediaWikiApiError("Failed to retrieve csrf token for logout", 200)

        response = self._post({"action": "logout", "token": token})
        if isinstance(response, dict) and response.get("error"):
            raise MediaWikiApiError("Logout failed", 200, json.dumps(response), response)
        self.authorized = False
        logger.info("Logged out")
        return True

    def is_authorized(self) -> bool:
        return self.authorized

    def is_logged_in(self) -> bool:
        return not self.user_info().is_anonymous()

    # -- client state ------------------------------------------------------

    def get_base_url(self) -> str:
        return self.base_url

    def get_params(self) -> dict[str, Any]:
        return dict(self.params)

    def get_cookies(self) -> list[Cookie]:
        return self.session.cookies.get_cookies(self.base_url)

    def get_debug_info(self) -> dict[str, Any]:
        return {
            "base_url": self.base_url,
            "params": self.get_params(),
            "authorized": self.authorized,
            "cookies": self.get_cookies(),
        }

    # -- site info ---------------------------------------------------------

    def site_info(self) -> dict[str, Any]:
        res = self.query(meta=["siteinfo"], siprop=["general", "namespaces"])
        self.site_info_data = (res or {}).get("query") or None
        return res

    def _assert_site_info(self) -> dict[str, Any]:
        if not self.site_info_data:
            raise SiteInfoNotLoadedError("siteInfo not loaded. Call site_info() first.")
        return self.site_info_data

    def get_site_name(self) -> str | None:
        general = self._assert_site_info().get("general") or {}
        name = general.get("sitename")
        return name if isinstance(name, str) else None

    def get_namespace_list(self) -> dict[str, Any] | None:
        return self._assert_site_info().get("namespaces") or None

    def get_namespace_array(self) -> list[dict[str, Any]]:
        namespaces = self._assert_site_info().get("namespaces")
        if not isinstance(namespaces, dict):
            return []
        return [
            {"id": int(ns_id), "name": ns.get("name", ns.get("*"))}
            for ns_id, ns in namespaces.items()
        ]

    # -- API actions -------------------------------------------------------

    def query(self, **options: Any) -> Any:
        """
        Run ``action=query`` with any mix of ``prop``, ``list`` and ``meta``.

        Known options are validated for conflicting combinations; any other
        keyword (``siprop``, ``rnlimit``, continuation keys...) is passed
        through unchanged.
        """
        title = options.pop("title", None)
        titles = options.get("titles")
        pageids = options.get("pageids")

        if title and titles:
            raise ValueError('Use either "title" or "titles", not both.')
        if titles and pageids:
            raise ValueError('Cannot use both "titles" and "pageids". Use only one identifier method.')
        if title:
            options["titles"] = titles = [title]
        if titles and not (options.get("prop") or options.get("meta") or options.get("list")):
            raise ValueError('"titles" provided but no "prop", "meta", or "list" specified. Nothing to retrieve.')
        if options.get("export") and not titles:
            raise ValueError('"export" requires "titles" to be set.')
        if options.get("indexpageids") and not (titles or pageids):
            raise ValueError('"indexpageids" only works with "titles" or "pageids".')
        if options.get("redirects") and not (titles or pageids):
            raise ValueError('"redirects" has no effect without "titles", "pageids", or "title".')
        if options.get("prop") and not (titles or pageids):
            raise ValueError('"prop" requires either "titles" or "pageids".')

        params: dict[str, Any] = {"action": "query"}
        for key in QUERY_OPTIONS:
            if key in options:
                params[key] = options.pop(key)
        params.update(options)
        return self.fetch_data("GET", params=params)

    def page(self, titles: str | Sequence[str]) -> PageResponse:
        if isinstance(titles, str):
            titles = [titles]
        if not titles:
            raise ValueError("Missing or empty 'titles' - must be non-empty.")
        res = self.query(
            prop=["info", "extracts", "categories", "revisions"],
            titles=list(titles),
            indexpageids=True,
        )
        return PageResponse(res, self)

    def search(
        self,
        srsearch: str,
        srnamespace: Sequence[int | str] | None = None,
        srlimit: int | None = None,
    ) -> Any:
        if not srsearch or not srsearch.strip():
            raise ValueError('Missing "srsearch" - must be a non-empty string.')
        return self.query(
            list=["search"],
            srsearch=srsearch,
            srnamespace=list(srnamespace or []),
            srlimit=srlimit if srlimit is not None else 10,
        )

    def opensearch(
        self,
        search: str,
        limit: int | None = None,
        namespace: Sequence[int | str] | None = None,
        suggest: bool | None = None,
        **options: Any,
    ) -> Any:
        """Prefix search returning ``[query, titles, descriptions, urls]``."""
        if not search:
            raise ValueError("A search is required for the opensearch method.")
        params = {
            "action": "opensearch",
            "search": search,
            "limit": limit,
            "namespace": namespace,
            "suggest": suggest,
            **options,
        }
        return self.fetch_data("GET", params=params)

    def parse(
        self,
        page: str | None = None,
        pageid: int | None = None,
        text: str | None = None,
        **options: Any,
    ) -> ParseResponse:
        if not page and not pageid and not text:
            raise ValueError('You must provide either "page", "pageid" or "text" for the parse method.')
        params = {"action": "parse", "page": page, "pageid": pageid, "text": text, **options}
        return ParseResponse(self.fetch_data("GET", params=params))

    def _normalized_pages(self, res: Any) -> tuple[list[Any], list[Any]]:
        query = (res or {}).get("query") if isinstance(res, dict) else None
        if not isinstance(query, dict):
            return [], []
        pages = query.get("pages")
        if isinstance(pages, dict):
            pages = list(pages.values())
        elif not isinstance(pages, list):
            pages = []
        normalized = query.get("normalized")
        return pages, normalized if isinstance(normalized, list) else []

    def categories(self, title: str) -> dict[str, Any]:
        if not title:
            raise ValueError('Missing or invalid "title" - must be a non-empty string.')
        res = self.query(titles=[title], prop=["categories"])
        pages, normalized = self._normalized_pages(res)
        return {
            "continue": (res or {}).get("continue") or {},
            "query": {"normalized": normalized, "pages": pages},
        }

    def revisions(self, title: str, rvlimit: int | str | None = None) -> dict[str, Any]:
        if not title:
            raise ValueError('Missing or invalid "title" - must be a non-empty string.')
        res = self.query(titles=[title], prop=["revisions"], rvlimit=rvlimit)
        pages, normalized = self._normalized_pages(res)
        return {
            "batchcomplete": (res or {}).get("batchcomplete", False),
            "query": {"normalized": normalized, "pages": pages},
        }

    def summary(self, title: str) -> SummaryResponse:
        if not title:
            raise ValueError('Missing or invalid "title" - must be a non-empty string.')
        res = self.query(titles=[title], prop=["extracts"], exintro=True, explaintext=True)
        return SummaryResponse(res)

    def user_info(self) -> UserInfoResponse:
        return UserInfoResponse(self.query(meta=["userinfo"], uiprop="*"))

    def get_token(self, types: str | Sequence[str]) -> TokensResponse:
        if isinstance(types, str):
            types = [types]
        res = self.query(meta=["tokens"], type=list(types))
        if not isinstance(res, dict) or not (res.get("query") or {}).get("tokens"):
            raise MediaWikiApiError(
                "Failed to retrieve tokens or unexpected response structure",
                200,
                json.dumps(res),
                res,
            )
        return TokensResponse(res)

    def edit_page(
        self,
        title: str | None = None,
        pageid: int | None = None,
        text: str | None = None,
        **options: Any,
    ) -> EditPageResponse:
        """Edit a page by ``title`` or ``pageid`` using a fresh csrf token."""
        if not title and not pageid:
            raise ValueError('You must provide either "title" or "pageid" for the edit_page method.')
        if text is None and not ("appendtext" in options or "prependtext" in options):
            raise ValueError('You must provide "text", "appendtext" or "prependtext" to edit a page.')

        token = self.get_token(["csrf"]).csrf_token()
        params = {"action": "edit", "title": title, "pageid": pageid, "text": text, **options}
        # MediaWiki recommends sending the token last.
        params["token"] = token
        return EditPageResponse(self._post(params))

    def random(self, **options: Any) -> Any:
        return self.query(list=["random"], **options)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> MediaWiki:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
