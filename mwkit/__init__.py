__version__ = "0.1.0"

from mwkit.client import Client
from mwkit.cookies import Cookie, CookieJar
from mwkit.errors import (
    MWKitError,
    HTTPError,
    MediaWikiApiError,
    LoginError,
    NotAuthorizedError,
    SiteInfoNotLoadedError,
)
from mwkit.models import Response
from mwkit.session import Session
from mwkit.wiki import MediaWiki
from mwkit.responses import (
    MediaWikiUser,
    PageResponse,
    ParseResponse,
    SummaryResponse,
    UserInfoResponse,
    TokensResponse,
    EditPageResponse,
)

__all__ = [
    "__version__",
    "Client",
    "Cookie",
    "CookieJar",
    "Response",
    "Session",
    "MediaWiki",
    "MWKitError",
    "HTTPError",
    "MediaWikiApiError",
    "LoginError",
    "NotAuthorizedError",
    "SiteInfoNotLoadedError",
    "MediaWikiUser",
    "PageResponse",
    "ParseResponse",
    "SummaryResponse",
    "UserInfoResponse",
    "TokensResponse",
    "EditPageResponse",
]
