"""Admin capability checks for mutating entry points.

The API asks a gate whether the current caller may change options. With an
admin token configured the caller must send it in ``X-Admin-Token``;
without one, only requests from the local machine are trusted (the
dashboard binds to 127.0.0.1 by default).
"""

import secrets
from typing import Optional

from fastapi import Request

ADMIN_TOKEN_HEADER = "X-Admin-Token"

LOOPBACK_HOSTS = frozenset({"127.0.0.1", "::1", "localhost"})


class TokenGate:
    """Header-token gate with a loopback fallback.

    >>> TokenGate("s3cret").token_configured
    True
    >>> TokenGate(None).token_configured
    False
    """

    def __init__(self, token: Optional[str] = None):
        self._token = token or None

    @property
    def token_configured(self) -> bool:
        return self._token is not None

    def has_admin_capability(self, request: Request) -> bool:
        if self._token is not None:
            supplied = request.headers.get(ADMIN_TOKEN_HEADER, "")
            return secrets.compare_digest(supplied.encode(), self._token.encode())
        client = request.client
        return client is not None and client.host in LOOPBACK_HOSTS


class LocalOperatorGate:
    """Gate for the CLI: whoever runs it already has the database file.

    >>> LocalOperatorGate().has_admin_capability(None)
    True
    """

    def has_admin_capability(self, request: Optional[Request] = None) -> bool:
        return True
