"""
Basic-auth gate.

The server core only sees an `Authorizer`: a predicate over the raw
Authorization header value. Decoding the credentials happens here.
"""

import base64
import binascii
import hmac
from typing import Callable, Optional

Authorizer = Callable[[Optional[str]], bool]


def decode_basic(header: Optional[str]) -> Optional[tuple[str, str]]:
    """Return (username, password) from a `Basic <base64>` header, or None."""
    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "basic" or not token:
        return None
    try:
        decoded = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    if ":" not in decoded:
        return None
    username, password = decoded.split(":", 1)
    return username, password


class BasicAuth:
    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    def __call__(self, header: Optional[str]) -> bool:
        credentials = decode_basic(header)
        if credentials is None:
            return False
        username, password = credentials
        user_ok = hmac.compare_digest(username.encode(), self.username.encode())
        pass_ok = hmac.compare_digest(password.encode(), self.password.encode())
        return user_ok and pass_ok

    @classmethod
    def parse(cls, value: str) -> "BasicAuth":
        """Build from a `user:password` string."""
        if ":" not in value:
            raise ValueError("Credentials must look like user:password")
        username, password = value.split(":", 1)
        return cls(username, password)
