from typing import Dict, Optional

from pydantic import BaseModel, Field

from .errors import HttpError

HTTP_VERSION = "HTTP/1.1"

REASONS: Dict[int, str] = {
    200: "OK",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    500: "Internal Server Error",
    501: "Not Implemented",
}

TEXT_PLAIN = "text/plain; charset=utf-8"
TEXT_HTML = "text/html; charset=utf-8"


class Response(BaseModel):
    status: int
    reason: str
    content_type: str = TEXT_PLAIN
    body: bytes = b""
    headers: Dict[str, str] = Field(default_factory=dict)

    def serialize(self) -> bytes:
        """Status line, headers and body exactly as written to the socket."""
        lines = [
            f"{HTTP_VERSION} {self.status} {self.reason}",
            f"Content-Type: {self.content_type}",
            f"Content-Length: {len(self.body)}",
        ]
        for k, v in self.headers.items():
            lines.append(f"{k}: {v}")
        lines.append("Connection: close")
        lines.extend(["", ""])  # end of headers
        return "\r\n".join(lines).encode("latin-1", errors="replace") + self.body


def build_response(body: bytes, status: int = 200, content_type: str = TEXT_PLAIN,
                   extra_headers: Optional[Dict[str, str]] = None) -> Response:
    return Response(
        status=status,
        reason=REASONS.get(status, "Unknown"),
        content_type=content_type,
        body=body,
        headers=extra_headers or {},
    )


def error_response(error: HttpError) -> Response:
    text = f"{error.status} {error.reason}"
    if error.detail:
        text += f"\n{error.detail}"
    return Response(
        status=error.status,
        reason=error.reason,
        content_type=TEXT_PLAIN,
        body=(text + "\n").encode("utf-8"),
        headers=dict(error.headers),
    )
