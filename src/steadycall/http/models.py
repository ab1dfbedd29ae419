"""Request and response envelopes for outbound calls.

RequestDescriptor is immutable once built: the retry loop resends the same
instance on every attempt. HttpResponse is what a transport hands back for a
completed exchange, whatever its status.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal
from urllib.parse import urljoin, urlparse

import orjson
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeFloat,
    PositiveFloat,
    computed_field,
    field_validator,
    model_validator,
)

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


# ─────────────────────────────────────────────────────────────────────────────
# Request
# ─────────────────────────────────────────────────────────────────────────────

class RequestDescriptor(BaseModel):
    """A single logical outbound request.

    Attributes:
        method: HTTP method (normalized to upper case)
        url: Absolute http(s) URL, or a path resolved against a client base URL
        headers: Request headers
        query_params: URL query parameters
        body: Raw request body (text or bytes)
        json_body: JSON body (serialized with orjson, sets Content-Type)
        timeout: Per-call deadline override in seconds
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        extra="forbid",
        revalidate_instances="never",
        json_schema_extra={
            "title": "Outbound Request",
            "examples": [{
                "method": "POST",
                "url": "https://hooks.example.com/orders",
                "json_body": {"order_id": 42, "status": "shipped"},
            }],
        },
    )

    method: HttpMethod = "GET"
    url: Annotated[str, Field(min_length=1)]
    headers: dict[str, str] = Field(default_factory=dict, repr=False)
    query_params: dict[str, str] = Field(default_factory=dict, repr=False)
    body: str | bytes | None = Field(default=None, repr=False)
    json_body: Any = Field(default=None, repr=False)
    timeout: PositiveFloat | None = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @field_validator("url", mode="before")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        """Accept absolute http(s) URLs or relative paths."""
        if not isinstance(v, str):
            return v
        v = v.strip()
        scheme = urlparse(v).scheme
        if scheme and scheme not in ("http", "https"):
            raise ValueError(f"Invalid scheme '{scheme}'. Use http or https.")
        return v

    @model_validator(mode="after")
    def _validate_body_exclusivity(self) -> RequestDescriptor:
        if self.body is not None and self.json_body is not None:
            raise ValueError("Cannot specify both 'body' and 'json_body'")
        return self

    @property
    def is_absolute(self) -> bool:
        return urlparse(self.url).scheme in ("http", "https")

    @computed_field
    @property
    def destination(self) -> str:
        """Host (and explicit port) the request is addressed to. Keys circuit breakers."""
        parsed = urlparse(self.url)
        host = (parsed.hostname or "").lower()
        return f"{host}:{parsed.port}" if parsed.port else host

    @computed_field
    @property
    def has_body(self) -> bool:
        return self.body is not None or self.json_body is not None

    def content(self) -> bytes | None:
        """Serialized body ready for the wire."""
        if self.json_body is not None:
            return orjson.dumps(self.json_body)
        if isinstance(self.body, str):
            return self.body.encode()
        return self.body

    def wire_headers(self) -> dict[str, str]:
        """Headers to send, adding Content-Type for JSON bodies unless set."""
        if self.json_body is None or any(k.lower() == "content-type" for k in self.headers):
            return dict(self.headers)
        return {**self.headers, "Content-Type": "application/json"}

    def resolve(self, base_url: str | None = None, default_headers: dict[str, str] | None = None) -> RequestDescriptor:
        """Copy with the URL joined onto ``base_url`` and defaults merged under own headers."""
        update: dict[str, Any] = {}
        if base_url and not self.is_absolute:
            update["url"] = urljoin(base_url.rstrip("/") + "/", self.url.lstrip("/"))
        if default_headers:
            own = {k.lower() for k in self.headers}
            update["headers"] = {**{k: v for k, v in default_headers.items() if k.lower() not in own}, **self.headers}
        return self.model_copy(update=update) if update else self


# ─────────────────────────────────────────────────────────────────────────────
# Response
# ─────────────────────────────────────────────────────────────────────────────

class HttpResponse(BaseModel):
    """A completed HTTP exchange."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        revalidate_instances="never",
    )

    status_code: Annotated[int, Field(ge=100, le=999)]
    headers: dict[str, str] = Field(default_factory=dict, repr=False)
    content: bytes = Field(default=b"", repr=False)
    url: str = ""
    elapsed: NonNegativeFloat = 0.0
    attempts: Annotated[int, Field(ge=1)] = 1

    @computed_field
    @property
    def is_success(self) -> bool:
        """Whether response indicates success (2xx)."""
        return 200 <= self.status_code < 300

    @computed_field
    @property
    def is_client_error(self) -> bool:
        """Whether response indicates client error (4xx)."""
        return 400 <= self.status_code < 500

    @computed_field
    @property
    def is_server_error(self) -> bool:
        """Whether response indicates server error (5xx)."""
        return 500 <= self.status_code < 600

    @property
    def reason(self) -> str:
        from http import HTTPStatus
        try:
            return HTTPStatus(self.status_code).phrase
        except ValueError:
            return ""

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return orjson.loads(self.content)

    def header(self, key: str) -> str | None:
        """Get header value case-insensitively."""
        key_lower = key.lower()
        return next((v for k, v in self.headers.items() if k.lower() == key_lower), None)

    def with_attempts(self, attempts: int) -> HttpResponse:
        return self.model_copy(update={"attempts": attempts})

    def __hash__(self) -> int:
        return hash((self.status_code, self.url, self.elapsed))
