"""Response envelope and hypermedia link schemas."""
from typing import Any, Dict, Optional

from fastapi import Request
from pydantic import BaseModel, Field


class Link(BaseModel):
    """A single navigation link advertised in an envelope."""
    href: str
    rel: str
    method: Optional[str] = Field(default=None, description="HTTP verb to use, GET when omitted")
    templated: Optional[bool] = Field(default=None, description="True when href contains {placeholders}")


Links = Dict[str, Link]


class Envelope(BaseModel):
    """Uniform response body: data or error, always with links."""
    data: Optional[Any] = None
    error: Optional[str] = None
    links: Links = Field(default_factory=dict)

    def to_body(self) -> Dict[str, Any]:
        """JSON body with ``error`` replacing ``data`` on failures."""
        body: Dict[str, Any] = {"error": self.error} if self.error is not None else {"data": self.data}
        body["links"] = dump_links(self.links)
        return body


def base_url(request: Request) -> str:
    """Scheme and host of the current request, without a trailing slash."""
    return str(request.base_url).rstrip("/")


def link(href: str, rel: str, method: Optional[str] = None, templated: Optional[bool] = None) -> Link:
    return Link(href=href, rel=rel, method=method, templated=templated)


def dump_links(links: Links) -> Dict[str, Dict[str, Any]]:
    return {name: item.model_dump(exclude_none=True) for name, item in links.items()}


def envelope(data: Any, links: Links) -> Dict[str, Any]:
    """Success body. ``data`` is passed through untouched."""
    return Envelope(data=data, links=links).to_body()


def error_envelope(request: Request, message: str) -> Dict[str, Any]:
    """Error body with a ``self`` link and, when derivable, the collection link."""
    root = base_url(request)
    links: Links = {"self": link(str(request.url), "self")}
    segments = [part for part in request.url.path.split("/") if part]
    if segments:
        links["collection"] = link(f"{root}/{segments[0]}", "collection")
    return Envelope(error=message, links=links).to_body()
