"""Version tag (ETag) helpers for conditional requests."""
from typing import List, Optional

from fastapi import Request

from music_catalog.core.errors import PreconditionFailedError


def quote_etag(tag: str) -> str:
    return f'"{tag}"'


def parse_etags(header: str) -> List[str]:
    """Split an If-Match / If-None-Match header into bare tags."""
    tags = []
    for part in header.split(","):
        part = part.strip()
        if part.startswith("W/"):
            part = part[2:]
        part = part.strip('"')
        if part:
            tags.append(part)
    return tags


def _matches(header: Optional[str], current: str) -> Optional[bool]:
    if header is None:
        return None
    tags = parse_etags(header)
    return "*" in tags or current in tags


def check_if_match(request: Request, current: str) -> None:
    """Raise 412 when an If-Match header is present and stale."""
    if _matches(request.headers.get("if-match"), current) is False:
        raise PreconditionFailedError()


def if_none_match(request: Request, current: str) -> bool:
    """True when If-None-Match names the current tag (the client copy is fresh)."""
    return bool(_matches(request.headers.get("if-none-match"), current))
