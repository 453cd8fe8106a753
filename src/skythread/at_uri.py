"""Parse and rebuild at:// URIs"""

import re
from typing import Optional

from .errors import ValidationError

AT_URI_PATTERN = re.compile(
    r"^at://(?P<host>[^/?#]+)(?:/(?P<collection>[^/?#]+))?(?:/(?P<rkey>[^/?#]+))?/?$"
)


class AtUri:
    """An at:// URI with a mutable authority

    The authority is either a handle (``alice.example.com``) or an account
    id (``did:plc:...``). Resolving a handle replaces ``host`` in place.

    Example:
        >>> uri = AtUri("at://alice.example.com/app.bsky.feed.post/3k2a")
        >>> uri.rkey
        '3k2a'
        >>> uri.host = "did:plc:abc"
        >>> str(uri)
        'at://did:plc:abc/app.bsky.feed.post/3k2a'
    """

    def __init__(self, uri: str):
        match = AT_URI_PATTERN.match(uri or "")
        if not match:
            raise ValidationError(f"Invalid at:// URI: {uri!r}")
        self.host: str = match.group("host")
        self.collection: Optional[str] = match.group("collection")
        self.rkey: Optional[str] = match.group("rkey")

    @property
    def has_did_authority(self) -> bool:
        return self.host.startswith("did:")

    def __str__(self) -> str:
        parts = [f"at://{self.host}"]
        if self.collection:
            parts.append(self.collection)
            if self.rkey:
                parts.append(self.rkey)
        return "/".join(parts)

    def __repr__(self) -> str:
        return f"AtUri({str(self)!r})"
