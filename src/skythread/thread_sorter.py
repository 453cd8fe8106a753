"""Order each post's direct replies before the tree is assembled

Sorting works on the raw payload, mutating every ``replies`` list in place,
depth-first.
"""

from functools import cmp_to_key
from typing import Any, Dict, Optional

from .errors import ValidationError
from .models import is_not_found_payload


def _author_did(raw: Dict[str, Any]) -> Optional[str]:
    author = raw.get("author") or {}
    return author.get("did")


def _compare_strings(a: str, b: str) -> int:
    return (a > b) - (a < b)


def compare_replies(a: Dict[str, Any], b: Dict[str, Any], op_did: Optional[str]) -> int:
    """Comparator for two sibling replies under a post authored by ``op_did``

    - Not-found entries sort after every found entry.
    - Replies by the op come first, oldest first.
    - Everyone else follows, newest first.

    Timestamps are compared as plain ISO-8601 strings.
    """
    a_missing = is_not_found_payload(a)
    b_missing = is_not_found_payload(b)
    if a_missing and b_missing:
        return 0
    if a_missing:
        return 1
    if b_missing:
        return -1

    a_by_op = _author_did(a) == op_did
    b_by_op = _author_did(b) == op_did
    a_indexed = a.get("indexedAt") or ""
    b_indexed = b.get("indexedAt") or ""

    if a_by_op and b_by_op:
        return _compare_strings(a_indexed, b_indexed)  # oldest
    if a_by_op:
        return -1
    if b_by_op:
        return 1
    return _compare_strings(b_indexed, a_indexed)  # newest


def sort_thread(post: Dict[str, Any]) -> None:
    """Sort ``post``'s replies and recurse into each of them

    The op for a given sibling list is the author of the post those
    siblings reply to.

    Raises:
        ValidationError: If a replies entry is not a JSON object
    """
    if is_not_found_payload(post):
        return
    replies = post.get("replies")
    if not replies:
        return

    for reply in replies:
        if not isinstance(reply, dict):
            raise ValidationError(
                f"Reply under {post.get('uri', 'unknown')} is not an object: {reply!r}"
            )

    op_did = _author_did(post)
    replies.sort(key=cmp_to_key(lambda a, b: compare_replies(a, b, op_did)))
    for reply in replies:
        sort_thread(reply)
