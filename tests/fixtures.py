"""Raw thread payload builders shared by the tests"""

from typing import Any, Dict, List, Optional

OP_DID = "did:plc:op000000000000000000000"
OP_HANDLE = "op.example.com"


def post_uri(rkey: str, did: str = OP_DID) -> str:
    return f"at://{did}/app.bsky.feed.post/{rkey}"


def raw_author(did: str = OP_DID, handle: Optional[str] = None, display_name: Optional[str] = None) -> Dict[str, Any]:
    author = {
        "did": did,
        "handle": handle or f"{did.split(':')[-1]}.example.com",
        "declaration": {"cid": "bafydecl", "actorType": "app.bsky.system.actorUser"},
    }
    if display_name:
        author["displayName"] = display_name
    return author


def raw_post(
    rkey: str,
    did: str = OP_DID,
    indexed_at: str = "2023-10-20T10:00:00Z",
    text: Optional[str] = None,
    replies: Optional[List[Dict[str, Any]]] = None,
    parent: Optional[Dict[str, Any]] = None,
    my_state: Optional[Dict[str, Any]] = None,
    handle: Optional[str] = None,
    **counts: int,
) -> Dict[str, Any]:
    """Build a raw found post the way the thread fetch returns it"""
    post = {
        "$type": "app.bsky.feed.getPostThread#post",
        "uri": post_uri(rkey, did),
        "cid": f"bafy{rkey}",
        "author": raw_author(did, handle=handle),
        "record": {"$type": "app.bsky.feed.post", "text": text if text is not None else f"Post {rkey}"},
        "replyCount": counts.get("reply_count", len(replies or [])),
        "repostCount": counts.get("repost_count", 0),
        "upvoteCount": counts.get("upvote_count", 0),
        "downvoteCount": counts.get("downvote_count", 0),
        "indexedAt": indexed_at,
        "myState": my_state or {},
    }
    if replies is not None:
        post["replies"] = replies
    if parent is not None:
        post["parent"] = parent
    return post


def raw_not_found(rkey: str, did: str = OP_DID) -> Dict[str, Any]:
    return {
        "$type": "app.bsky.feed.getPostThread#notFoundPost",
        "uri": post_uri(rkey, did),
        "notFound": True,
    }


def sample_thread() -> Dict[str, Any]:
    """Root post with two ancestors and a mix of replies

    Built (and, once sorted, ordered) as:

        grandparent (did:plc:gp)
          parent (did:plc:pa)
            root (op)                      <- highlighted
              op-reply   (op, 10:05)
              newer      (did:plc:b, 10:30)
                nested   (did:plc:c)
              older      (did:plc:a, 10:10)
              gone       (not found)
    """
    grandparent = raw_post("grandparent", did="did:plc:gp", indexed_at="2023-10-20T09:00:00Z")
    parent = raw_post("parent", did="did:plc:pa", indexed_at="2023-10-20T09:30:00Z", parent=grandparent)
    return raw_post(
        "root",
        indexed_at="2023-10-20T10:00:00Z",
        parent=parent,
        replies=[
            raw_not_found("gone", did="did:plc:x"),
            raw_post("older", did="did:plc:a", indexed_at="2023-10-20T10:10:00Z"),
            raw_post(
                "newer",
                did="did:plc:b",
                indexed_at="2023-10-20T10:30:00Z",
                replies=[raw_post("nested", did="did:plc:c", indexed_at="2023-10-20T10:40:00Z")],
            ),
            raw_post("op-reply", indexed_at="2023-10-20T10:05:00Z"),
        ],
    )
