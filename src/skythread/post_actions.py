"""Vote, repost and delete operations on assembled thread posts

Each operation makes one server round trip and only then touches the
node's counters and viewer state. Errors from the server propagate to the
caller unchanged, so counters stay as they were on failure.

There is no de-duplication or locking: two overlapping toggles on the same
post both read the viewer state before either response arrives and can
race. delete() removes the record on the server but leaves the node in the
tree; removing it is up to the caller.
"""

import logging
from typing import Callable, Optional, Protocol, Union

from .at_uri import AtUri
from .errors import NotFoundError
from .models import NotFoundPost, ThreadPost, VoteResult

logger = logging.getLogger(__name__)


class PostApi(Protocol):
    """Collaborator for the mutation round trips"""

    async def set_vote(self, uri: str, cid: str, direction: str) -> VoteResult:
        ...

    async def create_repost(self, uri: str, cid: str) -> str:
        ...

    async def delete_repost(self, repost_uri: str) -> None:
        ...

    async def delete_post(self, did: str, rkey: str) -> None:
        ...


def _require_post(node: Union[ThreadPost, NotFoundPost]) -> ThreadPost:
    if node.is_not_found:
        raise NotFoundError(f"Post not found: {node.uri}")
    return node  # type: ignore[return-value]


class PostActions:
    """Mutation operations bound to one PostApi

    Args:
        api: Client performing the round trips
        on_change: Called with the post after each successful local update
    """

    def __init__(
        self,
        api: PostApi,
        on_change: Optional[Callable[[ThreadPost], None]] = None,
    ):
        self.api = api
        self.on_change = on_change

    def _changed(self, post: ThreadPost) -> None:
        if self.on_change is not None:
            self.on_change(post)

    async def toggle_upvote(self, node: Union[ThreadPost, NotFoundPost]) -> ThreadPost:
        post = _require_post(node)
        was_upvoted = bool(post.viewer.upvote)
        was_downvoted = bool(post.viewer.downvote)
        direction = "none" if was_upvoted else "up"

        logger.debug(f"Setting vote {direction} on {post.uri}")
        res = await self.api.set_vote(post.uri, post.cid, direction)

        if was_downvoted:
            post.downvote_count -= 1
        if was_upvoted:
            post.upvote_count -= 1
        else:
            post.upvote_count += 1
        post.viewer.upvote = res.upvote
        post.viewer.downvote = res.downvote
        self._changed(post)
        return post

    async def toggle_downvote(self, node: Union[ThreadPost, NotFoundPost]) -> ThreadPost:
        post = _require_post(node)
        was_upvoted = bool(post.viewer.upvote)
        was_downvoted = bool(post.viewer.downvote)
        direction = "none" if was_downvoted else "down"

        logger.debug(f"Setting vote {direction} on {post.uri}")
        res = await self.api.set_vote(post.uri, post.cid, direction)

        if was_upvoted:
            post.upvote_count -= 1
        if was_downvoted:
            post.downvote_count -= 1
        else:
            post.downvote_count += 1
        post.viewer.upvote = res.upvote
        post.viewer.downvote = res.downvote
        self._changed(post)
        return post

    async def toggle_repost(self, node: Union[ThreadPost, NotFoundPost]) -> ThreadPost:
        post = _require_post(node)
        if post.viewer.repost:
            logger.debug(f"Deleting repost {post.viewer.repost} of {post.uri}")
            await self.api.delete_repost(post.viewer.repost)
            post.repost_count -= 1
            post.viewer.repost = None
        else:
            logger.debug(f"Reposting {post.uri}")
            repost_uri = await self.api.create_repost(post.uri, post.cid)
            post.repost_count += 1
            post.viewer.repost = repost_uri
        self._changed(post)
        return post

    async def delete(self, node: Union[ThreadPost, NotFoundPost]) -> None:
        """Delete the post record; the node itself stays in its tree"""
        post = _require_post(node)
        rkey = AtUri(post.uri).rkey
        logger.info(f"Deleting post {post.uri}")
        await self.api.delete_post(post.author.did, rkey)
