"""Async XRPC client for thread fetching, mutations and labeler lookup

Implements every network collaborator the thread view and post actions
need on top of httpx. HTTP failures are mapped onto the skythread error
taxonomy; the client performs no retries.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from .at_uri import AtUri
from .errors import NotFoundError, ResolutionError, TransportError, ValidationError
from .models import LabelerView, VoteResult

logger = logging.getLogger(__name__)

DEFAULT_SERVICE = "https://bsky.social"
POST_COLLECTION = "app.bsky.feed.post"
REPOST_COLLECTION = "app.bsky.feed.repost"

_NOT_FOUND_ERRORS = {"NotFound", "RecordNotFound"}


class XrpcClient:
    """Thin XRPC client over httpx.AsyncClient

    Args:
        service: Base URL of the service (default: https://bsky.social)
        access_token: Bearer token for authenticated calls
        actor_did: Account id that owns created records (reposts)
        timeout: Request timeout in seconds
        http_client: Pre-built httpx.AsyncClient, mainly for tests

    Example:
        >>> async with XrpcClient(access_token=token, actor_did=did) as client:
        ...     raw = await client.fetch_thread("at://did:plc:abc/app.bsky.feed.post/3k2a")
    """

    def __init__(
        self,
        service: str = DEFAULT_SERVICE,
        access_token: Optional[str] = None,
        actor_did: Optional[str] = None,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.service = service.rstrip("/")
        self.actor_did = actor_did
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self._client = http_client or httpx.AsyncClient(
            base_url=f"{self.service}/xrpc/", headers=headers, timeout=timeout
        )

    async def __aenter__(self) -> "XrpcClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # transport

    @staticmethod
    def _raise_for_error(response: httpx.Response, nsid: str) -> None:
        if response.is_success:
            return
        error = None
        message = response.text
        try:
            body = response.json()
            error = body.get("error")
            message = body.get("message") or error or message
        except ValueError:
            pass

        if response.status_code == 404 or error in _NOT_FOUND_ERRORS:
            raise NotFoundError(message or f"{nsid}: not found")
        logger.error(f"XRPC {nsid} failed with HTTP {response.status_code}: {message}")
        raise TransportError(
            f"{nsid} failed (HTTP {response.status_code}): {message}",
            status_code=response.status_code,
            error=error,
        )

    @staticmethod
    def _json(response: httpx.Response, nsid: str) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise ValidationError(f"{nsid} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise ValidationError(f"{nsid} returned a non-object body")
        return data

    async def _query(self, nsid: str, params: Dict[str, Any]) -> Dict[str, Any]:
        params = {k: v for k, v in params.items() if v is not None}
        try:
            response = await self._client.get(nsid, params=params)
        except httpx.HTTPError as e:
            logger.error(f"XRPC query {nsid} failed: {e}")
            raise TransportError(f"{nsid} failed: {e}") from e
        self._raise_for_error(response, nsid)
        return self._json(response, nsid)

    async def _procedure(self, nsid: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(nsid, json=body)
        except httpx.HTTPError as e:
            logger.error(f"XRPC procedure {nsid} failed: {e}")
            raise TransportError(f"{nsid} failed: {e}") from e
        self._raise_for_error(response, nsid)
        return self._json(response, nsid)

    def _require_actor(self) -> str:
        if not self.actor_did:
            raise TransportError("An actor did is required to create records")
        return self.actor_did

    # thread fetch

    async def fetch_thread(
        self, uri: str, depth: Optional[int] = None, parent_height: Optional[int] = None
    ) -> Dict[str, Any]:
        """Fetch the raw thread payload for a post

        Raises:
            NotFoundError: If the post does not exist
            TransportError: On any other failure
            ValidationError: If the response has no thread object
        """
        nsid = "app.bsky.feed.getPostThread"
        data = await self._query(
            nsid, {"uri": uri, "depth": depth, "parentHeight": parent_height}
        )
        thread = data.get("thread")
        if not isinstance(thread, dict):
            raise ValidationError(f"{nsid} response has no thread object")
        return thread

    async def resolve_handle(self, handle: str) -> str:
        """Resolve a handle to its account id

        Raises:
            ResolutionError: If the handle cannot be resolved for any reason
        """
        try:
            data = await self._query("com.atproto.identity.resolveHandle", {"handle": handle})
        except (NotFoundError, TransportError, ValidationError) as e:
            raise ResolutionError(handle, f"Unable to resolve handle {handle}: {e}") from e
        did = data.get("did")
        if not did:
            raise ResolutionError(handle)
        logger.debug(f"Resolved {handle} to {did}")
        return did

    # mutations

    async def set_vote(self, uri: str, cid: str, direction: str) -> VoteResult:
        if direction not in ("up", "down", "none"):
            raise ValueError(f"Invalid vote direction: {direction}")
        data = await self._procedure(
            "app.bsky.feed.setVote",
            {"subject": {"uri": uri, "cid": cid}, "direction": direction},
        )
        return VoteResult.model_validate(data)

    async def create_repost(self, uri: str, cid: str) -> str:
        nsid = "com.atproto.repo.createRecord"
        data = await self._procedure(
            nsid,
            {
                "repo": self._require_actor(),
                "collection": REPOST_COLLECTION,
                "record": {
                    "$type": REPOST_COLLECTION,
                    "subject": {"uri": uri, "cid": cid},
                    "createdAt": datetime.now(timezone.utc).isoformat(),
                },
            },
        )
        repost_uri = data.get("uri")
        if not repost_uri:
            raise ValidationError(f"{nsid} response has no record uri")
        return repost_uri

    async def _delete_record(self, repo: str, collection: str, rkey: str) -> None:
        await self._procedure(
            "com.atproto.repo.deleteRecord",
            {"repo": repo, "collection": collection, "rkey": rkey},
        )

    async def delete_repost(self, repost_uri: str) -> None:
        uri = AtUri(repost_uri)
        await self._delete_record(uri.host, uri.collection or REPOST_COLLECTION, uri.rkey)

    async def delete_post(self, did: str, rkey: str) -> None:
        await self._delete_record(did, POST_COLLECTION, rkey)

    # labeler directory

    async def get_labeler_services(
        self, dids: List[str], detailed: bool = False
    ) -> List[LabelerView]:
        """Look up labeler services for attribution"""
        if not dids:
            return []
        data = await self._query(
            "app.bsky.labeler.getServices", {"dids": list(dids), "detailed": detailed}
        )
        return [LabelerView.model_validate(view) for view in data.get("views", [])]
