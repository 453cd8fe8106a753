"""Tests for XrpcClient using httpx.MockTransport"""

import json

import httpx
import pytest

from skythread.errors import NotFoundError, ResolutionError, TransportError, ValidationError
from skythread.models import LabelerView, VoteResult
from skythread.xrpc_client import REPOST_COLLECTION, XrpcClient
from tests.fixtures import OP_DID, post_uri, sample_thread

BASE_URL = "https://pds.example.com/xrpc/"


def make_client(handler, actor_did=OP_DID):
    requests = []

    def record(request):
        requests.append(request)
        return handler(request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(record), base_url=BASE_URL)
    return XrpcClient(actor_did=actor_did, http_client=http_client), requests


def body(request):
    return json.loads(request.content)


@pytest.mark.asyncio
class TestFetchThread:
    """Test app.bsky.feed.getPostThread"""

    async def test_returns_thread(self):
        client, requests = make_client(lambda r: httpx.Response(200, json={"thread": sample_thread()}))

        async with client:
            raw = await client.fetch_thread(post_uri("root"), depth=6)

        assert raw["uri"] == post_uri("root")
        request = requests[0]
        assert request.url.path == "/xrpc/app.bsky.feed.getPostThread"
        assert request.url.params["uri"] == post_uri("root")
        assert request.url.params["depth"] == "6"
        assert "parentHeight" not in request.url.params

    async def test_not_found_error_name(self):
        client, _ = make_client(lambda r: httpx.Response(
            400, json={"error": "NotFound", "message": "Post not found: at://x"}
        ))

        with pytest.raises(NotFoundError, match="Post not found"):
            await client.fetch_thread(post_uri("root"))

    async def test_http_404(self):
        client, _ = make_client(lambda r: httpx.Response(404, text="missing"))

        with pytest.raises(NotFoundError):
            await client.fetch_thread(post_uri("root"))

    async def test_server_error(self):
        client, _ = make_client(lambda r: httpx.Response(
            502, json={"error": "UpstreamFailure", "message": "upstream down"}
        ))

        with pytest.raises(TransportError) as exc_info:
            await client.fetch_thread(post_uri("root"))

        assert exc_info.value.status_code == 502
        assert exc_info.value.error == "UpstreamFailure"

    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = make_client(handler)

        with pytest.raises(TransportError):
            await client.fetch_thread(post_uri("root"))

    async def test_missing_thread_object(self):
        client, _ = make_client(lambda r: httpx.Response(200, json={"unexpected": True}))

        with pytest.raises(ValidationError):
            await client.fetch_thread(post_uri("root"))

    async def test_invalid_json(self):
        client, _ = make_client(lambda r: httpx.Response(200, text="<html>"))

        with pytest.raises(ValidationError):
            await client.fetch_thread(post_uri("root"))


@pytest.mark.asyncio
class TestResolveHandle:
    """Test com.atproto.identity.resolveHandle"""

    async def test_resolves(self):
        client, requests = make_client(lambda r: httpx.Response(200, json={"did": OP_DID}))

        assert await client.resolve_handle("op.example.com") == OP_DID
        assert requests[0].url.params["handle"] == "op.example.com"

    async def test_failure_becomes_resolution_error(self):
        client, _ = make_client(lambda r: httpx.Response(
            400, json={"error": "InvalidRequest", "message": "Unable to resolve handle"}
        ))

        with pytest.raises(ResolutionError) as exc_info:
            await client.resolve_handle("nobody.example.com")

        assert exc_info.value.handle == "nobody.example.com"

    async def test_missing_did(self):
        client, _ = make_client(lambda r: httpx.Response(200, json={}))

        with pytest.raises(ResolutionError):
            await client.resolve_handle("nobody.example.com")


@pytest.mark.asyncio
class TestMutations:
    """Test vote, repost and delete procedures"""

    async def test_set_vote(self):
        client, requests = make_client(lambda r: httpx.Response(200, json={"upvote": "at://vote/1"}))

        result = await client.set_vote(post_uri("root"), "bafyroot", "up")

        assert result == VoteResult(upvote="at://vote/1")
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/xrpc/app.bsky.feed.setVote"
        assert body(request) == {"subject": {"uri": post_uri("root"), "cid": "bafyroot"}, "direction": "up"}

    async def test_set_vote_rejects_bad_direction(self):
        client, requests = make_client(lambda r: httpx.Response(200, json={}))

        with pytest.raises(ValueError):
            await client.set_vote(post_uri("root"), "bafyroot", "sideways")
        assert requests == []

    async def test_create_repost(self):
        repost_uri = f"at://{OP_DID}/{REPOST_COLLECTION}/r1"
        client, requests = make_client(lambda r: httpx.Response(200, json={"uri": repost_uri, "cid": "bafyr1"}))

        assert await client.create_repost(post_uri("root"), "bafyroot") == repost_uri

        sent = body(requests[0])
        assert requests[0].url.path == "/xrpc/com.atproto.repo.createRecord"
        assert sent["repo"] == OP_DID
        assert sent["collection"] == REPOST_COLLECTION
        assert sent["record"]["subject"] == {"uri": post_uri("root"), "cid": "bafyroot"}
        assert "createdAt" in sent["record"]

    async def test_create_repost_requires_actor(self):
        client, requests = make_client(lambda r: httpx.Response(200, json={}), actor_did=None)

        with pytest.raises(TransportError):
            await client.create_repost(post_uri("root"), "bafyroot")
        assert requests == []

    async def test_delete_repost(self):
        client, requests = make_client(lambda r: httpx.Response(200))

        await client.delete_repost(f"at://{OP_DID}/{REPOST_COLLECTION}/r1")

        assert body(requests[0]) == {"repo": OP_DID, "collection": REPOST_COLLECTION, "rkey": "r1"}

    async def test_delete_post(self):
        client, requests = make_client(lambda r: httpx.Response(200))

        await client.delete_post(OP_DID, "root")

        assert requests[0].url.path == "/xrpc/com.atproto.repo.deleteRecord"
        assert body(requests[0]) == {"repo": OP_DID, "collection": "app.bsky.feed.post", "rkey": "root"}


@pytest.mark.asyncio
class TestLabelerServices:
    """Test app.bsky.labeler.getServices"""

    async def test_empty_dids_skip_request(self):
        client, requests = make_client(lambda r: httpx.Response(200, json={"views": []}))

        assert await client.get_labeler_services([]) == []
        assert requests == []

    async def test_returns_views(self):
        views = [{
            "uri": "at://did:plc:labeler/app.bsky.labeler.service/self",
            "cid": "bafylabeler",
            "creator": {"did": "did:plc:labeler", "handle": "mod.example.com", "displayName": "Example Mod"},
            "likeCount": 12,
            "indexedAt": "2024-03-01T00:00:00Z",
        }]
        client, requests = make_client(lambda r: httpx.Response(200, json={"views": views}))

        result = await client.get_labeler_services(["did:plc:labeler", "did:plc:other"], detailed=True)

        assert len(result) == 1
        assert isinstance(result[0], LabelerView)
        assert result[0].like_count == 12
        assert result[0].creator.display_name == "Example Mod"
        assert requests[0].url.params.get_list("dids") == ["did:plc:labeler", "did:plc:other"]
        assert requests[0].url.params["detailed"] == "true"
