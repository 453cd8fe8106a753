"""Tests for the skythread CLI using click's CliRunner"""

import importlib
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from skythread.config import SkythreadConfig
from skythread.errors import NotFoundError
from skythread.models import LabelerView, VoteResult
from tests.fixtures import OP_DID, post_uri, raw_post, sample_thread

cli_module = importlib.import_module("skythread.cli")


class FakeClient:
    """Async context manager standing in for XrpcClient"""

    def __init__(self):
        self.fetch_thread = AsyncMock(side_effect=lambda *args, **kwargs: sample_thread())
        self.resolve_handle = AsyncMock(return_value=OP_DID)
        self.set_vote = AsyncMock(return_value=VoteResult(upvote="at://vote/1"))
        self.create_repost = AsyncMock(return_value="at://did:plc:me/app.bsky.feed.repost/r1")
        self.delete_repost = AsyncMock()
        self.delete_post = AsyncMock()
        self.get_labeler_services = AsyncMock(return_value=[])

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None


@pytest.fixture
def fake_client():
    client = FakeClient()
    with patch.object(cli_module, "load_config", return_value=SkythreadConfig()), \
            patch.object(cli_module, "_make_client", return_value=client):
        yield client


@pytest.fixture
def runner():
    return CliRunner()


class TestThreadCommand:
    """Test `skythread thread`"""

    def test_prints_thread(self, runner, fake_client):
        result = runner.invoke(cli_module.cli, ["thread", post_uri("root")])

        assert result.exit_code == 0, result.output
        assert "Post root" in result.output
        assert "Not found: 1" in result.output

    def test_depth_option(self, runner, fake_client):
        runner.invoke(cli_module.cli, ["thread", post_uri("root"), "--depth", "2"])

        fake_client.fetch_thread.assert_awaited_once_with(post_uri("root"), depth=2, parent_height=None)

    def test_depth_defaults_to_config(self, runner, fake_client):
        with patch.object(cli_module, "load_config", return_value=SkythreadConfig(thread_depth=6)):
            runner.invoke(cli_module.cli, ["thread", post_uri("root")])

        fake_client.fetch_thread.assert_awaited_once_with(post_uri("root"), depth=6, parent_height=None)

    def test_explicit_zero_depth_overrides_config(self, runner, fake_client):
        with patch.object(cli_module, "load_config", return_value=SkythreadConfig(thread_depth=6)):
            result = runner.invoke(cli_module.cli, ["thread", post_uri("root"), "--depth", "0"])

        assert result.exit_code == 0, result.output
        fake_client.fetch_thread.assert_awaited_once_with(post_uri("root"), depth=0, parent_height=None)

    def test_refresh_loads_twice(self, runner, fake_client):
        result = runner.invoke(cli_module.cli, ["thread", post_uri("root"), "--refresh"])

        assert result.exit_code == 0
        assert fake_client.fetch_thread.await_count == 2

    def test_not_found_exits_nonzero(self, runner, fake_client):
        fake_client.fetch_thread.side_effect = NotFoundError("Post not found")

        result = runner.invoke(cli_module.cli, ["thread", post_uri("root")])

        assert result.exit_code == 1
        assert "not found" in result.output


class TestGroupCommands:
    """Test the label group commands"""

    def test_groups(self, runner, fake_client):
        result = runner.invoke(cli_module.cli, ["groups", "gore"])

        assert result.exit_code == 0
        assert "violence" in result.output

    def test_groups_no_match(self, runner, fake_client):
        result = runner.invoke(cli_module.cli, ["groups", "made-up"])

        assert result.exit_code == 0
        assert "No label groups match" in result.output

    def test_configurable_groups(self, runner, fake_client):
        result = runner.invoke(cli_module.cli, ["configurable-groups"])

        assert result.exit_code == 0
        assert "misinfo" in result.output
        assert "legal" not in result.output


class TestLabelersCommand:
    """Test `skythread labelers`"""

    def test_lists_labelers(self, runner, fake_client):
        fake_client.get_labeler_services.return_value = [LabelerView.model_validate({
            "uri": "at://did:plc:labeler/app.bsky.labeler.service/self",
            "creator": {"did": "did:plc:labeler", "handle": "mod.example.com", "displayName": "Mods"},
            "likeCount": 7,
        })]

        result = runner.invoke(cli_module.cli, ["labelers", "did:plc:labeler"])

        assert result.exit_code == 0
        assert "Mods" in result.output
        fake_client.get_labeler_services.assert_awaited_once_with(["did:plc:labeler"], detailed=False)


class TestActionCommands:
    """Test `skythread vote` and `skythread repost`"""

    def test_upvote(self, runner, fake_client):
        fake_client.fetch_thread.side_effect = lambda *args, **kwargs: raw_post("root", upvote_count=3)

        result = runner.invoke(cli_module.cli, ["vote", post_uri("root")])

        assert result.exit_code == 0, result.output
        fake_client.set_vote.assert_awaited_once_with(post_uri("root"), "bafyroot", "up")
        assert "▲ 4" in result.output

    def test_downvote(self, runner, fake_client):
        result = runner.invoke(cli_module.cli, ["vote", post_uri("root"), "--down"])

        assert result.exit_code == 0
        fake_client.set_vote.assert_awaited_once_with(post_uri("root"), "bafyroot", "down")

    def test_repost(self, runner, fake_client):
        result = runner.invoke(cli_module.cli, ["repost", post_uri("root")])

        assert result.exit_code == 0
        fake_client.create_repost.assert_awaited_once_with(post_uri("root"), "bafyroot")

    def test_action_on_missing_post(self, runner, fake_client):
        fake_client.fetch_thread.side_effect = NotFoundError("Post not found")

        result = runner.invoke(cli_module.cli, ["repost", post_uri("root")])

        assert result.exit_code == 1
        fake_client.create_repost.assert_not_awaited()
