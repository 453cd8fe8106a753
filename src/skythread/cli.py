"""CLI interface for skythread"""

import asyncio
import logging
import sys
from typing import List

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import SkythreadConfig, load_config
from .errors import SkythreadError
from .label_groups import LabelGroupDefinition
from .moderation import get_moderation_service_title
from .thread_view import PostThreadView, ThreadLoadState
from .thread_view_formatter import ThreadViewFormatter
from .xrpc_client import XrpcClient

console = Console()


def _make_client(config: SkythreadConfig) -> XrpcClient:
    return XrpcClient(
        service=config.service,
        access_token=config.access_token,
        actor_did=config.actor_did,
    )


def _groups_table(title: str, groups: List[LabelGroupDefinition]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Group", style="cyan")
    table.add_column("Configurable")
    table.add_column("Labels", overflow="fold")
    for group in groups:
        configurable = "[green]yes[/green]" if group.configurable else "[dim]no[/dim]"
        table.add_row(group.id, configurable, ", ".join(label.id for label in group.labels))
    return table


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, verbose):
    """skythread - Load post threads and inspect moderation labels"""
    config = load_config()
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = config


@cli.command()
@click.argument('uri')
@click.option('--depth', type=int, default=None, help='Reply depth to request')
@click.option('--refresh', is_flag=True, help='Load twice, the second time as a refresh')
@click.pass_obj
def thread(config, uri, depth, refresh):
    """Load a post thread and print it

    Examples:
        \b
        skythread thread at://alice.example.com/app.bsky.feed.post/3k2a
        skythread thread at://did:plc:abc/app.bsky.feed.post/3k2a --depth 3
    """
    if depth is None:
        depth = config.thread_depth
    view = asyncio.run(_thread_async(config, uri, depth, refresh))

    if view.resolution_error:
        console.print(f"[yellow]⚠ {view.resolution_error}[/yellow]")

    if view.state == ThreadLoadState.NOT_FOUND:
        console.print(f"[red]✗ Thread not found: {uri}[/red]")
        sys.exit(1)
    if view.state == ThreadLoadState.ERROR and not view.has_content:
        console.print(f"[red]✗ Failed to load thread: {view.error}[/red]")
        sys.exit(1)
    if view.has_error:
        console.print(f"[yellow]⚠ Showing stale thread: {view.error}[/yellow]")

    console.print(ThreadViewFormatter().format(view.thread), markup=False, highlight=False)


async def _thread_async(config, uri, depth, refresh) -> PostThreadView:
    async with _make_client(config) as client:
        view = PostThreadView(client, uri, depth=depth)
        await view.setup()
        if refresh:
            await view.refresh()
        return view


@cli.command()
@click.argument('labels', nargs=-1, required=True)
@click.pass_obj
def groups(config, labels):
    """Show the label groups matched by LABELS (one row per match)"""
    registry = config.label_registry()
    matched = registry.groups_for_labels(labels)
    if not matched:
        console.print("[yellow]No label groups match[/yellow]")
        return
    console.print(_groups_table("Matched Label Groups", matched))


@cli.command(name='configurable-groups')
@click.pass_obj
def configurable_groups(config):
    """List the label groups users can configure"""
    registry = config.label_registry()
    console.print(_groups_table("Configurable Label Groups", registry.configurable_groups()))


@cli.command()
@click.argument('dids', nargs=-1, required=True)
@click.option('--detailed', is_flag=True, help='Request detailed labeler views')
@click.pass_obj
def labelers(config, dids, detailed):
    """Show labeler services for the given DIDs"""
    try:
        views = asyncio.run(_labelers_async(config, list(dids), detailed))
    except SkythreadError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)

    table = Table(title="Labelers", show_header=True, header_style="bold cyan")
    table.add_column("Labeler", style="cyan")
    table.add_column("DID")
    table.add_column("Likes", justify="right")
    for view in views:
        title = get_moderation_service_title(view.creator.handle, view.creator.display_name)
        table.add_row(title, view.creator.did, str(view.like_count))
    console.print(table)


async def _labelers_async(config, dids, detailed):
    async with _make_client(config) as client:
        return await client.get_labeler_services(dids, detailed=detailed)


@cli.command()
@click.argument('uri')
@click.option('--up/--down', 'up', default=True, help='Vote direction to toggle')
@click.pass_obj
def vote(config, uri, up):
    """Toggle an up or down vote on the post at URI"""
    _run_action(config, uri, "toggle_upvote" if up else "toggle_downvote")


@cli.command()
@click.argument('uri')
@click.pass_obj
def repost(config, uri):
    """Toggle a repost of the post at URI"""
    _run_action(config, uri, "toggle_repost")


def _run_action(config, uri, action_name):
    try:
        post = asyncio.run(_action_async(config, uri, action_name))
    except SkythreadError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)

    console.print(Panel.fit(
        f"[bold blue]{post.uri}[/bold blue]\n"
        f"▲ {post.upvote_count}  ▼ {post.downvote_count}  🔁 {post.repost_count}",
        border_style="blue"
    ))


async def _action_async(config, uri, action_name):
    async with _make_client(config) as client:
        view = PostThreadView(client, uri, depth=0)
        await view.setup()
        if not view.has_content or view.has_error:
            raise SkythreadError(view.error or f"Unable to load {uri}")
        return await getattr(view.actions, action_name)(view.thread.root)


if __name__ == '__main__':
    cli()
