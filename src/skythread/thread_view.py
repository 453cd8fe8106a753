"""Load state for one thread view

PostThreadView owns the assembled ThreadTree for a single post URI and the
loading / refreshing / error / not-found state around it. Every load
rebuilds the tree wholesale; there is no incremental patching.

Listeners registered with subscribe() are called after every state change,
and ``version`` increments with each one.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from .at_uri import AtUri
from .errors import NotFoundError, SkythreadError, ValidationError
from .models import ThreadTree
from .post_actions import PostActions, PostApi
from .thread_assembler import ThreadAssembler
from .thread_sorter import sort_thread

logger = logging.getLogger(__name__)


class ThreadSource(Protocol):
    """Collaborator that fetches threads and resolves handles"""

    async def fetch_thread(
        self, uri: str, depth: Optional[int] = None, parent_height: Optional[int] = None
    ) -> Dict[str, Any]:
        ...

    async def resolve_handle(self, handle: str) -> str:
        ...


class ThreadLoadState(str, Enum):
    EMPTY = "empty"
    LOADING_INITIAL = "loading-initial"
    LOADING_REFRESH = "loading-refresh"
    LOADED = "loaded"
    ERROR = "error"
    NOT_FOUND = "not-found"


class PostThreadView:
    """State machine around loading one post thread

    Example:
        >>> view = PostThreadView(client, "at://alice.example.com/app.bsky.feed.post/3k2a")
        >>> await view.setup()
        >>> view.state
        <ThreadLoadState.LOADED: 'loaded'>
        >>> view.thread.root.is_highlighted_root
        True

    Notes:
        - A failed load leaves the previous tree in place; the error and
          not-found flags describe the failure while the stale tree stays
          displayable.
        - A handle that fails to resolve is recorded in ``resolution_error``
          and the fetch still goes ahead with the unresolved URI.
        - Each load takes a generation number. A response arriving after a
          newer load has started, or after cancel(), is dropped.
        - Overlapping setup()/refresh() calls are not serialized.
    """

    def __init__(
        self,
        client: ThreadSource,
        uri: str,
        depth: Optional[int] = None,
        parent_height: Optional[int] = None,
        assembler: Optional[ThreadAssembler] = None,
    ):
        self.client = client
        self.params: Dict[str, Any] = {
            "uri": uri,
            "depth": depth,
            "parent_height": parent_height,
        }
        self.assembler = assembler or ThreadAssembler()

        # state
        self.is_loading = False
        self.is_refreshing = False
        self.has_loaded = False
        self.error = ""
        self.not_found = False
        self.resolved_uri = ""
        self.resolution_error = ""

        # data
        self.thread: Optional[ThreadTree] = None

        self.version = 0
        self._listeners: List[Callable[["PostThreadView"], None]] = []
        self._generation = 0

    @property
    def has_content(self) -> bool:
        return self.thread is not None

    @property
    def has_error(self) -> bool:
        return self.error != ""

    @property
    def state(self) -> ThreadLoadState:
        if self.is_loading:
            if self.is_refreshing:
                return ThreadLoadState.LOADING_REFRESH
            return ThreadLoadState.LOADING_INITIAL
        if self.not_found:
            return ThreadLoadState.NOT_FOUND
        if self.has_error:
            return ThreadLoadState.ERROR
        if self.has_content:
            return ThreadLoadState.LOADED
        return ThreadLoadState.EMPTY

    @property
    def actions(self) -> PostActions:
        """Mutation operations that notify this view's listeners on success"""
        client: PostApi = self.client  # type: ignore[assignment]
        return PostActions(client, on_change=lambda _post: self._notify())

    def subscribe(self, listener: Callable[["PostThreadView"], None]) -> Callable[[], None]:
        """Register a change listener and return a callable that removes it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # public api

    async def setup(self) -> None:
        """Load for first render"""
        if not self.resolved_uri:
            await self._resolve_uri()
        if self.has_content:
            await self.update()
        else:
            await self._load()

    async def refresh(self) -> None:
        """Reload, flagged as a refresh"""
        await self._load(is_refreshing=True)

    async def update(self) -> None:
        """Reload and replace the tree"""
        await self._load()

    def cancel(self) -> None:
        """Abandon any in-flight load

        A response arriving afterwards is dropped and leaves the current
        tree and flags as they are.
        """
        self._generation += 1
        if self.is_loading:
            logger.debug(f"Cancelled thread load for {self.resolved_uri}")
            self.is_loading = False
            self.is_refreshing = False
            self._notify()

    # state transitions

    def _notify(self) -> None:
        self.version += 1
        for listener in list(self._listeners):
            listener(self)

    def _x_loading(self, is_refreshing: bool = False) -> None:
        self.is_loading = True
        self.is_refreshing = is_refreshing
        self.error = ""
        self.not_found = False
        self._notify()

    def _x_idle(self, err: Optional[Exception] = None) -> None:
        self.is_loading = False
        self.is_refreshing = False
        self.has_loaded = True
        self.error = (str(err) or type(err).__name__) if err else ""
        self.not_found = isinstance(err, NotFoundError)
        self._notify()

    # loaders

    async def _resolve_uri(self) -> None:
        try:
            uri = AtUri(self.params["uri"])
        except ValidationError as e:
            logger.warning(f"Cannot parse thread URI {self.params['uri']!r}: {e}")
            self.error = str(e)
            self.resolved_uri = self.params["uri"]
            self._notify()
            return

        if not uri.has_did_authority:
            try:
                uri.host = await self.client.resolve_handle(uri.host)
            except SkythreadError as e:
                logger.warning(f"Failed to resolve handle {uri.host}: {e}")
                self.error = str(e)
                self.resolution_error = str(e)

        self.resolved_uri = str(uri)
        self._notify()

    async def _load(self, is_refreshing: bool = False) -> None:
        self._generation += 1
        generation = self._generation
        self._x_loading(is_refreshing)

        try:
            raw = await self.client.fetch_thread(
                self.resolved_uri or self.params["uri"],
                depth=self.params["depth"],
                parent_height=self.params["parent_height"],
            )
            if generation != self._generation:
                logger.debug(f"Dropping stale thread load {generation} for {self.resolved_uri}")
                return
            self._replace_all(raw)
        except SkythreadError as e:
            if generation != self._generation:
                logger.debug(f"Dropping stale thread load failure {generation}: {e}")
                return
            logger.warning(f"Thread load failed for {self.resolved_uri}: {e}")
            self._x_idle(e)
            return

        self._x_idle()

    def _replace_all(self, raw: Dict[str, Any]) -> None:
        if not isinstance(raw, dict):
            raise ValidationError(f"Thread payload is not an object: {raw!r}")
        sort_thread(raw)
        self.thread = self.assembler.assemble(raw)
        logger.info(f"Loaded thread {self.resolved_uri} ({len(self.thread)} nodes)")
