"""Pydantic models for thread nodes and the node arena

Raw thread payloads arrive as nested JSON dicts using the wire's camelCase
keys. The models below accept those keys through aliases and expose
snake_case attributes.

A thread is held as a ``ThreadTree`` arena: every node lives in one flat
list and refers to its relatives by index, so the parent back-reference
never forms an object cycle.
"""

from typing import Annotated, Any, Dict, Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, Field


def is_not_found_payload(raw: Dict[str, Any]) -> bool:
    """Check whether a raw thread entry is a not-found marker"""
    if raw.get("notFound"):
        return True
    return str(raw.get("$type", "")).endswith("#notFoundPost")


class AuthorRef(BaseModel):
    """Author summary attached to a post"""

    did: str
    handle: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    avatar: Optional[str] = None

    class Config:
        extra = "allow"
        populate_by_name = True


class ViewerState(BaseModel):
    """The acting account's own vote and repost records for a post"""

    upvote: Optional[str] = None
    downvote: Optional[str] = None
    repost: Optional[str] = None

    @property
    def vote_direction(self) -> str:
        """Current exclusive vote state: "up", "down" or "none" """
        if self.upvote:
            return "up"
        if self.downvote:
            return "down"
        return "none"


class VoteResult(BaseModel):
    """Vote record ids returned by the server after a vote change"""

    upvote: Optional[str] = None
    downvote: Optional[str] = None


class ReplyingToAuthor(BaseModel):
    handle: str
    display_name: Optional[str] = None
    avatar: Optional[str] = None


class ReplyingTo(BaseModel):
    """Lightweight context for a reply whose parent was not materialized"""

    author: ReplyingToAuthor
    text: str = ""


class _TreeFields(BaseModel):
    """Position of a node inside its ThreadTree"""

    key: str = ""
    depth: int = 0
    is_highlighted_root: bool = False
    parent_index: Optional[int] = None
    child_indices: List[int] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class ThreadPost(_TreeFields):
    """A post that was found, with counts and viewer state"""

    kind: Literal["post"] = "post"

    uri: str
    cid: str
    author: AuthorRef
    record: Dict[str, Any] = Field(default_factory=dict)
    embed: Optional[Dict[str, Any]] = None
    reply_count: int = Field(default=0, alias="replyCount")
    repost_count: int = Field(default=0, alias="repostCount")
    upvote_count: int = Field(default=0, alias="upvoteCount")
    downvote_count: int = Field(default=0, alias="downvoteCount")
    indexed_at: str = Field(default="", alias="indexedAt")
    viewer: ViewerState = Field(default_factory=ViewerState, alias="myState")

    replying_to: Optional[ReplyingTo] = None

    @property
    def is_not_found(self) -> bool:
        return False

    @property
    def text(self) -> str:
        return str(self.record.get("text", ""))


class NotFoundPost(_TreeFields):
    """Placeholder for a post the server could not find"""

    kind: Literal["not_found"] = "not_found"

    uri: str = ""

    @property
    def is_not_found(self) -> bool:
        return True


ThreadNode = Annotated[Union[ThreadPost, NotFoundPost], Field(discriminator="kind")]


class ThreadTree(BaseModel):
    """Arena holding one assembled thread

    Ancestors sit above the highlighted root with negative depths and carry
    no children of their own; descendants hang below it in sorted order.

    Example:
        >>> tree = ThreadAssembler().assemble(raw_thread)
        >>> tree.root.depth
        0
        >>> [n.uri for n in tree.children_of(tree.root)]
        ['at://...', 'at://...']
    """

    nodes: List[ThreadNode] = Field(default_factory=list)
    root_index: int = 0

    @property
    def root(self) -> Union[ThreadPost, NotFoundPost]:
        return self.nodes[self.root_index]

    def node(self, index: int) -> Union[ThreadPost, NotFoundPost]:
        return self.nodes[index]

    def parent_of(self, node: Union[ThreadPost, NotFoundPost]) -> Optional[Union[ThreadPost, NotFoundPost]]:
        if node.parent_index is None:
            return None
        return self.nodes[node.parent_index]

    def children_of(self, node: Union[ThreadPost, NotFoundPost]) -> List[Union[ThreadPost, NotFoundPost]]:
        return [self.nodes[i] for i in node.child_indices]

    def ancestors_of(self, node: Union[ThreadPost, NotFoundPost]) -> List[Union[ThreadPost, NotFoundPost]]:
        """Ancestors ordered from the immediate parent upward"""
        ancestors = []
        current = self.parent_of(node)
        while current is not None:
            ancestors.append(current)
            current = self.parent_of(current)
        return ancestors

    def walk(self) -> Iterator[Union[ThreadPost, NotFoundPost]]:
        """Yield ancestors top-down, then the root and its replies depth-first"""
        if not self.nodes:
            return
        root = self.root
        for ancestor in reversed(self.ancestors_of(root)):
            yield ancestor
        stack = [root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.children_of(current)))

    def find(self, uri: str) -> Optional[Union[ThreadPost, NotFoundPost]]:
        for node in self.nodes:
            if node.uri == uri:
                return node
        return None

    def __len__(self) -> int:
        return len(self.nodes)


class LabelerView(BaseModel):
    """Labeler service metadata, used for attribution only"""

    uri: str
    cid: str = ""
    creator: AuthorRef
    like_count: int = Field(default=0, alias="likeCount")
    indexed_at: str = Field(default="", alias="indexedAt")
    policies: Optional[Dict[str, Any]] = None

    class Config:
        extra = "allow"
        populate_by_name = True
