"""Assemble a sorted raw thread payload into a ThreadTree arena

Converts the nested payload returned by the thread fetch (root post with an
optional ``parent`` chain and nested ``replies``) into flat, index-linked
nodes with depths relative to the highlighted root.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .keys import KeyAllocator
from .models import (
    NotFoundPost,
    ReplyingTo,
    ReplyingToAuthor,
    ThreadPost,
    ThreadTree,
    ViewerState,
    is_not_found_payload,
)

logger = logging.getLogger(__name__)

# Handled by the assembler rather than copied onto the node
_TREE_KEYS = ("parent", "replies", "myState")

AnyNode = Union[ThreadPost, NotFoundPost]


class ThreadAssembler:
    """Build ThreadTree arenas from raw thread payloads

    Rules:
    - The highlighted root gets depth 0; ancestors count down, replies count up.
    - Ancestors are built from the root's ``parent`` chain and never expand
      their own replies.
    - Replies expand recursively. A reply whose parent was not built as a
      full node gets a ``replying_to`` summary instead, unless it is the
      first reply in its sibling list.
    - Not-found entries become NotFoundPost placeholders and are never
      expanded.

    Keys come from a fresh KeyAllocator per call, consumed in build order.

    Example:
        >>> sort_thread(raw)
        >>> tree = ThreadAssembler().assemble(raw)
        >>> tree.root.is_highlighted_root
        True
    """

    def assemble(self, raw: Dict[str, Any]) -> ThreadTree:
        """Assemble a full tree around ``raw`` as the highlighted root

        Args:
            raw: Raw thread payload, already sorted with sort_thread()

        Returns:
            ThreadTree whose root is the highlighted post

        Raises:
            ValidationError: If the payload or one of its posts is malformed
        """
        if not isinstance(raw, dict):
            raise ValidationError(f"Thread payload is not an object: {raw!r}")

        keys = KeyAllocator()
        nodes: List[AnyNode] = []

        root_index = self._append(nodes, self._make_node(raw, keys.next_key(), depth=0))
        root = nodes[root_index]
        root.is_highlighted_root = True
        if not root.is_not_found:
            self._assign_relatives(nodes, keys, root_index, raw)

        logger.debug(f"Assembled thread {root.uri} with {len(nodes)} nodes")
        return ThreadTree(nodes=nodes, root_index=root_index)

    def _assign_relatives(
        self,
        nodes: List[AnyNode],
        keys: KeyAllocator,
        index: int,
        raw: Dict[str, Any],
        include_parent: bool = True,
        include_children: bool = True,
        is_first_sibling: bool = True,
    ) -> None:
        current = nodes[index]
        raw_parent = raw.get("parent")

        # Ancestors
        if include_parent and raw_parent:
            parent_node = self._make_node(raw_parent, keys.next_key(), depth=current.depth - 1)
            parent_index = self._append(nodes, parent_node)
            current.parent_index = parent_index
            if not parent_node.is_not_found and raw_parent.get("parent"):
                self._assign_relatives(
                    nodes, keys, parent_index, raw_parent,
                    include_parent=True, include_children=False,
                )

        # Applies to leaf replies as well, not only replies with children
        if not include_parent and raw_parent and not is_first_sibling:
            replying_to = self._replying_to(raw_parent)
            if replying_to is not None:
                current.replying_to = replying_to

        # Replies
        if include_children and raw.get("replies"):
            for position, item in enumerate(raw["replies"]):
                child = self._make_node(item, keys.next_key(), depth=current.depth + 1)
                child.parent_index = index
                child_index = self._append(nodes, child)
                current.child_indices.append(child_index)
                if not child.is_not_found:
                    self._assign_relatives(
                        nodes, keys, child_index, item,
                        include_parent=False, include_children=True,
                        is_first_sibling=position == 0,
                    )

    @staticmethod
    def _append(nodes: List[AnyNode], node: AnyNode) -> int:
        nodes.append(node)
        return len(nodes) - 1

    @staticmethod
    def _replying_to(raw_parent: Dict[str, Any]) -> Optional[ReplyingTo]:
        if is_not_found_payload(raw_parent):
            return None
        author = raw_parent.get("author") or {}
        if not author.get("handle"):
            return None
        record = raw_parent.get("record") or {}
        return ReplyingTo(
            author=ReplyingToAuthor(
                handle=author["handle"],
                display_name=author.get("displayName"),
                avatar=author.get("avatar"),
            ),
            text=record.get("text") or "",
        )

    @staticmethod
    def _make_node(raw: Any, key: str, depth: int) -> AnyNode:
        """Build a node from the post's own fields

        ``parent`` and ``replies`` are left to _assign_relatives; ``myState``
        is merged field by field onto a fresh ViewerState.
        """
        if not isinstance(raw, dict):
            raise ValidationError(f"Thread entry is not an object: {raw!r}")

        if is_not_found_payload(raw):
            return NotFoundPost(uri=raw.get("uri") or "", key=key, depth=depth)

        fields = {k: v for k, v in raw.items() if k not in _TREE_KEYS}
        viewer = ViewerState()
        for name, value in (raw.get("myState") or {}).items():
            if name in ViewerState.model_fields:
                setattr(viewer, name, value)

        try:
            return ThreadPost.model_validate(
                {**fields, "myState": viewer, "key": key, "depth": depth}
            )
        except PydanticValidationError as e:
            raise ValidationError(
                f"Malformed post {raw.get('uri', 'unknown')}: {e}"
            ) from e
