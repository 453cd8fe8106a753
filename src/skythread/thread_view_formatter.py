"""Format an assembled thread into a readable text view

Produces the indented text the CLI prints for ``skythread thread``.
"""

from typing import List, Union

from .models import NotFoundPost, ThreadPost, ThreadTree
from .moderation import sanitize_display_name, sanitize_handle


class ThreadViewFormatter:
    """Format a ThreadTree into indented text

    Ancestors print above the highlighted post, replies below it, each
    indented by its distance from the top of the tree.

    Example:
        >>> formatter = ThreadViewFormatter()
        >>> print(formatter.format(view.thread))
    """

    def __init__(self, indent: str = "    ", max_text_length: int = 280):
        self.indent = indent
        self.max_text_length = max_text_length

    def format(self, tree: ThreadTree) -> str:
        if tree is None or len(tree) == 0:
            return self._format_empty_view()

        top_depth = min(node.depth for node in tree.nodes)
        output_lines = ["=" * 80]
        output_lines.append(f"🧵 THREAD: {tree.root.uri}")
        output_lines.append("=" * 80)
        output_lines.append("")

        for node in tree.walk():
            output_lines.extend(self._format_node(node, node.depth - top_depth))
            output_lines.append("")

        output_lines.extend(self._format_summary(tree))
        return "\n".join(output_lines)

    def _format_node(self, node: Union[ThreadPost, NotFoundPost], level: int) -> List[str]:
        pad = self.indent * level
        if node.is_not_found:
            return [f"{pad}🚫 Post not found ({node.uri})"]

        lines = []
        marker = "⭐ " if node.is_highlighted_root else ("↳ " if node.depth > 0 else "")
        lines.append(f"{pad}{marker}{self._author_label(node)} at {node.indexed_at or 'unknown time'}:")

        if node.replying_to is not None:
            target = sanitize_handle(node.replying_to.author.handle, "@")
            lines.append(f"{pad}   ↪ replying to {target}: {self._truncate(node.replying_to.text)}")

        lines.append(f"{pad}   {self._truncate(node.text)}")
        lines.append(
            f"{pad}   💬 {node.reply_count}  🔁 {node.repost_count}"
            f"  ▲ {node.upvote_count}  ▼ {node.downvote_count}"
        )
        return lines

    @staticmethod
    def _author_label(post: ThreadPost) -> str:
        handle = sanitize_handle(post.author.handle, "@")
        if post.author.display_name:
            return f"{sanitize_display_name(post.author.display_name)} ({handle})"
        return handle

    def _truncate(self, text: str) -> str:
        text = " ".join(text.split())
        if len(text) > self.max_text_length:
            return text[: self.max_text_length - 1] + "…"
        return text

    def _format_summary(self, tree: ThreadTree) -> List[str]:
        ancestors = len(tree.ancestors_of(tree.root))
        missing = sum(1 for node in tree.nodes if node.is_not_found)
        replies = len(tree) - ancestors - 1
        lines = ["📊 THREAD SUMMARY:"]
        lines.append(f"   • Ancestors: {ancestors}")
        lines.append(f"   • Replies: {replies}")
        if missing:
            lines.append(f"   • Not found: {missing}")
        return lines

    def _format_empty_view(self) -> str:
        return "\n".join(["=" * 80, "No thread loaded.", "=" * 80])
