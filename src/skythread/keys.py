"""Per-rebuild node key allocation"""


class KeyAllocator:
    """Hand out ``item-N`` keys in traversal order

    One allocator is created per tree rebuild, so keys are only stable for
    the lifetime of that snapshot and restart at ``item-0`` on the next one.
    """

    def __init__(self, prefix: str = "item"):
        self.prefix = prefix
        self._counter = 0

    def next_key(self) -> str:
        key = f"{self.prefix}-{self._counter}"
        self._counter += 1
        return key

    @property
    def allocated(self) -> int:
        """Number of keys handed out so far"""
        return self._counter
