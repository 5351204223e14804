"""
In-memory block source for watcher tests.
"""
from typing import Dict, Iterable, List, Optional, Union

from flashbot_sdk.watcher import BlockSource


class FakeBlockSource(BlockSource):
    """
    Block source with canned blocks.

    Heights listed in ``script`` are delivered synchronously, in order, as
    soon as a callback subscribes. Block entries that are exceptions are
    raised from get_block_transactions.
    """

    def __init__(
        self,
        blocks: Optional[Dict[int, Union[List[str], Exception]]] = None,
        script: Optional[Iterable[int]] = None
    ):
        self.blocks = dict(blocks or {})
        self.script = list(script or [])
        self.callbacks = []
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0
        self.fetched: List[int] = []

    def subscribe(self, callback):
        self.subscribe_calls += 1
        self.callbacks.append(callback)
        for block_number in self.script:
            self.emit(block_number)

    def unsubscribe(self, callback):
        self.unsubscribe_calls += 1
        if callback in self.callbacks:
            self.callbacks.remove(callback)

    def emit(self, block_number: int) -> None:
        for callback in list(self.callbacks):
            callback(block_number)

    def get_block_transactions(self, block_number: int) -> List[str]:
        self.fetched.append(block_number)
        value = self.blocks.get(block_number, [])
        if isinstance(value, Exception):
            raise value
        return list(value)
