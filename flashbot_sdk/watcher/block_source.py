"""
Block notification sources for the inclusion watcher.

A block source tells subscribers about new block heights and lets them fetch
the transaction hashes of a block. Heights are expected to be delivered in
increasing order; the watcher ignores anything else.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from web3 import Web3
from web3.exceptions import BlockNotFound

from ._rate_limited_log import rate_limited_log

logger = logging.getLogger(__name__)

BlockCallback = Callable[[int], None]

# Upper bound on how long close() waits for the poller thread, in seconds
CLOSE_JOIN_TIMEOUT = 5.0


class BlockSource(ABC):
    """
    Abstract base class for new-block notification providers.
    """

    @abstractmethod
    def subscribe(self, callback: BlockCallback) -> None:
        """
        Register a callback invoked with each new block number.

        Args:
            callback: Called with the block height of every new block
        """
        pass

    @abstractmethod
    def unsubscribe(self, callback: BlockCallback) -> None:
        """
        Remove a previously registered callback. Unknown callbacks are ignored.
        """
        pass

    @abstractmethod
    def get_block_transactions(self, block_number: int) -> List[str]:
        """
        Get the transaction hashes of a block.

        Args:
            block_number: Block height

        Returns:
            Hex transaction hashes in block order; empty if the block body is
            not available yet
        """
        pass

    def close(self) -> None:
        """Release any resources held by the source."""
        pass


class Web3BlockSource(BlockSource):
    """
    Block source that polls a web3 provider for new block heights.

    A daemon thread runs while at least one callback is subscribed. Every
    height between the last seen block and the chain head is delivered, in
    order, so no notification is skipped when blocks arrive faster than the
    poll interval.
    """

    def __init__(
        self,
        w3: Web3,
        poll_interval: float = 1.0,
        logger: Optional[logging.Logger] = None
    ):
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        self.w3 = w3
        self.poll_interval = poll_interval
        self.logger = logger or logging.getLogger(__name__)

        self._callbacks: List[BlockCallback] = []
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_url(cls, rpc_url: str, **kwargs) -> "Web3BlockSource":
        """Create a source polling the given HTTP JSON-RPC endpoint."""
        return cls(Web3(Web3.HTTPProvider(rpc_url)), **kwargs)

    def subscribe(self, callback: BlockCallback) -> None:
        with self._lock:
            if callback not in self._callbacks:
                self._callbacks.append(callback)
            if self._thread is None or not self._thread.is_alive() or self._stop.is_set():
                self._start()

    def unsubscribe(self, callback: BlockCallback) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
            if not self._callbacks:
                self._stop.set()

    def get_block_transactions(self, block_number: int) -> List[str]:
        try:
            block = self.w3.eth.get_block(block_number)
        except BlockNotFound:
            self.logger.debug(f"Block {block_number} not available yet")
            return []

        transactions = block.get("transactions") or []
        return [tx if isinstance(tx, str) else Web3.to_hex(tx) for tx in transactions]

    def close(self) -> None:
        """Stop polling and wait up to ``CLOSE_JOIN_TIMEOUT`` seconds for the poller to exit."""
        with self._lock:
            self._callbacks.clear()
            self._stop.set()
            thread = self._thread

        # A callback may close the source from the poller thread itself
        if thread is not None and thread is not threading.current_thread():
            thread.join(CLOSE_JOIN_TIMEOUT)
            if thread.is_alive():
                self.logger.warning(
                    f"Block poller did not stop within {CLOSE_JOIN_TIMEOUT}s"
                )

    def _start(self) -> None:
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._poll,
            args=(self._stop,),
            name="web3-block-poller",
            daemon=True,
        )
        self._thread.start()
        self.logger.debug("Started block polling")

    def _poll(self, stop: threading.Event) -> None:
        last_block: Optional[int] = None
        while not stop.is_set():
            try:
                head = self.w3.eth.block_number
            except Exception as e:
                rate_limited_log(
                    f"Polling block number failed: {e}",
                    level="warning",
                    logger_instance=self.logger,
                )
                stop.wait(self.poll_interval)
                continue

            first = head if last_block is None else last_block + 1
            for block_number in range(first, head + 1):
                if stop.is_set():
                    break
                self._dispatch(block_number)
                last_block = block_number

            stop.wait(self.poll_interval)
        self.logger.debug("Stopped block polling")

    def _dispatch(self, block_number: int) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback(block_number)
            except Exception as e:
                self.logger.error(f"Block callback failed for block {block_number}: {e}")
