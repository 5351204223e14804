"""
Inclusion watcher.

Relay-side bundle stats lag behind the chain, so inclusion is decided by
looking at the transactions of each new block. The watcher moves from
watching to one of two terminal states:

- ``success``: a block contains at least one watched transaction hash
- ``passed``: a block at or beyond the target height contains none of them

A match at the target height is reported as ``success``.
"""
import logging
import threading
import time
from typing import Dict, Iterable, List, Optional, Sequence

from ..exceptions import InclusionCancelledError, InclusionTimeoutError
from ..models import InclusionOutcome, InclusionStatus
from ._rate_limited_log import rate_limited_log
from .block_source import BlockSource

logger = logging.getLogger(__name__)

# How often a waiting thread checks its cancellation event, in seconds
CANCEL_CHECK_INTERVAL = 0.1


def _normalise_hash(tx_hash: str) -> str:
    return tx_hash.lower()


class InclusionWatcher:
    """
    One-shot watcher deciding whether any of ``tx_hashes`` lands on-chain
    no later than ``target_block``.

    Notifications whose height is not above the last processed one are
    ignored, and so is anything delivered after a terminal state.
    """

    def __init__(
        self,
        block_source: BlockSource,
        target_block: int,
        tx_hashes: Iterable[str],
        logger: Optional[logging.Logger] = None
    ):
        if isinstance(target_block, bool) or not isinstance(target_block, int) or target_block < 0:
            raise ValueError(f"target_block must be a non-negative int, got {target_block!r}")

        # Normalised hash -> caller's spelling
        self._watched: Dict[str, str] = {}
        for tx_hash in tx_hashes:
            self._watched.setdefault(_normalise_hash(tx_hash), tx_hash)
        if not self._watched:
            raise ValueError("At least one transaction hash must be watched")

        self.block_source = block_source
        self.target_block = target_block
        self.logger = logger or logging.getLogger(__name__)

        self._lock = threading.Lock()
        self._done = threading.Event()
        self._closed = False
        self._last_block: Optional[int] = None
        self._outcome: Optional[InclusionOutcome] = None
        self._error: Optional[BaseException] = None

    @property
    def outcome(self) -> Optional[InclusionOutcome]:
        return self._outcome

    def evaluate(self, block_number: int, transactions: Sequence[str]) -> Optional[InclusionOutcome]:
        """
        Apply the transition rule to one block.

        Returns:
            The terminal outcome, or None to keep watching
        """
        if not transactions:
            return None

        matched: List[str] = []
        for tx_hash in transactions:
            original = self._watched.get(_normalise_hash(tx_hash))
            if original is not None and original not in matched:
                matched.append(original)

        if matched:
            return InclusionOutcome(
                status=InclusionStatus.SUCCESS,
                block_number=block_number,
                transactions=tuple(matched),
            )
        if block_number >= self.target_block:
            return InclusionOutcome(status=InclusionStatus.PASSED, block_number=block_number)
        return None

    def on_block(self, block_number: int) -> None:
        """
        Block source callback.

        The block body is fetched without holding the watcher lock, so a slow
        fetch never delays a timeout or cancellation in ``wait``. State is
        checked again once the fetch returns.
        """
        with self._lock:
            if not self._accepts(block_number):
                return

        try:
            transactions = self.block_source.get_block_transactions(block_number)
        except Exception as e:
            with self._lock:
                if self._closed:
                    return
                self.logger.error(f"Fetching block {block_number} failed: {e}")
                self._error = e
                self._terminate()
            return

        with self._lock:
            if not self._accepts(block_number):
                return
            if not transactions:
                self.logger.debug(f"Block {block_number} has no transactions yet, still watching")
                return
            self._last_block = block_number

            outcome = self.evaluate(block_number, transactions)
            if outcome is None:
                return

            self._outcome = outcome
            self.logger.info(
                f"Inclusion watch for target {self.target_block} ended with "
                f"'{outcome.status.value}' at block {block_number}"
            )
            self._terminate()

    def wait(
        self,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> InclusionOutcome:
        """
        Subscribe to new blocks and block until a terminal state is reached.

        Without ``timeout`` or ``cancel_event`` the wait lasts as long as the
        block source keeps delivering blocks below the target; a stalled
        source leaves it waiting forever.

        Args:
            timeout: Wall-clock limit in seconds
            cancel_event: Event another thread may set to abandon the wait

        Returns:
            The inclusion outcome

        Raises:
            InclusionTimeoutError: If ``timeout`` elapses first
            InclusionCancelledError: If ``cancel_event`` is set first
            Exception: Whatever the block source raised while fetching a block
        """
        if self._done.is_set() or self._closed:
            raise RuntimeError("InclusionWatcher instances can only wait once")

        deadline = None if timeout is None else time.monotonic() + timeout
        self.block_source.subscribe(self.on_block)
        try:
            while not self._done.is_set():
                if cancel_event is not None and cancel_event.is_set():
                    raise InclusionCancelledError(
                        f"Inclusion wait for block {self.target_block} was cancelled"
                    )

                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise InclusionTimeoutError(
                        f"No inclusion decision for block {self.target_block} within {timeout}s"
                    )

                slice_ = remaining
                if cancel_event is not None:
                    slice_ = CANCEL_CHECK_INTERVAL if remaining is None else min(remaining, CANCEL_CHECK_INTERVAL)
                self._done.wait(slice_)
        finally:
            with self._lock:
                self._closed = True
            self.block_source.unsubscribe(self.on_block)

        if self._error is not None:
            raise self._error
        return self._outcome

    def _accepts(self, block_number: int) -> bool:
        # Called with self._lock held
        if self._closed:
            return False
        if self._last_block is not None and block_number <= self._last_block:
            rate_limited_log(
                f"Ignoring out-of-order block {block_number} "
                f"(already processed {self._last_block})",
                level="warning",
                logger_instance=self.logger,
            )
            return False
        return True

    def _terminate(self) -> None:
        # Called with self._lock held
        self._closed = True
        self.block_source.unsubscribe(self.on_block)
        self._done.set()
