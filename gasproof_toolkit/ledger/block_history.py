"""
Rolling commitment to recent block history.

Hosts only expose the hashes of the last BLOCKHASH_WINDOW blocks, so the
ledger has to be extended at least once per window. Each extension commits
to a contiguous block range with an accumulator root; entries are appended
or the last one is recomputed, never deleted or reordered.
"""

import threading
from typing import Dict, List, Optional, Protocol, Tuple

from gasproof_toolkit.shared.constants import ProtocolConstants
from gasproof_toolkit.shared.exceptions import PrecheckViolation, StaleHistory
from gasproof_toolkit.shared.logging import get_logger
from gasproof_toolkit.shared.types import LedgerEntry
from gasproof_toolkit.utils.trees import bubble_up, new_accumulator

_logger = get_logger(__name__)


class ChainView(Protocol):
    """What the ledger needs from the host chain."""

    def block_number(self) -> int:
        """Current chain height."""
        ...

    def block_hash(self, number: int) -> bytes:
        """Canonical hash, or ZERO_HASH once outside the window."""
        ...


class InMemoryChain:
    """
    Chain view over a locally held list of block hashes.

    Mirrors the host's window: only hashes of blocks in
    [height - BLOCKHASH_WINDOW, height) are served.
    """

    def __init__(self, hashes: Optional[Dict[int, bytes]] = None, height: int = 0):
        self._hashes = dict(hashes or {})
        self.height = height

    def set_hash(self, number: int, block_hash: bytes) -> None:
        self._hashes[number] = block_hash

    def advance(self, blocks: int = 1) -> int:
        self.height += blocks
        return self.height

    def block_number(self) -> int:
        return self.height

    def block_hash(self, number: int) -> bytes:
        window = ProtocolConstants.BLOCKHASH_WINDOW
        if number >= self.height or number < self.height - window:
            return ProtocolConstants.ZERO_HASH
        return self._hashes.get(number, ProtocolConstants.ZERO_HASH)


class BlockHistoryLedger:
    """Append/amend-only sequence of block range commitments"""

    def __init__(self, chain: ChainView):
        self.chain = chain
        self._entries: List[LedgerEntry] = []
        # _write_lock serialises writers across slow chain reads; _lock only
        # guards the list itself so snapshots never wait on the network
        self._write_lock = threading.Lock()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Tuple[LedgerEntry, ...]:
        return tuple(self._entries)

    def snapshot(self) -> Tuple[LedgerEntry, ...]:
        """Consistent prefix of the ledger for a verification call."""
        with self._lock:
            return tuple(self._entries)

    def entry(self, index: int) -> LedgerEntry:
        if not 0 <= index < len(self._entries):
            raise IndexError(f"No ledger entry at index {index}")
        return self._entries[index]

    def find_entry_index(self, block_number: int) -> int:
        """Index of the last entry whose range starts at or before the block."""
        for index in range(len(self._entries) - 1, -1, -1):
            if self._entries[index].range_start <= block_number:
                return index
        raise IndexError(f"No ledger entry covers block {block_number}")

    def initialize(self) -> LedgerEntry:
        """Create the zero sentinel entry covering [0, current height]."""
        with self._write_lock:
            if self._entries:
                raise PrecheckViolation("Ledger already initialized")
            height = self.chain.block_number()
            entry = LedgerEntry(ProtocolConstants.ZERO_HASH, 0, height)
            with self._lock:
                self._entries.append(entry)
        _logger.info(f"Ledger initialized at height {height}")
        return entry

    def extend(self) -> LedgerEntry:
        """
        Commit to the blocks that became provable since the last call.

        Returns:
            LedgerEntry: the entry that was appended or overwritten.

        Raises:
            PrecheckViolation: the ledger was never initialized.
            StaleHistory: a needed block hash is no longer retrievable.
        """
        with self._write_lock:
            if not self._entries:
                raise PrecheckViolation("Ledger not initialized")

            height = self.chain.block_number()
            floor = max(0, height - ProtocolConstants.BLOCKHASH_WINDOW)
            last = self._entries[-1]

            if floor <= last.range_start:
                root = self.commit_range(last.range_start, height)
                # Range is left as recorded; only range_start is read later
                entry = LedgerEntry(root, last.range_start, last.range_end)
                with self._lock:
                    self._entries[-1] = entry
                _logger.info(
                    f"Recomputed entry {len(self._entries) - 1} over "
                    f"[{last.range_start}, {height})"
                )
                return entry

            if floor <= last.range_end:
                low = last.range_end
            else:
                low = floor
                _logger.warning(
                    f"Blocks ({last.range_end}, {floor}) aged out before the "
                    f"ledger was extended and can no longer be proven"
                )

            entry = LedgerEntry(self.commit_range(low, height), low, height)
            with self._lock:
                self._entries.append(entry)
            _logger.info(
                f"Appended entry {len(self._entries) - 1} over [{low}, {height})"
            )
            return entry

    def commit_range(self, low: int, high: int) -> bytes:
        """
        Accumulator root over the hashes of blocks [low, high).

        The leaf count is padded with zero leaves up to the next power of two.
        """
        if low >= high:
            return ProtocolConstants.ZERO_HASH

        tree = new_accumulator()
        min_folded = max_height = 0
        for number in range(low, high):
            block_hash = self.chain.block_hash(number)
            if block_hash == ProtocolConstants.ZERO_HASH:
                raise StaleHistory(
                    f"Block hash {number} is no longer available",
                    block_number=number,
                )
            min_folded, max_height = bubble_up(tree, max_height, 0, block_hash)

        while min_folded != max_height:
            min_folded, max_height = bubble_up(
                tree, max_height, 0, ProtocolConstants.ZERO_HASH
            )
        return tree[max_height]
