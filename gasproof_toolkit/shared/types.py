"""
Shared type definitions used across the Gas Proof toolkit.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from gasproof_toolkit.shared.constants import ProtocolConstants

# =============================================================================
# POSITION ENCODING
# =============================================================================


def encode_position(block_number: int, tx_index: int) -> int:
    """Pack (block number, tx index or sentinel) into one 256-bit word."""
    return (block_number << ProtocolConstants.POSITION_SHIFT) | tx_index


def decode_position(encoded_position: int) -> Tuple[int, int]:
    """Split an encoded position into (block number, tx index or sentinel)."""
    shift = ProtocolConstants.POSITION_SHIFT
    return encoded_position >> shift, encoded_position & ((1 << shift) - 1)


def pack_range(range_start: int, range_end: int) -> int:
    """On-chain storage word for a ledger range: start + end * 2^128."""
    return range_start + (range_end << 128)


def unpack_range(word: int) -> Tuple[int, int]:
    return word & ((1 << 128) - 1), word >> 128


# =============================================================================
# LEDGER TYPES
# =============================================================================


@dataclass(frozen=True)
class LedgerEntry:
    """Commitment to the canonical hashes of a contiguous block range."""

    root_hash: bytes  # Root of the block-hash accumulator
    range_start: int  # First block committed (leaf offset 0)
    range_end: int  # Chain height when the entry was written

    @property
    def range_word(self) -> int:
        return pack_range(self.range_start, self.range_end)


# =============================================================================
# CLAIM TYPES
# =============================================================================


@dataclass
class AggregateClaim:
    """
    Top-level gas claim made by a prover over blocks [starting, ending).

    alpha_claimed is scaled by ProtocolConstants.ALPHA_DENOMINATOR.
    """

    pgas_commitment: bytes  # Sum-tree root over all gas leaves
    pgas_claimed: int  # Total gas the sum tree commits to
    alpha_claimed: int  # Scaled claimed validity fraction
    confidence: int  # 0..99, range-checked only
    dispute_gas_cost: int  # Cost to dispute one unit of the claim
    starting_block_num: int
    ending_block_num: int
    max_gas_price: int  # Ceiling for sampled transaction gas prices

    @property
    def block_count(self) -> int:
        return self.ending_block_num - self.starting_block_num


@dataclass
class SumTreeOpening:
    """
    Opening of one sum-tree leaf.

    siblings lists (hash, sum) pairs from the leaf level up; leaf_index
    selects left/right at each level.
    """

    leaf_index: int
    leaf_value: int
    encoded_position: int
    siblings: List[Tuple[bytes, int]] = field(default_factory=list)


@dataclass
class SampleProof:
    """Everything the caller supplies to check a single sample."""

    opening: SumTreeOpening
    ledger_index: int  # Ledger entry whose range covers the block
    block_header: bytes  # RLP encoded block header
    block_proof: Sequence[bytes]  # Accumulator siblings, leaf level first
    tx_proof: Optional[Sequence] = None  # Hexary trie nodes (decoded RLP)
    receipt_proof: Optional[Sequence] = None
    prev_receipt_proof: Optional[Sequence] = None


@dataclass(frozen=True)
class SampleClaim:
    """A sample whose opening, membership and content all checked out."""

    index: int
    encoded_position: int
    prefix_sum: int
    leaf_value: int

    @property
    def block_number(self) -> int:
        return decode_position(self.encoded_position)[0]

    @property
    def tx_index(self) -> int:
        return decode_position(self.encoded_position)[1]

    @property
    def is_block_sample(self) -> bool:
        return self.tx_index == ProtocolConstants.TX_INDEX_SENTINEL


@dataclass
class VerifiedGas:
    """Outcome of a successful aggregate verification."""

    pgas_verified: int  # Portion of the claim underwritten statistically
    cgas_confirmed: int  # Dispute-safe confirmed quantity
    samples: List[SampleClaim] = field(default_factory=list)
