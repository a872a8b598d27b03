"""Verification of a single sampled sum-tree leaf"""

from typing import Optional, Sequence

from eth_abi import encode
from eth_utils import keccak

from gasproof_toolkit.ledger.block_history import BlockHistoryLedger
from gasproof_toolkit.shared.constants import ProtocolConstants
from gasproof_toolkit.shared.exceptions import (
    ContentMismatch,
    DecodingException,
    InclusionFailure,
    PositionBindingFailure,
)
from gasproof_toolkit.shared.logging import get_logger
from gasproof_toolkit.shared.types import (
    AggregateClaim,
    LedgerEntry,
    SampleClaim,
    SampleProof,
    decode_position,
)
from gasproof_toolkit.utils.decoding import (
    block_hash,
    decode_block_gas_used,
    decode_block_number,
    decode_gas_price,
    decode_gas_used,
    decode_tx_receipt_roots,
)
from gasproof_toolkit.utils.trees import (
    open_sum_tree,
    read_keyed_value,
    verify_membership,
)

_logger = get_logger(__name__)


def sample_position(commitment: bytes, pgas_claimed: int, index: int) -> int:
    """
    Pseudorandom point in [0, pgas_claimed) selected for a sample index.

    Derived only from public values, so the prover cannot pick which
    leaves get opened. Heavier leaves cover more points and are hit
    proportionally more often.
    """
    digest = keccak(
        encode(
            ["bytes32", "uint256", "uint256"],
            [commitment, pgas_claimed, index],
        )
    )
    return int.from_bytes(digest, byteorder="big") % pgas_claimed


def check_position_binding(position: int, prefix_sum: int, leaf_value: int) -> bool:
    """The leaf owns the half-open span (prefix_sum, prefix_sum + leaf_value]."""
    return prefix_sum < position <= prefix_sum + leaf_value


class SampleVerifier:
    """Checks one sample against the claim, the ledger and decoded block data"""

    def __init__(self, ledger: BlockHistoryLedger):
        self.ledger = ledger

    def verify_sample(
        self,
        claim: AggregateClaim,
        index: int,
        proof: SampleProof,
        entries: Optional[Sequence[LedgerEntry]] = None,
    ) -> SampleClaim:
        """
        Verify sample `index` of a claim.

        Args:
            claim: The aggregate claim under verification
            index: Sample nonce, 0 <= index < number of samples
            proof: Opening, block header and proofs for this sample
            entries: Ledger snapshot to check against (defaults to current)

        Returns:
            SampleClaim: the verified leaf

        Raises:
            InclusionFailure, PositionBindingFailure, ContentMismatch,
            DecodingException (malformed header, transaction or receipt)
        """
        shift = ProtocolConstants.POSITION_SHIFT
        prefix_sum, leaf_value, encoded_position = open_sum_tree(
            claim.pgas_commitment,
            claim.pgas_claimed,
            claim.starting_block_num << shift,
            claim.ending_block_num << shift,
            proof.opening,
        )

        position = sample_position(
            claim.pgas_commitment, claim.pgas_claimed, index
        )
        if not check_position_binding(position, prefix_sum, leaf_value):
            raise PositionBindingFailure(
                f"Sample {index}: position {position} outside leaf span "
                f"({prefix_sum}, {prefix_sum + leaf_value}]",
                index=index,
            )

        block_number, tx_index = decode_position(encoded_position)
        self._verify_block(index, block_number, proof, entries)

        if tx_index == ProtocolConstants.TX_INDEX_SENTINEL:
            self._verify_unused_gas(index, leaf_value, proof.block_header)
        else:
            self._verify_tx_gas(index, claim, tx_index, leaf_value, proof)

        _logger.debug(
            f"Sample {index}: leaf {proof.opening.leaf_index} at block "
            f"{block_number} verified, value {leaf_value}"
        )
        return SampleClaim(
            index=index,
            encoded_position=encoded_position,
            prefix_sum=prefix_sum,
            leaf_value=leaf_value,
        )

    def _verify_block(
        self,
        index: int,
        block_number: int,
        proof: SampleProof,
        entries: Optional[Sequence[LedgerEntry]] = None,
    ) -> None:
        if entries is None:
            entries = self.ledger.snapshot()
        if not 0 <= proof.ledger_index < len(entries):
            raise InclusionFailure(
                f"Sample {index}: no ledger entry {proof.ledger_index}",
                index=index,
            )
        entry = entries[proof.ledger_index]
        if not isinstance(proof.block_header, bytes):
            raise DecodingException(
                f"Sample {index}: block header must be bytes", index=index
            )
        if block_number < entry.range_start:
            raise InclusionFailure(
                f"Sample {index}: block {block_number} precedes ledger entry "
                f"{proof.ledger_index} starting at {entry.range_start}",
                index=index,
            )

        leaf = block_hash(proof.block_header)
        offset = block_number - entry.range_start
        if not verify_membership(entry.root_hash, leaf, offset, proof.block_proof):
            raise InclusionFailure(
                f"Sample {index}: block {block_number} is not in ledger entry "
                f"{proof.ledger_index}",
                index=index,
                block_number=block_number,
            )

        header_number = decode_block_number(proof.block_header)
        if header_number != block_number:
            raise ContentMismatch(
                f"Sample {index}: header is for block {header_number}, "
                f"leaf claims block {block_number}",
                index=index,
            )

    def _verify_unused_gas(
        self, index: int, leaf_value: int, header: bytes
    ) -> None:
        gas_limit, gas_used = decode_block_gas_used(header)
        if leaf_value != gas_limit - gas_used:
            raise ContentMismatch(
                f"Sample {index}: unused gas is {gas_limit - gas_used}, "
                f"leaf claims {leaf_value}",
                index=index,
            )

    def _verify_tx_gas(
        self,
        index: int,
        claim: AggregateClaim,
        tx_index: int,
        leaf_value: int,
        proof: SampleProof,
    ) -> None:
        tx_root, receipt_root = decode_tx_receipt_roots(proof.block_header)

        tx = self._read(tx_root, tx_index, proof.tx_proof, "transaction", index)
        gas_price = decode_gas_price(tx)
        if gas_price > claim.max_gas_price:
            raise ContentMismatch(
                f"Sample {index}: gas price {gas_price} exceeds maximum "
                f"{claim.max_gas_price}",
                index=index,
            )

        receipt = self._read(
            receipt_root, tx_index, proof.receipt_proof, "receipt", index
        )
        gas = decode_gas_used(receipt)
        if tx_index > 0:
            prev_receipt = self._read(
                receipt_root,
                tx_index - 1,
                proof.prev_receipt_proof,
                "previous receipt",
                index,
            )
            gas -= decode_gas_used(prev_receipt)

        if gas != leaf_value:
            raise ContentMismatch(
                f"Sample {index}: transaction {tx_index} used {gas} gas, "
                f"leaf claims {leaf_value}",
                index=index,
            )

    @staticmethod
    def _read(root: bytes, key_index: int, trie_proof, what: str, index: int) -> bytes:
        if trie_proof is None:
            raise InclusionFailure(
                f"Sample {index}: missing {what} proof", index=index
            )
        value = read_keyed_value(root, key_index, trie_proof)
        if not value:
            raise InclusionFailure(
                f"Sample {index}: {what} {key_index} not found in trie",
                index=index,
            )
        return value
