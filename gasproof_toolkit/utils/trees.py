"""
Tree primitives used by verification.

- an incremental block-hash accumulator (bubble_up)
- binary Merkle membership checks against an accumulator root
- sum-tree openings: a Merkle tree whose nodes also commit to the total
  weight beneath them, so an opened leaf proves its prefix sum
- reads from Ethereum hexary tries (transactions, receipts) via proofs
"""

from typing import List, Optional, Sequence, Tuple

import rlp
from eth_abi import encode
from eth_utils import keccak
from rlp.exceptions import RLPException
from trie import HexaryTrie
from trie.exceptions import BadTrieProof, InvalidNode, ValidationError

from gasproof_toolkit.shared.constants import ProtocolConstants
from gasproof_toolkit.shared.exceptions import InclusionFailure
from gasproof_toolkit.shared.types import SumTreeOpening

UINT256_MAX = 2**256 - 1


def hash_pair(left: bytes, right: bytes) -> bytes:
    return keccak(left + right)


# =============================================================================
# BLOCK-HASH ACCUMULATOR
# =============================================================================


def new_accumulator() -> List[Optional[bytes]]:
    """Empty accumulator: one slot per tree height."""
    return [None] * ProtocolConstants.ACCUMULATOR_DEPTH


def bubble_up(
    tree: List[Optional[bytes]],
    max_height: int,
    insert_height: int,
    leaf: bytes,
) -> Tuple[int, int]:
    """
    Insert a node at insert_height, folding filled sibling pairs upwards.

    Slots hold the root of a complete subtree of that height, or None.
    The tree list is mutated in place.

    Returns:
        (min_folded_height, max_height): the height where the carried node
        landed (every slot below it is empty) and the highest slot ever
        touched. The tree is fully folded into a single root when both are
        equal.
    """
    node = leaf
    height = insert_height
    while tree[height] is not None:
        node = hash_pair(tree[height], node)
        tree[height] = None
        height += 1
        if height >= len(tree):
            raise OverflowError("Accumulator capacity exceeded")
    tree[height] = node
    return height, max(max_height, height)


def verify_membership(
    root: bytes, leaf: bytes, index: int, proof: Sequence[bytes]
) -> bool:
    """Check that leaf sits at index under root, siblings listed bottom-up."""
    if not isinstance(proof, (tuple, list)) or not all(
        isinstance(sibling, bytes) and len(sibling) == 32 for sibling in proof
    ):
        return False
    if not isinstance(index, int) or index < 0 or index >= 1 << len(proof):
        return False
    node = leaf
    for level, sibling in enumerate(proof):
        if (index >> level) & 1:
            node = hash_pair(sibling, node)
        else:
            node = hash_pair(node, sibling)
    return node == root


# =============================================================================
# SUM TREE
# =============================================================================


def sum_leaf_hash(value: int, encoded_position: int) -> bytes:
    return keccak(encode(["uint256", "uint256"], [value, encoded_position]))


def sum_node_hash(
    left_hash: bytes, left_sum: int, right_hash: bytes, right_sum: int
) -> bytes:
    return keccak(
        encode(
            ["bytes32", "uint256", "bytes32", "uint256"],
            [left_hash, left_sum, right_hash, right_sum],
        )
    )


def _check_word(value: int, what: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InclusionFailure(f"Sum-tree {what} must be an integer, got {value!r}")
    if not 0 <= value <= UINT256_MAX:
        raise InclusionFailure(f"Sum-tree {what} out of uint256 range: {value}")


def open_sum_tree(
    commitment: bytes,
    total: int,
    range_low: int,
    range_high: int,
    opening: SumTreeOpening,
) -> Tuple[int, int, int]:
    """
    Open the sum tree at one leaf.

    The recomputed root must equal the commitment, the root weight must
    equal the claimed total and the leaf's encoded position must lie in
    [range_low, range_high).

    Returns:
        (prefix_sum, leaf_value, encoded_position)
    """
    if not isinstance(opening.siblings, (tuple, list)):
        raise InclusionFailure("Sum-tree siblings must be a sequence")
    _check_word(opening.leaf_index, "leaf index")
    if opening.leaf_index >= 1 << len(opening.siblings):
        raise InclusionFailure(
            f"Leaf index {opening.leaf_index} does not fit a tree of depth "
            f"{len(opening.siblings)}"
        )
    _check_word(opening.leaf_value, "leaf value")
    _check_word(opening.encoded_position, "position")
    if not range_low <= opening.encoded_position < range_high:
        raise InclusionFailure(
            f"Encoded position {opening.encoded_position:#x} lies outside "
            f"the claimed block range",
            encoded_position=opening.encoded_position,
        )

    node_hash = sum_leaf_hash(opening.leaf_value, opening.encoded_position)
    node_sum = opening.leaf_value
    prefix_sum = 0

    for level, sibling in enumerate(opening.siblings):
        if not isinstance(sibling, (tuple, list)) or len(sibling) != 2:
            raise InclusionFailure(
                f"Sum-tree sibling {level} must be a (hash, sum) pair"
            )
        sibling_hash, sibling_sum = sibling
        _check_word(sibling_sum, "sibling sum")
        if not isinstance(sibling_hash, bytes) or len(sibling_hash) != 32:
            raise InclusionFailure("Sum-tree sibling hash must be 32 bytes")
        if (opening.leaf_index >> level) & 1:
            prefix_sum += sibling_sum
            node_hash = sum_node_hash(
                sibling_hash, sibling_sum, node_hash, node_sum
            )
        else:
            node_hash = sum_node_hash(
                node_hash, node_sum, sibling_hash, sibling_sum
            )
        node_sum += sibling_sum
        _check_word(node_sum, "subtree sum")

    if node_hash != commitment:
        raise InclusionFailure("Sum-tree opening does not match commitment")
    if node_sum != total:
        raise InclusionFailure(
            f"Sum-tree total {node_sum} differs from claimed {total}"
        )
    return prefix_sum, opening.leaf_value, opening.encoded_position


# =============================================================================
# HEXARY TRIE
# =============================================================================


def read_keyed_value(root: bytes, index: int, proof: Sequence) -> bytes:
    """
    Read the value stored under rlp(index) in a hexary trie.

    Transaction and receipt tries key each entry by its RLP-encoded index
    within the block. Returns b"" when the proof shows the key is absent.
    """
    key = rlp.encode(index)
    try:
        return HexaryTrie.get_from_proof(root, key, proof)
    except (
        BadTrieProof,
        InvalidNode,
        ValidationError,
        RLPException,
        TypeError,
        ValueError,
    ) as e:
        raise InclusionFailure(
            f"Invalid trie proof for index {index}: {e}", index=index
        ) from e
