"""
Unit tests for the tree primitives.
"""

import pytest
import rlp
from eth_utils import keccak

from builders import (
    SumTree,
    block_leaf,
    build_index_trie,
    merkle_proof,
    merkle_root,
    trie_proof,
)
from gasproof_toolkit.shared.exceptions import InclusionFailure
from gasproof_toolkit.shared.types import SumTreeOpening
from gasproof_toolkit.utils.trees import (
    bubble_up,
    hash_pair,
    new_accumulator,
    open_sum_tree,
    read_keyed_value,
    verify_membership,
)

SHIFT = 128


def _leaves(count):
    return [keccak(text=f"leaf-{i}") for i in range(count)]


class TestBubbleUp:
    """Tests for the incremental accumulator."""

    def test_first_leaf_is_folded(self):
        tree = new_accumulator()
        assert bubble_up(tree, 0, 0, b"\x01" * 32) == (0, 0)
        assert tree[0] == b"\x01" * 32

    def test_pairs_merge_upwards(self):
        tree = new_accumulator()
        a, b, c = _leaves(3)
        bubble_up(tree, 0, 0, a)
        assert bubble_up(tree, 0, 0, b) == (1, 1)
        assert tree[0] is None
        assert tree[1] == hash_pair(a, b)
        assert bubble_up(tree, 1, 0, c) == (0, 1)

    def test_zero_leaves_still_fold(self):
        tree = new_accumulator()
        zero = b"\x00" * 32
        bubble_up(tree, 0, 0, zero)
        assert bubble_up(tree, 0, 0, zero) == (1, 1)
        assert tree[1] == hash_pair(zero, zero)

    @pytest.mark.parametrize("count", [1, 2, 3, 5, 8, 13])
    def test_matches_padded_merkle_root(self, count):
        leaves = _leaves(count)
        tree = new_accumulator()
        min_folded = max_height = 0
        for leaf in leaves:
            min_folded, max_height = bubble_up(tree, max_height, 0, leaf)
        while min_folded != max_height:
            min_folded, max_height = bubble_up(tree, max_height, 0, b"\x00" * 32)
        assert tree[max_height] == merkle_root(leaves)

    def test_capacity_overflow(self):
        tree = [b"\x01" * 32, b"\x02" * 32]
        with pytest.raises(OverflowError):
            bubble_up(tree, 1, 0, b"\x03" * 32)


class TestVerifyMembership:
    def test_valid_proofs(self):
        leaves = _leaves(6)
        root = merkle_root(leaves)
        for i, leaf in enumerate(leaves):
            assert verify_membership(root, leaf, i, merkle_proof(leaves, i))

    def test_wrong_index_rejected(self):
        leaves = _leaves(4)
        root = merkle_root(leaves)
        assert not verify_membership(root, leaves[1], 2, merkle_proof(leaves, 1))

    def test_index_beyond_depth_rejected(self):
        leaves = _leaves(4)
        root = merkle_root(leaves)
        assert not verify_membership(root, leaves[0], 4, merkle_proof(leaves, 0))


class TestOpenSumTree:
    """Tests for sum-tree openings."""

    @pytest.fixture
    def tree(self):
        return SumTree(
            [block_leaf(10, 100), block_leaf(11, 250), block_leaf(12, 50)]
        )

    def test_returns_prefix_sum(self, tree):
        for i in range(3):
            prefix, value, position = open_sum_tree(
                tree.root, tree.total, 10 << SHIFT, 20 << SHIFT, tree.opening(i)
            )
            assert prefix == tree.prefix_sum(i)
            assert (value, position) == tree.leaves[i]

    def test_wrong_total_rejected(self, tree):
        with pytest.raises(InclusionFailure, match="total"):
            open_sum_tree(
                tree.root, tree.total + 1, 10 << SHIFT, 20 << SHIFT, tree.opening(0)
            )

    def test_tampered_value_rejected(self, tree):
        opening = tree.opening(1)
        opening.leaf_value += 1
        with pytest.raises(InclusionFailure):
            open_sum_tree(
                tree.root, tree.total, 10 << SHIFT, 20 << SHIFT, opening
            )

    def test_position_outside_range_rejected(self, tree):
        with pytest.raises(InclusionFailure, match="outside"):
            open_sum_tree(
                tree.root, tree.total, 11 << SHIFT, 20 << SHIFT, tree.opening(0)
            )

    def test_leaf_index_beyond_depth_rejected(self, tree):
        opening = tree.opening(0)
        bad = SumTreeOpening(
            leaf_index=8,
            leaf_value=opening.leaf_value,
            encoded_position=opening.encoded_position,
            siblings=opening.siblings,
        )
        with pytest.raises(InclusionFailure, match="depth"):
            open_sum_tree(tree.root, tree.total, 0, 20 << SHIFT, bad)


class TestReadKeyedValue:
    def test_reads_each_index(self):
        values = [rlp.encode([i, b"payload"]) for i in range(20)]
        trie = build_index_trie(values)
        for i in (0, 1, 7, 19):
            assert read_keyed_value(trie.root_hash, i, trie_proof(trie, i)) == values[i]

    def test_absent_key_reads_empty(self):
        trie = build_index_trie([b"\x01" * 40, b"\x02" * 40])
        assert read_keyed_value(trie.root_hash, 5, trie_proof(trie, 5)) == b""

    def test_proof_for_other_root_rejected(self):
        trie = build_index_trie([b"\x01" * 40, b"\x02" * 40])
        other = build_index_trie([b"\x03" * 40, b"\x04" * 40])
        with pytest.raises(InclusionFailure):
            read_keyed_value(trie.root_hash, 0, trie_proof(other, 0))


class TestMalformedProofShapes:
    """Prover-supplied proofs of the wrong shape fail as inclusion errors."""

    @pytest.mark.parametrize("proof", [[123], [None], 7, [[b"\x01", 2]]])
    def test_trie_proof_with_bad_nodes(self, proof):
        trie = build_index_trie([b"\x01" * 40, b"\x02" * 40])
        with pytest.raises(InclusionFailure):
            read_keyed_value(trie.root_hash, 0, proof)

    @pytest.fixture
    def tree(self):
        return SumTree([block_leaf(10, 100), block_leaf(11, 250)])

    @pytest.mark.parametrize(
        "sibling",
        [
            (b"\x00" * 32, None),
            (b"\x00" * 32, "250"),
            (b"\x00" * 32, True),
            (123, 250),
            (b"\x00" * 31, 250),
            b"\x00" * 32,
            None,
        ],
    )
    def test_sum_tree_sibling_with_bad_shape(self, tree, sibling):
        opening = tree.opening(0)
        opening.siblings = [sibling]
        with pytest.raises(InclusionFailure):
            open_sum_tree(tree.root, tree.total, 0, 20 << SHIFT, opening)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("siblings", None),
            ("leaf_index", None),
            ("leaf_value", None),
            ("encoded_position", "0x1"),
        ],
    )
    def test_sum_tree_opening_with_bad_fields(self, tree, field, value):
        opening = tree.opening(0)
        setattr(opening, field, value)
        with pytest.raises(InclusionFailure):
            open_sum_tree(tree.root, tree.total, 0, 20 << SHIFT, opening)

    @pytest.mark.parametrize("proof", [[None], [7, b"\x00" * 32], None])
    def test_membership_with_bad_siblings(self, proof):
        leaves = _leaves(2)
        assert not verify_membership(merkle_root(leaves), leaves[0], 0, proof)
