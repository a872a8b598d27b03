"""RLP record decoding for block headers, transactions and receipts"""

from typing import Any, Dict, List, Tuple

import rlp
from eth_utils import big_endian_to_int, keccak
from hexbytes import HexBytes
from rlp.exceptions import RLPException

from gasproof_toolkit.shared.exceptions import DecodingException

BLOCK_HEADER = (
    "parentHash",
    "sha3Uncles",
    "miner",
    "stateRoot",
    "transactionsRoot",
    "receiptsRoot",
    "logsBloom",
    "difficulty",
    "number",
    "gasLimit",
    "gasUsed",
    "timestamp",
    "extraData",
    "mixHash",
    "nonce",
    "baseFeePerGas",
    "withdrawalsRoot",
    "blobGasUsed",
    "excessBlobGas",
    "parentBeaconBlockRoot",
    "requestsHash",
)

_HEADER_INDEX = {name: i for i, name in enumerate(BLOCK_HEADER)}

# Position of the fee field inside each transaction envelope's payload
_GAS_PRICE_INDEX = {
    None: 1,  # legacy: gasPrice
    1: 2,  # EIP-2930: gasPrice
    2: 3,  # EIP-1559: maxFeePerGas
    3: 3,  # EIP-4844: maxFeePerGas
    4: 3,  # EIP-7702: maxFeePerGas
}


def encode_block_header(block: Dict[str, Any]) -> bytes:
    """Encode a block header -> RLP encoded"""
    block_header = [
        (
            HexBytes("0x")
            if isinstance(block.get(k), int) and block.get(k) == 0
            else HexBytes(block.get(k))
        )
        for k in BLOCK_HEADER
        if k in block
    ]
    return rlp.encode(block_header)


def block_hash(header: bytes) -> bytes:
    """Canonical block hash: keccak of the RLP header."""
    return keccak(header)


def _decode_list(data: bytes, what: str) -> List[Any]:
    try:
        decoded = rlp.decode(bytes(data))
    except RLPException as e:
        raise DecodingException(f"Malformed {what}: {e}") from e
    if not isinstance(decoded, list):
        raise DecodingException(f"Malformed {what}: expected an RLP list")
    return decoded


def _split_envelope(data: bytes, what: str) -> Tuple[Any, List[Any]]:
    """Strip an EIP-2718 type byte if present -> (type or None, payload)"""
    data = bytes(data)
    if not data:
        raise DecodingException(f"Malformed {what}: empty payload")
    if data[0] >= 0xC0:
        return None, _decode_list(data, what)
    if data[0] > 0x7F:
        raise DecodingException(
            f"Malformed {what}: invalid type byte 0x{data[0]:02x}"
        )
    return data[0], _decode_list(data[1:], what)


def _header_field(header: bytes, name: str) -> bytes:
    fields = _decode_list(header, "block header")
    index = _HEADER_INDEX[name]
    if index >= len(fields) or not isinstance(fields[index], bytes):
        raise DecodingException(f"Block header is missing field {name}")
    return fields[index]


def _as_int(value: Any, what: str) -> int:
    if not isinstance(value, bytes):
        raise DecodingException(f"Malformed {what}: expected a scalar")
    return big_endian_to_int(value)


def decode_block_number(header: bytes) -> int:
    return _as_int(_header_field(header, "number"), "block number")


def decode_block_gas_used(header: bytes) -> Tuple[int, int]:
    """Header -> (gas limit, gas used)"""
    gas_limit = _as_int(_header_field(header, "gasLimit"), "gas limit")
    gas_used = _as_int(_header_field(header, "gasUsed"), "gas used")
    return gas_limit, gas_used


def decode_tx_receipt_roots(header: bytes) -> Tuple[bytes, bytes]:
    """Header -> (transactions root, receipts root)"""
    tx_root = _header_field(header, "transactionsRoot")
    receipt_root = _header_field(header, "receiptsRoot")
    if len(tx_root) != 32 or len(receipt_root) != 32:
        raise DecodingException("Trie roots in block header must be 32 bytes")
    return tx_root, receipt_root


def decode_gas_price(tx: bytes) -> int:
    """
    Price ceiling a transaction agreed to pay per unit of gas.

    Legacy and access-list transactions carry gasPrice; fee-market
    transactions carry maxFeePerGas, the most they can be charged.
    """
    tx_type, payload = _split_envelope(tx, "transaction")
    if tx_type not in _GAS_PRICE_INDEX:
        raise DecodingException(f"Unsupported transaction type {tx_type}")
    index = _GAS_PRICE_INDEX[tx_type]
    if index >= len(payload):
        raise DecodingException("Transaction is missing its gas price")
    return _as_int(payload[index], "gas price")


def decode_gas_used(receipt: bytes) -> int:
    """Receipt -> cumulative gas used in the block up to this transaction"""
    _, payload = _split_envelope(receipt, "receipt")
    if len(payload) < 4:
        raise DecodingException("Receipt must have 4 fields")
    return _as_int(payload[1], "cumulative gas used")
