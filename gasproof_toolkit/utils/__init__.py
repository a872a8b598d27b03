from gasproof_toolkit.utils.decoding import (
    block_hash,
    decode_block_gas_used,
    decode_block_number,
    decode_gas_price,
    decode_gas_used,
    decode_tx_receipt_roots,
    encode_block_header,
)
from gasproof_toolkit.utils.quad_math import QuadMath

__all__ = [
    "QuadMath",
    "block_hash",
    "decode_block_gas_used",
    "decode_block_number",
    "decode_gas_price",
    "decode_gas_used",
    "decode_tx_receipt_roots",
    "encode_block_header",
]
