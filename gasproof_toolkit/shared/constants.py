"""All constants for the project"""

import os

from dotenv import load_dotenv

load_dotenv()


class ProtocolConstants:
    """Global class constants for the verification protocol"""

    # Trailing window of block hashes the host can still serve
    BLOCKHASH_WINDOW = 256

    # Slots in the incremental block-hash accumulator
    ACCUMULATOR_DEPTH = 32

    # alpha^n must stay below 2^-SECURITY_BITS
    SECURITY_BITS = 80

    # alpha_claimed is a fraction scaled by this denominator
    ALPHA_DENOMINATOR = 10**18

    # confidence must be strictly below this bound
    MAX_CONFIDENCE = 100

    # encoded_position = block_number << POSITION_SHIFT | tx_index
    POSITION_SHIFT = 128
    TX_INDEX_SENTINEL = 2**128 - 1

    # Blocks this far below the head are treated as final by the RPC view
    CONFIRMATION_DEPTH = 64

    ZERO_HASH = b"\x00" * 32


class GlobalConstants:
    """Global class constants for the project"""

    CHAIN_ID_TO_RPC = {
        1: os.getenv("ETHEREUM_MAINNET_RPC_URL") or None,
        10: os.getenv("OPTIMISM_MAINNET_RPC_URL") or None,
        42161: os.getenv("ARBITRUM_MAINNET_RPC_URL") or None,
        8453: os.getenv("BASE_MAINNET_RPC_URL") or None,
        137: os.getenv("POLYGON_MAINNET_RPC_URL") or None,
        11155111: os.getenv("SEPOLIA_RPC_URL") or None,
    }

    @staticmethod
    def get_rpc_url(chain_id: int) -> str:
        """Get RPC URL for specified chain"""
        chain_id = int(chain_id)
        if chain_id not in GlobalConstants.CHAIN_ID_TO_RPC:
            raise ValueError(f"Chain ID {chain_id} not supported")

        rpc_url = GlobalConstants.CHAIN_ID_TO_RPC[chain_id]
        if not rpc_url:
            raise ValueError(f"RPC URL not set for chain {chain_id}")

        return rpc_url
