"""
Web3 Service module for reading block history from an Ethereum node.

Provides a Web3Service that manages the RPC connection and exposes the
chain view the block history ledger consumes: the current height and the
canonical hash of recent blocks. The node can serve any historical hash,
so the host's trailing window is emulated here to keep the ledger's
behaviour identical to the on-chain one.
"""

from typing import Any, Dict, Optional

from web3 import Web3

from gasproof_toolkit.shared.constants import GlobalConstants, ProtocolConstants
from gasproof_toolkit.shared.exceptions import (
    ChainReadException,
    ConfigurationException,
)
from gasproof_toolkit.shared.logging import get_logger
from gasproof_toolkit.shared.retry import RPC_RETRY_CONFIG, RetryConfig
from gasproof_toolkit.utils.decoding import encode_block_header

_logger = get_logger(__name__)


class Web3Service:
    """
    A service class for managing a Web3 connection.

    Every RPC read goes through the retry config. Only hashes of blocks at
    least confirmation_depth below the head are cached, and the cache is
    pruned to the trailing window whenever the height is re-read.
    """

    def __init__(
        self,
        chain_id: int,
        rpc_url: str,
        retry_config: RetryConfig = RPC_RETRY_CONFIG,
        confirmation_depth: int = ProtocolConstants.CONFIRMATION_DEPTH,
    ):
        """
        Initialize the Web3Service.

        Args:
            chain_id (int): The chain ID to use.
            rpc_url (str): The RPC URL to use.
            retry_config (RetryConfig): Retry settings for RPC reads.
            confirmation_depth (int): Depth below the head after which a
                block hash is cached.
        """
        self.chain_id = chain_id
        self.retry_config = retry_config
        self.w3 = self._initialize_web3(rpc_url)
        self.confirmation_depth = confirmation_depth
        self._hash_cache: Dict[int, bytes] = {}
        self._height: Optional[int] = None

    def _initialize_web3(self, rpc_url: str) -> Web3:
        """Initialize Web3 instance with middleware if needed"""
        w3 = Web3(Web3.HTTPProvider(rpc_url))

        # Add POA middleware for non-mainnet chains
        if self.chain_id != 1:
            from web3.middleware import ExtraDataToPOAMiddleware

            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

        return w3

    @classmethod
    def get_instance(cls, chain_id: int) -> "Web3Service":
        """Get or create a Web3Service instance for a specific chain"""
        if not hasattr(cls, "_instances"):
            cls._instances = {}

        if chain_id not in cls._instances:
            try:
                rpc_url = GlobalConstants.get_rpc_url(chain_id)
            except ValueError as e:
                raise ConfigurationException(str(e)) from e
            cls._instances[chain_id] = cls(chain_id, rpc_url)

        return cls._instances[chain_id]

    def _read(self, fn, *args, operation_name: str):
        try:
            return self.retry_config.run(
                fn, *args, operation_name=operation_name
            )
        except ChainReadException:
            raise
        except Exception as e:
            raise ChainReadException(f"{operation_name} failed: {e}") from e

    def get_block(self, block_number: int) -> Dict[str, Any]:
        """Get a block from the node"""
        _logger.debug(f"Fetching block {block_number} on chain {self.chain_id}")
        return self._read(
            self.w3.eth.get_block,
            block_number,
            operation_name=f"get_block_{block_number}",
        )

    def get_block_header(self, block_number: int) -> bytes:
        """RLP encoded header, the preimage of the block hash"""
        return encode_block_header(self.get_block(block_number))

    def block_number(self) -> int:
        """Current height; also pins the window used by block_hash"""
        self._height = self._read(
            lambda: self.w3.eth.block_number, operation_name="block_number"
        )
        floor = self._height - ProtocolConstants.BLOCKHASH_WINDOW
        for number in [n for n in self._hash_cache if n < floor]:
            del self._hash_cache[number]
        return self._height

    def block_hash(self, number: int) -> bytes:
        """Canonical hash of a block, zero outside the trailing window."""
        height = self._height if self._height is not None else self.block_number()
        if (
            number >= height
            or number < height - ProtocolConstants.BLOCKHASH_WINDOW
        ):
            return ProtocolConstants.ZERO_HASH
        if number in self._hash_cache:
            return self._hash_cache[number]

        block_hash = bytes(self.get_block(number)["hash"])
        # Blocks near the head may still reorg
        if number < height - self.confirmation_depth:
            self._hash_cache[number] = block_hash
        return block_hash
