from gasproof_toolkit.ledger.block_history import (
    BlockHistoryLedger,
    ChainView,
    InMemoryChain,
)

__all__ = ["BlockHistoryLedger", "ChainView", "InMemoryChain"]
