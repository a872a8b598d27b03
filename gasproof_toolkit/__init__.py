"""Gas Proof Toolkit - Python SDK for verifying sampled gas claims."""

__version__ = "0.1.0"

from .ledger import BlockHistoryLedger, InMemoryChain
from .shared.types import AggregateClaim, SampleProof, SumTreeOpening
from .verifier import AggregateVerifier, GasClaimVerifier, SampleVerifier

__all__ = [
    "AggregateClaim",
    "AggregateVerifier",
    "BlockHistoryLedger",
    "GasClaimVerifier",
    "InMemoryChain",
    "SampleProof",
    "SampleVerifier",
    "SumTreeOpening",
]
