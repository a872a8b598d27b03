from gasproof_toolkit.verifier.aggregate import (
    AggregateVerifier,
    max_cgas,
    verify_pgas,
)
from gasproof_toolkit.verifier.manager import GasClaimVerifier
from gasproof_toolkit.verifier.sample import SampleVerifier, sample_position

__all__ = [
    "AggregateVerifier",
    "GasClaimVerifier",
    "SampleVerifier",
    "max_cgas",
    "sample_position",
    "verify_pgas",
]
