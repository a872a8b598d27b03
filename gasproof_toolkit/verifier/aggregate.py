"""
Aggregate claim verification.

After every sample passes, two conversions turn the claimed total into a
confirmed one:

1. verify_pgas: if each sample independently had probability at least
   1 - alpha of exposing an invalid claim, all n passing happens with
   probability at most alpha^n. Requiring alpha^n < 2^-80 makes a false
   accept negligible; the claim is then underwritten for the alpha share of
   its total.
2. max_cgas: the largest per-block quantity nobody could profitably
   dispute, given what one dispute costs.
"""

from typing import List, Sequence

from gasproof_toolkit.ledger.block_history import BlockHistoryLedger
from gasproof_toolkit.shared.constants import ProtocolConstants
from gasproof_toolkit.shared.exceptions import (
    PrecheckViolation,
    SoundnessFailure,
)
from gasproof_toolkit.shared.logging import get_logger
from gasproof_toolkit.shared.types import (
    AggregateClaim,
    SampleClaim,
    SampleProof,
    VerifiedGas,
)
from gasproof_toolkit.utils.quad_math import QuadMath
from gasproof_toolkit.verifier.sample import SampleVerifier

_logger = get_logger(__name__)


def verify_pgas(pgas_claimed: int, alpha_claimed: int, n: int) -> int:
    """
    Statistical soundness check.

    Args:
        pgas_claimed: Claimed total gas
        alpha_claimed: Claimed fraction scaled by ALPHA_DENOMINATOR
        n: Number of samples that passed

    Returns:
        int: pgas_claimed * alpha, truncated

    Raises:
        PrecheckViolation: alpha_claimed is not below the denominator
        SoundnessFailure: alpha^n does not fall below 2^-SECURITY_BITS
    """
    denominator = ProtocolConstants.ALPHA_DENOMINATOR
    if not 0 <= alpha_claimed < denominator:
        raise PrecheckViolation(
            f"alpha_claimed {alpha_claimed} must be below {denominator}"
        )

    alpha = QuadMath.div(
        QuadMath.from_uint(alpha_claimed), QuadMath.from_uint(denominator)
    )
    false_accept = QuadMath.pow(alpha, n)
    threshold = QuadMath.pow2(-ProtocolConstants.SECURITY_BITS)
    if QuadMath.compare(false_accept, threshold) >= 0:
        raise SoundnessFailure(
            f"alpha^n with n={n} does not clear 2^-"
            f"{ProtocolConstants.SECURITY_BITS}",
            samples=n,
            alpha_claimed=alpha_claimed,
        )

    return QuadMath.to_uint(QuadMath.mul(QuadMath.from_uint(pgas_claimed), alpha))


def max_cgas(pgas: int, dispute_gas_cost: int, blocks: int) -> int:
    """
    Dispute-safe confirmed quantity.

    pgas is cut into segments of dispute_gas_cost - 1, the segments are
    spread evenly over the blocks and one extra unit is granted when the
    division leaves a remainder. Returns 0 when there are fewer whole
    segments than blocks.
    """
    if dispute_gas_cost <= 1:
        raise PrecheckViolation(
            f"dispute_gas_cost must exceed 1, got {dispute_gas_cost}"
        )
    if blocks <= 0:
        raise PrecheckViolation(f"Block count must be positive, got {blocks}")

    segments = pgas // (dispute_gas_cost - 1)
    if segments < blocks:
        return 0
    per_block, remainder = divmod(segments, blocks)
    return per_block + (1 if remainder else 0)


def check_claim(claim: AggregateClaim, sample_count: int) -> None:
    """Shape checks performed before any sample is opened."""
    if claim.confidence >= ProtocolConstants.MAX_CONFIDENCE:
        raise PrecheckViolation(
            f"confidence must be below {ProtocolConstants.MAX_CONFIDENCE}"
        )
    if claim.dispute_gas_cost <= 1:
        raise PrecheckViolation("dispute_gas_cost must exceed 1")
    if claim.alpha_claimed >= ProtocolConstants.ALPHA_DENOMINATOR:
        raise PrecheckViolation("alpha_claimed must be below 1")
    if claim.pgas_claimed <= 0:
        raise PrecheckViolation("pgas_claimed must be positive")
    if claim.ending_block_num <= claim.starting_block_num:
        raise PrecheckViolation("Block range must be non-empty")
    if len(claim.pgas_commitment) != 32:
        raise PrecheckViolation("pgas_commitment must be 32 bytes")
    if sample_count == 0:
        raise PrecheckViolation("At least one sample is required")


class AggregateVerifier:
    """Runs every sample, then the statistical and economic conversions"""

    def __init__(self, ledger: BlockHistoryLedger):
        self.ledger = ledger
        self.sample_verifier = SampleVerifier(ledger)

    def verify(
        self, claim: AggregateClaim, samples: Sequence[SampleProof]
    ) -> VerifiedGas:
        """
        Verify a claim; samples[i] is checked with nonce i.

        Stops at the first failing sample. Every failure raises a
        VerificationException subclass and leaves no state behind.
        """
        check_claim(claim, len(samples))

        entries = self.ledger.snapshot()
        verified: List[SampleClaim] = []
        for index, proof in enumerate(samples):
            verified.append(
                self.sample_verifier.verify_sample(claim, index, proof, entries)
            )

        pgas_verified = verify_pgas(
            claim.pgas_claimed, claim.alpha_claimed, len(samples)
        )
        cgas = max_cgas(pgas_verified, claim.dispute_gas_cost, claim.block_count)
        _logger.info(
            f"Claim over blocks [{claim.starting_block_num}, "
            f"{claim.ending_block_num}) verified with {len(samples)} samples: "
            f"pgas_verified={pgas_verified} cgas={cgas}"
        )
        return VerifiedGas(
            pgas_verified=pgas_verified, cgas_confirmed=cgas, samples=verified
        )
