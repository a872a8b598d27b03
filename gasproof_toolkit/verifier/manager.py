from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from gasproof_toolkit.ledger.block_history import BlockHistoryLedger, ChainView
from gasproof_toolkit.shared.exceptions import (
    ChainReadException,
    VerificationException,
)
from gasproof_toolkit.shared.logging import get_logger
from gasproof_toolkit.shared.results import (
    ErrorSeverity,
    Result,
    VerificationSummary,
)
from gasproof_toolkit.shared.services.web3_service import Web3Service
from gasproof_toolkit.shared.types import (
    AggregateClaim,
    LedgerEntry,
    SampleProof,
    VerifiedGas,
)
from gasproof_toolkit.verifier.aggregate import AggregateVerifier

_logger = get_logger(__name__)


def _claim_context(claim: AggregateClaim) -> Dict[str, Any]:
    return {
        "commitment": "0x" + claim.pgas_commitment.hex(),
        "pgas_claimed": claim.pgas_claimed,
        "starting_block": claim.starting_block_num,
        "ending_block": claim.ending_block_num,
    }


def _failure(
    error: Exception, context: Dict[str, Any], severity=ErrorSeverity.ERROR
) -> Result:
    if isinstance(error, VerificationException):
        source = error.reason
        context = {**context, **error.context}
    else:
        source = "chain_read"
    return Result.fail_with_message(
        source=source,
        message=str(error),
        severity=severity,
        context=context,
        exception=error,
    )


class GasClaimVerifier:
    """Owns the block history ledger and verifies gas claims against it"""

    def __init__(self, chain: ChainView):
        self.ledger = BlockHistoryLedger(chain)
        self.aggregate_verifier = AggregateVerifier(self.ledger)

    @classmethod
    def from_rpc(cls, chain_id: int) -> "GasClaimVerifier":
        """Verifier backed by a live node configured through the environment"""
        return cls(Web3Service.get_instance(chain_id))

    def initialize_ledger(self) -> Result[LedgerEntry]:
        try:
            return Result.ok(self.ledger.initialize())
        except (VerificationException, ChainReadException) as e:
            return _failure(e, {"operation": "initialize"})

    def extend_ledger(self) -> Result[LedgerEntry]:
        """
        Extend the ledger with newly provable blocks.

        Returns:
            Result[LedgerEntry]: the written entry, or a failure. A stale
            history failure is CRITICAL: the ledger cannot catch up without
            intervention.
        """
        try:
            return Result.ok(self.ledger.extend())
        except (VerificationException, ChainReadException) as e:
            severity = (
                ErrorSeverity.CRITICAL
                if getattr(e, "reason", None) == "stale_history"
                else ErrorSeverity.ERROR
            )
            return _failure(e, {"operation": "extend"}, severity)

    def verify_claim(
        self, claim: AggregateClaim, samples: Sequence[SampleProof]
    ) -> Result[VerifiedGas]:
        """
        Verify a gas claim.

        Args:
            claim: The aggregate claim
            samples: One proof per sample, in nonce order

        Returns:
            Result[VerifiedGas]: Success with confirmed quantities, or failure
            whose error source names the check that rejected the claim
        """
        try:
            verified = self.aggregate_verifier.verify(claim, samples)
        except VerificationException as e:
            _logger.info(f"Claim rejected ({e.reason}): {e}")
            return _failure(e, _claim_context(claim))

        result = Result.ok(verified)
        if claim.confidence:
            result.add_warning(
                source="confidence",
                message="confidence is range-checked but not used in the bound",
                context={"confidence": claim.confidence},
            )
        return result

    def verify_claims(
        self,
        claims: Iterable[Tuple[AggregateClaim, Sequence[SampleProof]]],
        summary: Optional[VerificationSummary] = None,
    ) -> VerificationSummary:
        """Verify several claims independently and summarise the outcome"""
        summary = summary or VerificationSummary()
        for claim, samples in claims:
            result = self.verify_claim(claim, samples)
            summary.add_error_from_result(result)
            if result.success:
                summary.claims_verified += 1
                summary.total_cgas_confirmed += result.data.cgas_confirmed
            else:
                summary.claims_rejected += 1
                summary.rejected_claims.append(
                    {
                        **_claim_context(claim),
                        "reason": result.errors[0].source,
                    }
                )
        return summary
