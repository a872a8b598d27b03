"""
Exception hierarchy for the Gas Proof Toolkit.

Exception Categories:
- RetryableException: Transient failures that may succeed on retry (RPC, network)
- NonRetryableException: Permanent failures that won't benefit from retry (bad data)
- ConfigurationException: Startup/config errors that prevent operation

Verification failures are all NonRetryableException: a rejected claim stays
rejected no matter how often it is re-checked. Each carries a stable
``reason`` string that the service layer reports as the error source.
"""


class RetryableException(Exception):
    """
    Base class for exceptions that may succeed on retry.

    Use for transient failures like:
    - RPC timeouts
    - Rate limiting
    - Temporary network issues
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonRetryableException(Exception):
    """
    Base class for exceptions that won't benefit from retry.

    Use for permanent failures like:
    - Invalid input data
    - Missing required data
    - Business logic violations
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationException(NonRetryableException):
    """
    Exception for configuration/startup errors.

    Use when:
    - Required environment variables are missing
    - Invalid configuration values
    """

    pass


class ChainReadException(RetryableException):
    """
    Exception for failures reading block data from a node.

    Inherits from RetryableException because RPC failures are often
    transient and resolve on retry.
    """

    pass


class VerificationException(NonRetryableException):
    """Base class for every terminal verification failure."""

    reason = "verification"

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.context = context


class PrecheckViolation(VerificationException):
    """Malformed claim or ledger used in the wrong state."""

    reason = "precheck"


class DecodingException(PrecheckViolation):
    """An encoded header, transaction or receipt could not be decoded."""

    reason = "decoding"


class StaleHistory(VerificationException):
    """A block hash aged out of the host's window while building a commitment."""

    reason = "stale_history"


class PositionBindingFailure(VerificationException):
    """The derived sample position falls outside the opened leaf."""

    reason = "position_binding"


class InclusionFailure(VerificationException):
    """A Merkle, sum-tree or trie membership proof did not check out."""

    reason = "inclusion"


class ContentMismatch(VerificationException):
    """Decoded gas facts contradict the sampled leaf value."""

    reason = "content_mismatch"


class SoundnessFailure(VerificationException):
    """alpha^n does not clear the security threshold."""

    reason = "soundness"
