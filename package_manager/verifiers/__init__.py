from .base import BaseIntegrationVerifier, VerificationResult
from .factory import VERIFIERS, create_verifier

__all__ = ["BaseIntegrationVerifier", "VerificationResult", "VERIFIERS", "create_verifier"]
