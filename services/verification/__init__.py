"""
Verification Service
====================

Read-side API over the MonadVerify contract.

This service provides:
- Verification history reconstructed from contract events
- Profile counters and the derived verification score
- Attestation environment status
- Simulated verification results for development

Version: 0.1.0
"""

__version__ = "0.1.0"
