"""
MonadVerify Services
====================

HTTP services built on the monadverify package.

Services:
- verification: verification history, profiles, attestation status and
  the mock verification API
"""

__all__ = [
    "verification",
]
