"""
Verification Service Routes
===========================

API route handlers for the verification service.
"""

from services.verification.routes import attestations, history, mock_api, profile


__all__ = ["attestations", "history", "mock_api", "profile"]
