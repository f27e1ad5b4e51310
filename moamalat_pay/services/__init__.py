"""Signing, transport negotiation, normalization and orchestration."""
