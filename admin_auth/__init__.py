# (c) Copyright Datacraft, 2026
"""Passwordless WebAuthn authentication for admin accounts."""
