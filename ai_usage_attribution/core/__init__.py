"""
Core modules for AI Usage Attribution.

This package contains the attribution and synthesis engine: deterministic
randomness, synthetic telemetry, rate derivation, per-user series and
cost projection.
"""
