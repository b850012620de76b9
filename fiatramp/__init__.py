"""FiatRamp Application Package — order placement backend for fiat-to-crypto purchases.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
