"""Services Layer — identity resolution, quote lookup, order persistence, order workflow.

Invariants:
    - Only order_store.py and identity_resolver.py inspect storage errors
    - order_workflow.py composes the others and owns the order transaction
"""
