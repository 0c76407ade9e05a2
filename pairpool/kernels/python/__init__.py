"""
Production Python kernels.

These modules are designed to be:
- deterministic (integer-only),
- easy to audit (explicit intermediate variables),
- pure functions with typed results.
"""
