"""
Interop tests over the simulated chain family.

Tests verify:

- Token transfer across a freshly built link
- Governance proposals driven by funded test users
- Handshakes completed step by step after a skipped path creation
- Teardown leaving nothing behind, after success and after failure
"""
