"""
Integration Tests Package

End-to-end tests through the simulation registry.

TEST AXIOMS:
=============
1. Determinism: same anchor + events + query = identical state hash
2. One anchor per timeline; every other state is derived from it
3. Explicit failure: every rejected input carries an ErrorCode
"""
