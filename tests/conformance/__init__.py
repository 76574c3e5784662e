"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the RiskEngine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. atomicity.py - Failed operations leave no trace
2. reentrancy.py - Nested mutating calls are rejected
3. health_factor.py - No self-initiated operation leaves its caller under-margined
4. conversion.py - Valuation arithmetic round-trips and is order independent
5. solvency.py - Debt, stable supply and custody stay in lockstep

These tests use hypothesis for property-based testing.
"""
