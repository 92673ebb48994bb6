# Analyzers package for the Challenge Grader
"""
Structured proof analyzers.

Each analyzer inspects a ProofData, writes an ordered diagnostic trail,
and raises GateFailure at the first unmet requirement.
"""
