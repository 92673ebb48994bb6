# Challenge Grader
# Structured Proof Validation Engine

"""
Grades learner submissions for infrastructure-configuration challenges.

A submission is normalized into a ProofData value, routed by the
challenge's category and feature to one analyzer, and returned as a
ValidationResult with an ordered diagnostic trail. The reward token is
released only on success.
"""
