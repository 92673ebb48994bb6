# Flat validators package for the Challenge Grader
"""
Flat proof validators.

Validate a map of declared facts ("proof_of_work") against
feature-specific thresholds. Stateless and order-insensitive.
"""
