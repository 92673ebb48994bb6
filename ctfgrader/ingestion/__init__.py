# Ingestion package for the Challenge Grader
"""
Submission ingestion.

Normalizes raw submission payloads into ProofData at the engine boundary.
"""
