# CLI package for the Challenge Grader
"""
Command-line interface for grading submissions locally.

Commands:
    ctfgrader challenges - List registered challenges
    ctfgrader show       - Show one challenge
    ctfgrader validate   - Grade a submission file
"""
