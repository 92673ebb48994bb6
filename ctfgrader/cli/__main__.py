"""
Challenge Grader CLI entry point.

Usage:
    python -m ctfgrader.cli challenges
    python -m ctfgrader.cli show <id>
    python -m ctfgrader.cli validate <id> <submission.json>
"""

import sys
from .main import main

if __name__ == "__main__":
    sys.exit(main())
