"""
codereview - Pluggable static code review engine.

Scans source files with a registry of heuristic rules, aggregates the
findings into a scored review result, and supports team standards and
git-scoped (branch or commit) reviews.
"""

__version__ = "1.0.0"
