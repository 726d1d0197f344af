"""
CLI module for bookstore.

Modules:
    queries: runs the bookstore query sequence
    seed: loads the sample book catalog into MongoDB
"""

__all__ = ["queries", "seed"]
