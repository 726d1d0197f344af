"""
bookstore

Demonstration query runner for the ``plp_bookstore.books`` MongoDB collection.
"""

__version__ = "0.1.0"
