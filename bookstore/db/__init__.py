"""
bookstore.db

Importer for the sample book catalog.
"""

from .import_books_mongo import import_books, load_books

__all__ = [
    'import_books',
    'load_books',
]
