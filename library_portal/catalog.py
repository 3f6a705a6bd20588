"""Book catalog and scientific database search.

Both lists are fetched whole from the data service and narrowed here. Text
search is a case-insensitive substring match, except ISBNs which are matched
as typed. Unset filters match everything.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from .models import Book, ScientificDatabase


def _distinct(values: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def search_books(
    books: Iterable[Book],
    *,
    term: Optional[str] = None,
    category: Optional[str] = None,
) -> List[Book]:
    """Match ``term`` against title, author or ISBN and keep one category."""
    filtered = list(books)
    if term:
        needle = term.lower()
        filtered = [
            b for b in filtered if needle in b.title.lower() or needle in b.author.lower() or term in b.isbn
        ]
    if category:
        filtered = [b for b in filtered if b.category == category]
    return filtered


def book_categories(books: Iterable[Book]) -> List[str]:
    """Distinct categories in first-seen order."""
    return _distinct(b.category for b in books)


def search_databases(
    databases: Iterable[ScientificDatabase],
    *,
    term: Optional[str] = None,
    db_type: Optional[str] = None,
    access_mode: Optional[str] = None,
) -> List[ScientificDatabase]:
    """Match ``term`` against title, description or publishers, then apply the type and access filters."""
    filtered = list(databases)
    if term:
        needle = term.lower()
        filtered = [
            d
            for d in filtered
            if needle in d.title.lower()
            or needle in d.description.lower()
            or any(needle in p.lower() for p in d.publishers or [])
        ]
    if db_type:
        filtered = [d for d in filtered if db_type in d.types]
    if access_mode:
        filtered = [d for d in filtered if d.access_mode == access_mode]
    return filtered


def database_types(databases: Iterable[ScientificDatabase]) -> List[str]:
    return _distinct(t for d in databases for t in d.types)


def access_modes(databases: Iterable[ScientificDatabase]) -> List[str]:
    return _distinct(d.access_mode for d in databases)
