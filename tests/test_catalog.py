from library_portal.catalog import access_modes, book_categories, database_types, search_books, search_databases
from tests.helpers import make_book, make_database


def _books():
    return [
        make_book("b1", title="Dune", author="Frank Herbert", category="Fiction", isbn="9780441013593"),
        make_book("b2", title="Calculus", author="Michael Spivak", category="Mathematics", isbn="9780914098911"),
        make_book("b3", title="Linear Algebra Done Right", author="Sheldon Axler", category="Mathematics", isbn="9783319110790"),
    ]


def test_search_books_matches_title_author_or_isbn():
    books = _books()

    assert [b.id for b in search_books(books, term="dune")] == ["b1"]
    assert [b.id for b in search_books(books, term="SPIVAK")] == ["b2"]
    assert [b.id for b in search_books(books, term="978331")] == ["b3"]
    assert [b.id for b in search_books(books)] == ["b1", "b2", "b3"]


def test_search_books_filters_by_category():
    books = _books()

    assert [b.id for b in search_books(books, category="Mathematics")] == ["b2", "b3"]
    assert [b.id for b in search_books(books, term="algebra", category="Mathematics")] == ["b3"]
    assert search_books(books, term="dune", category="Mathematics") == []


def test_book_categories_in_first_seen_order():
    assert book_categories(_books()) == ["Fiction", "Mathematics"]


def _databases():
    return [
        make_database("d1", title="Scopus", types=["Citations", "Abstracts"], publishers=["Elsevier"], access_mode="Campus"),
        make_database("d2", title="arXiv", description="Open preprint server", types=["Preprints"], publishers=None, access_mode="Open"),
        make_database("d3", title="IEEE Xplore", description="Engineering papers", types=["Full text"], publishers=["IEEE"], access_mode="Campus"),
    ]


def test_search_databases_matches_title_description_or_publisher():
    databases = _databases()

    assert [d.id for d in search_databases(databases, term="preprint")] == ["d2"]
    assert [d.id for d in search_databases(databases, term="elsevier")] == ["d1"]
    assert [d.id for d in search_databases(databases, term="ieee")] == ["d3"]


def test_search_databases_filters_by_type_and_access_mode():
    databases = _databases()

    assert [d.id for d in search_databases(databases, db_type="Abstracts")] == ["d1"]
    assert [d.id for d in search_databases(databases, access_mode="Campus")] == ["d1", "d3"]
    assert search_databases(databases, db_type="Preprints", access_mode="Campus") == []


def test_database_types_and_access_modes():
    databases = _databases()

    assert database_types(databases) == ["Citations", "Abstracts", "Preprints", "Full text"]
    assert access_modes(databases) == ["Campus", "Open"]
