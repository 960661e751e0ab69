from catalog.models.user import CatalogUser
from catalog.models.category import Category
from catalog.models.author import Author
from catalog.models.book import Book, BookStatus, derive_status, present_book

__all__ = ['CatalogUser', 'Category', 'Author', 'Book', 'BookStatus', 'derive_status', 'present_book']
