from enum import Enum


class BookStatus(str, Enum):
    AVAILABLE = 'AVAILABLE'
    BORROWED = 'BORROWED'
    UNAVAILABLE = 'UNAVAILABLE'


def derive_status(quantity):
    return BookStatus.AVAILABLE if (quantity or 0) > 0 else BookStatus.UNAVAILABLE


def present_book(book):
    """Copy of a stored book with its status recomputed from quantity."""
    if book is None:
        return None
    presented = dict(book)
    presented['status'] = derive_status(book.get('quantity')).value
    return presented


class Book:
    entity = 'book'
    plural = 'books'

    # Fields a general update may touch; status, borrower and dates belong to
    # the borrow workflow.
    updatable_fields = (
        'title', 'author_id', 'category_id', 'isbn', 'description',
        'published_year', 'quantity', 'rating',
    )
    attachment_folders = {
        'cover': 'books/covers',
        'pdf': 'books/pdfs',
    }

    @staticmethod
    def new(data):
        quantity = data.get('quantity')
        return {
            'title': data['title'],
            'author_id': data['author_id'],
            'category_id': data['category_id'],
            'isbn': data['isbn'],
            'description': data.get('description'),
            'published_year': data.get('published_year'),
            'quantity': 1 if quantity is None else quantity,
            'rating': data.get('rating'),
            'status': BookStatus.AVAILABLE.value,
        }
