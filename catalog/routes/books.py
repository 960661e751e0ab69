from datetime import datetime

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from catalog.exceptions import InvalidRequest
from catalog.routes import clean_text, page_args, parse_number, request_data, uploaded_file
from catalog.services.books import BookManager
from catalog.services.borrowing import BorrowWorkflow
from catalog.utils.decorators import admin_required

books_bp = Blueprint('books', __name__)

COVER_TYPES = ('image/jpg', 'image/jpeg', 'image/png')
REQUIRED_FIELDS = ('title', 'author_id', 'category_id', 'isbn')


def _book_payload(data, partial=False):
    payload = clean_text(data, REQUIRED_FIELDS + ('description',))
    errors = []

    if not partial:
        for field in REQUIRED_FIELDS:
            if field not in payload:
                errors.append(f'{field} is required.')

    published_year = parse_number(data, 'published_year', errors, minimum=1000, maximum=datetime.now().year)
    quantity = parse_number(data, 'quantity', errors, minimum=0)
    rating = parse_number(data, 'rating', errors, cast=float, minimum=0, maximum=5)

    if errors:
        raise InvalidRequest(' '.join(errors))

    for field, value in (('published_year', published_year), ('quantity', quantity), ('rating', rating)):
        if value is not None:
            payload[field] = value
    return payload


def _attachments():
    cover = uploaded_file(
        'cover',
        lambda mimetype: mimetype in COVER_TYPES,
        'Invalid cover image format. Only JPG, JPEG, and PNG are allowed'
    )
    pdf = uploaded_file(
        'pdf',
        lambda mimetype: mimetype == 'application/pdf',
        'Invalid file format. Only PDF files are allowed'
    )
    return cover, pdf


@books_bp.route('', methods=['POST'])
@admin_required
def create_book():
    """Add a new book with its cover and PDF"""
    payload = _book_payload(request_data())
    cover, pdf = _attachments()
    book = BookManager().create(payload, cover=cover, pdf=pdf)
    return jsonify(book), 201


@books_bp.route('', methods=['GET'])
def list_books():
    """Paginated book listing"""
    limit, cursor = page_args()
    return jsonify(BookManager().find_all(limit=limit, cursor=cursor))


@books_bp.route('/search')
def search_books():
    query = request.args.get('query', '').strip()
    if not query:
        raise InvalidRequest('Search query is required')
    return jsonify(BookManager().search(query))


@books_bp.route('/borrowed/me')
@login_required
def my_borrowed_books():
    """Books currently borrowed by the caller"""
    return jsonify(BorrowWorkflow().find_borrowed_by_user(current_user.id))


@books_bp.route('/category/<category_id>')
def books_by_category(category_id):
    limit, cursor = page_args()
    return jsonify(BookManager().find_by_category(category_id, limit=limit, cursor=cursor))


@books_bp.route('/author/<author_id>')
def books_by_author(author_id):
    limit, cursor = page_args()
    return jsonify(BookManager().find_by_author(author_id, limit=limit, cursor=cursor))


@books_bp.route('/title/<title>')
def books_by_title(title):
    return jsonify(BookManager().find_by_title(title))


@books_bp.route('/rating/<int:rating>')
def books_by_rating(rating):
    return jsonify(BookManager().find_by_rating(rating))


@books_bp.route('/isbn/<isbn>')
def books_by_isbn(isbn):
    return jsonify(BookManager().find_by_isbn(isbn))


@books_bp.route('/<book_id>', methods=['GET'])
def get_book(book_id):
    return jsonify(BookManager().find_one(book_id))


@books_bp.route('/<book_id>', methods=['PATCH'])
@admin_required
def update_book(book_id):
    """Edit a book, optionally replacing its cover and/or PDF"""
    payload = _book_payload(request_data(), partial=True)
    cover, pdf = _attachments()
    return jsonify(BookManager().update(book_id, payload, cover=cover, pdf=pdf))


@books_bp.route('/<book_id>', methods=['DELETE'])
@admin_required
def delete_book(book_id):
    return jsonify(BookManager().remove(book_id))


@books_bp.route('/<book_id>/borrow', methods=['PATCH'])
@login_required
def borrow_book(book_id):
    """Borrow a book for the authenticated user"""
    data = request_data()
    missing = [field for field in ('start_date', 'return_date') if not data.get(field)]
    if missing:
        raise InvalidRequest(' '.join(f'{field} is required.' for field in missing))
    book = BorrowWorkflow().borrow(book_id, current_user.id, data['start_date'], data['return_date'])
    return jsonify(book)


@books_bp.route('/<book_id>/return', methods=['POST'])
@login_required
def return_book(book_id):
    """Return a book borrowed by the authenticated user"""
    return jsonify(BorrowWorkflow().return_book(book_id, current_user.id))
