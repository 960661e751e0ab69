"""Borrow and return of books.

Every step reads fresh state from the store and nothing is locked between the
eligibility checks and the final write, so two borrowers racing for the last
copy can both pass the checks. With ``STRICT_BORROW_QUANTITY`` enabled the
write also requires the quantity to be unchanged since it was read and the
loser gets a BorrowConflict instead.

A book records a single borrower. When several copies are out, the most
recent borrower overwrites the previous one.
"""
import logging
import math
from datetime import date, datetime, time, timezone

from boto3.dynamodb.conditions import Attr
from flask import current_app

from catalog.exceptions import (
    AlreadyBorrowed,
    BookNotBorrowed,
    BookUnavailable,
    BorrowConflict,
    BorrowLimitExceeded,
    ConditionNotMet,
    EntityNotFound,
    InvalidBorrowPeriod,
    NotBorrower,
)
from catalog.models.book import Book, BookStatus
from catalog.services.books import BookManager
from catalog.services.named_entity import entity_operation
from catalog.utils.dynamo_repo import utcnow_iso

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def parse_borrow_date(value, field):
    """Parse an ISO 8601 date or datetime; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value or '').strip()
        if text[-1:] in ('Z', 'z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidBorrowPeriod(f'{field} must be an ISO 8601 date') from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def borrow_days(start, end):
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def validate_borrow_period(start, end, now, max_days):
    if start < now:
        raise InvalidBorrowPeriod('Start date cannot be in the past')
    if end <= start:
        raise InvalidBorrowPeriod('Return date must be after start date')
    if borrow_days(start, end) > max_days:
        raise InvalidBorrowPeriod(f'Borrow period cannot exceed {max_days} days')


class BorrowWorkflow:
    model = Book

    def __init__(self, books=None, max_borrowed=None, max_days=None, strict_quantity=None, clock=None):
        config = current_app.config
        self.books = books or BookManager()
        self.repo = self.books.repo
        self.max_borrowed = max_borrowed if max_borrowed is not None else config.get('MAX_BORROWED_BOOKS', 3)
        self.max_days = max_days if max_days is not None else config.get('MAX_BORROW_DAYS', 30)
        if strict_quantity is None:
            strict_quantity = config.get('STRICT_BORROW_QUANTITY', False)
        self.strict_quantity = strict_quantity
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _get(self, book_id):
        book = self.repo.get_by_id(book_id)
        if not book:
            raise EntityNotFound(Book.entity, book_id)
        return book

    @entity_operation('borrow')
    def borrow(self, book_id, borrower_id, start_date, return_date):
        book = self._get(book_id)

        borrowed = self.repo.get_borrowed_by(borrower_id)
        if any(item['id'] == book_id for item in borrowed):
            raise AlreadyBorrowed(book_id)
        if len(borrowed) >= self.max_borrowed:
            raise BorrowLimitExceeded(self.max_borrowed)

        quantity = book.get('quantity') or 0
        if quantity <= 0:
            raise BookUnavailable(book_id)

        start = parse_borrow_date(start_date, 'start_date')
        end = parse_borrow_date(return_date, 'return_date')
        validate_borrow_period(start, end, self.clock(), self.max_days)

        changes = {
            'status': BookStatus.BORROWED.value,
            'borrower_id': borrower_id,
            'start_date': start.isoformat(),
            'return_date': end.isoformat(),
            'updated_at': utcnow_iso(),
        }
        condition = Attr('quantity').eq(quantity) if self.strict_quantity else None
        try:
            updated = self.repo.update(book_id, changes, increments={'quantity': -1}, condition=condition)
        except ConditionNotMet as e:
            raise BorrowConflict(book_id) from e

        logger.info('Book %s borrowed by %s until %s', book_id, borrower_id, changes['return_date'])
        return updated

    @entity_operation('return')
    def return_book(self, book_id, user_id):
        book = self._get(book_id)
        if book.get('status') != BookStatus.BORROWED.value:
            raise BookNotBorrowed(book_id)
        if book.get('borrower_id') != user_id:
            raise NotBorrower(book_id)

        updated = self.repo.update(
            book_id,
            {'status': BookStatus.AVAILABLE.value, 'updated_at': utcnow_iso()},
            increments={'quantity': 1},
            remove=('borrower_id', 'start_date', 'return_date'),
        )
        logger.info('Book %s returned by %s', book_id, user_id)
        return updated

    @entity_operation('fetch')
    def find_borrowed_by_user(self, user_id):
        books = self.repo.get_borrowed_by(user_id)
        return {
            'message': 'Borrowed books retrieved successfully' if books else 'No borrowed books found',
            'books': books,
        }
