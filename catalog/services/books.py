import logging

from flask import current_app
from werkzeug.exceptions import HTTPException

from catalog.exceptions import CounterSyncError, EntityAlreadyExists, EntityNotFound, InvalidRequest
from catalog.models.book import Book, present_book
from catalog.services.authors import AuthorManager
from catalog.services.categories import CategoryManager
from catalog.services.named_entity import discard_blobs, entity_operation
from catalog.utils.blob_store import BlobStore
from catalog.utils.dynamo_repo import BookRepository, utcnow_iso

logger = logging.getLogger(__name__)

ATTACHMENT_FIELDS = ('cover', 'pdf')


def tokenize(query):
    """Lower-cased words of ``query`` in first-seen order, without repeats."""
    tokens = []
    for word in (query or '').lower().split():
        if word not in tokens:
            tokens.append(word)
    return tokens


def rank_by_tokens(books, tokens, author_names):
    """Books matching at least one token, most matched tokens first.

    A token matches when it is a substring of the title or of the author's
    name. Books with the same score keep the order they came in.
    """
    scored = []
    for book in books:
        fields = (
            str(book.get('title') or '').lower(),
            str(author_names.get(book.get('author_id')) or '').lower(),
        )
        score = sum(1 for token in tokens if any(token in field for field in fields))
        if score:
            scored.append((score, book))
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [book for _, book in scored]


def _listing(books, cursor=None):
    presented = [present_book(book) for book in books]
    return {
        'message': 'Books retrieved successfully' if presented else 'No books found',
        'books': presented,
        'cursor': cursor,
    }


class BookManager:
    model = Book

    def __init__(self, repository=None, categories=None, authors=None, blobs=None):
        self.repo = repository or BookRepository()
        self.blobs = blobs or BlobStore()
        self.categories = categories or CategoryManager()
        self.authors = authors or AuthorManager(blobs=self.blobs)
        self.require_attachments = current_app.config.get('REQUIRE_BOOK_ATTACHMENTS', True)

    def _get(self, book_id):
        book = self.repo.get_by_id(book_id)
        if not book:
            raise EntityNotFound(Book.entity, book_id)
        return book

    def _check_isbn_free(self, isbn, exclude_id=None):
        clashes = [book for book in self.repo.get_by_isbn(isbn) if book['id'] != exclude_id]
        if clashes:
            raise EntityAlreadyExists(Book.entity, 'ISBN', isbn)

    def _adjust_counters(self, book_id, action, changes):
        """Apply (manager, entity id, delta) counter changes after a book write.

        Every change is attempted; if any fails the book write stands and a
        CounterSyncError tells the caller the counts now disagree.
        """
        failed = False
        for manager, entity_id, delta in changes:
            try:
                if delta > 0:
                    manager.increment_books_count(entity_id)
                else:
                    manager.decrement_books_count(entity_id)
            except HTTPException as e:
                failed = True
                logger.error(
                    'Book %s was %s but books count of %s %s was not adjusted by %d: %s',
                    book_id, action, manager.entity, entity_id, delta, e.description
                )
        if failed:
            raise CounterSyncError(book_id, action)

    def _upload(self, target, attachments):
        uploaded = []
        try:
            for field in ATTACHMENT_FIELDS:
                attachment = attachments.get(field)
                if attachment is not None:
                    target[field] = self.blobs.upload_attachment(attachment, Book.attachment_folders[field])
                    uploaded.append(target[field])
        except Exception:
            discard_blobs(self.blobs, uploaded)
            raise
        return uploaded

    @entity_operation('create')
    def create(self, data, cover=None, pdf=None):
        if self.require_attachments and (cover is None or pdf is None):
            raise InvalidRequest('Both a cover image and a PDF file are required')

        self._check_isbn_free(data['isbn'])
        self.categories.find_one(data['category_id'])
        self.authors.find_one(data['author_id'])

        record = Book.new(data)
        uploaded = self._upload(record, {'cover': cover, 'pdf': pdf})
        try:
            created = self.repo.save(record)
        except Exception:
            discard_blobs(self.blobs, uploaded)
            raise
        logger.info('Created book with ID: %s', created['id'])

        self._adjust_counters(created['id'], 'created', [
            (self.categories, created['category_id'], 1),
            (self.authors, created['author_id'], 1),
        ])
        return created

    @entity_operation('fetch')
    def find_all(self, limit=10, cursor=None):
        page = self.repo.scan(limit=limit, cursor=cursor)
        return _listing(page.items, page.cursor)

    @entity_operation('fetch')
    def find_one(self, book_id):
        return present_book(self._get(book_id))

    @entity_operation('fetch')
    def find_by_category(self, category_id, limit=10, cursor=None):
        page = self.repo.get_by_category(category_id, limit=limit, cursor=cursor)
        return _listing(page.items, page.cursor)

    @entity_operation('fetch')
    def find_by_author(self, author_id, limit=10, cursor=None):
        page = self.repo.get_by_author(author_id, limit=limit, cursor=cursor)
        return _listing(page.items, page.cursor)

    @entity_operation('fetch')
    def find_by_title(self, title):
        return _listing(self.repo.get_by_title(title))

    @entity_operation('fetch')
    def find_by_rating(self, rating):
        return _listing(self.repo.get_by_min_rating(rating))

    @entity_operation('fetch')
    def find_by_isbn(self, isbn):
        return _listing(self.repo.get_by_isbn(isbn))

    @entity_operation('search')
    def search(self, query):
        tokens = tokenize(query)
        if not tokens:
            raise InvalidRequest('Search query is required')

        author_names = {author['id']: author.get('name') for author in self.authors.repo.scan_all()}
        ranked = rank_by_tokens(self.repo.scan_all(), tokens, author_names)
        return _listing(ranked)

    @entity_operation('update')
    def update(self, book_id, data, cover=None, pdf=None):
        existing = self._get(book_id)

        isbn = data.get('isbn')
        if isbn and isbn != existing.get('isbn'):
            self._check_isbn_free(isbn, exclude_id=book_id)

        counter_moves = []
        for field, manager in (('category_id', self.categories), ('author_id', self.authors)):
            new_id = data.get(field)
            if new_id and new_id != existing.get(field):
                manager.find_one(new_id)
                counter_moves.append((manager, new_id, 1))
                counter_moves.append((manager, existing.get(field), -1))

        changes = {
            field: data[field]
            for field in Book.updatable_fields
            if data.get(field) is not None
        }
        changes['updated_at'] = utcnow_iso()

        attachments = {'cover': cover, 'pdf': pdf}
        uploaded = self._upload(changes, attachments)
        replaced = [existing.get(field) for field in ATTACHMENT_FIELDS if attachments[field] is not None]
        try:
            updated = self.repo.update(book_id, changes)
        except Exception:
            discard_blobs(self.blobs, uploaded)
            raise
        discard_blobs(self.blobs, replaced)
        logger.info('Updated book with ID: %s', book_id)

        if counter_moves:
            self._adjust_counters(book_id, 'updated', counter_moves)
        return present_book(updated)

    @entity_operation('delete')
    def remove(self, book_id):
        existing = self._get(book_id)

        discard_blobs(self.blobs, [existing.get(field) for field in ATTACHMENT_FIELDS])
        self.repo.delete(book_id)
        logger.info('Deleted book with ID: %s', book_id)

        self._adjust_counters(book_id, 'deleted', [
            (self.categories, existing.get('category_id'), -1),
            (self.authors, existing.get('author_id'), -1),
        ])
        return {'message': f'Book with ID "{book_id}" has been successfully deleted'}
