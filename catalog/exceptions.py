"""Error taxonomy for the catalog.

Every error a caller can see is a werkzeug ``HTTPException`` so the Flask
error handler can map it straight to a status code.
"""
from werkzeug.exceptions import BadRequest, Conflict, InternalServerError, NotFound


# Record store

class RecordNotFound(NotFound):
    def __init__(self, table, key):
        self.table = table
        self.key = key
        super().__init__(f'Record "{key}" not found in {table}')


class DuplicateKey(Conflict):
    def __init__(self, table, key):
        self.table = table
        self.key = key
        super().__init__(f'Record "{key}" already exists in {table}')


class ConditionNotMet(Conflict):
    def __init__(self, table, key):
        self.table = table
        self.key = key
        super().__init__(f'Conditional write on "{key}" in {table} was rejected')


class CounterUnderflow(BadRequest):
    def __init__(self, attribute='books_count'):
        self.attribute = attribute
        super().__init__(f'{attribute} cannot be negative')


class StorageIOError(InternalServerError):
    def __init__(self, message='Failed to transfer file'):
        super().__init__(message)


# Entities

class EntityNotFound(NotFound):
    def __init__(self, entity, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f'{entity.capitalize()} with ID "{entity_id}" not found')


class EntityNotFoundByName(NotFound):
    def __init__(self, entity, name):
        self.entity = entity
        # `name` is the HTTP status phrase on werkzeug exceptions
        self.lookup_name = name
        super().__init__(f'{entity.capitalize()} with name "{name}" not found')


class EntityAlreadyExists(Conflict):
    def __init__(self, entity, field, value):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f'{entity.capitalize()} with {field} "{value}" already exists')


class EntityHasDependents(Conflict):
    def __init__(self, entity, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f'Cannot delete {entity} with existing books')


class EntityOperationFailed(InternalServerError):
    """Unexpected failure inside a manager; the cause stays server side."""

    def __init__(self, entity, action, cause=None):
        self.entity = entity
        self.action = action
        self.cause = cause
        super().__init__(f'Failed to {action} {entity}')


class CounterSyncError(InternalServerError):
    """The book write succeeded but a category/author counter did not follow."""

    def __init__(self, book_id, action):
        self.book_id = book_id
        self.action = action
        super().__init__(
            f'Book "{book_id}" was {action} but the category/author book counts '
            f'could not be updated'
        )


# Business rules

class InvalidRequest(BadRequest):
    reason = 'INVALID_REQUEST'


class AlreadyBorrowed(InvalidRequest):
    reason = 'ALREADY_BORROWED'

    def __init__(self, book_id):
        super().__init__(f'You have already borrowed book "{book_id}"')


class BorrowLimitExceeded(InvalidRequest):
    reason = 'BORROW_LIMIT_EXCEEDED'

    def __init__(self, limit):
        self.limit = limit
        super().__init__(f'You cannot borrow more than {limit} books at a time')


class BookUnavailable(InvalidRequest):
    reason = 'UNAVAILABLE'

    def __init__(self, book_id):
        super().__init__(f'Book "{book_id}" is not available for borrowing')


class InvalidBorrowPeriod(InvalidRequest):
    reason = 'INVALID_BORROW_PERIOD'


class BookNotBorrowed(InvalidRequest):
    reason = 'NOT_BORROWED'

    def __init__(self, book_id):
        super().__init__(f'Book "{book_id}" is not currently borrowed')


class NotBorrower(InvalidRequest):
    reason = 'NOT_BORROWER'

    def __init__(self, book_id):
        super().__init__(f'Book "{book_id}" was not borrowed by you')


class BorrowConflict(Conflict):
    reason = 'CONCURRENT_MODIFICATION'

    def __init__(self, book_id):
        super().__init__(f'Book "{book_id}" changed while borrowing, please retry')
