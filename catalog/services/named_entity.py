"""Shared behaviour for entities identified by a unique name and a book counter.

Categories and authors follow the same contract: a name that must be unique
across the table, a ``books_count`` that only moves through guarded atomic
increments, and a delete that is refused while books still reference them.
"""
import logging
from functools import wraps

from werkzeug.exceptions import HTTPException

from catalog.exceptions import (
    EntityAlreadyExists,
    EntityHasDependents,
    EntityNotFound,
    EntityNotFoundByName,
    EntityOperationFailed,
    RecordNotFound,
    StorageIOError,
)
from catalog.utils.dynamo_repo import utcnow_iso

logger = logging.getLogger(__name__)

COUNTER = 'books_count'


def entity_operation(action):
    """Let domain errors through and wrap everything else per entity.

    ``RecordNotFound`` from the store is relabelled with the manager's entity
    so callers see "Book with ID ... not found" rather than a table name.
    """
    def decorator(method):
        @wraps(method)
        def wrapper(self, *args, **kwargs):
            entity = self.model.entity
            try:
                return method(self, *args, **kwargs)
            except RecordNotFound as e:
                logger.warning('Failed to %s %s: %s', action, entity, e.description)
                raise EntityNotFound(entity, e.key) from e
            except HTTPException as e:
                logger.warning('Failed to %s %s: %s', action, entity, e.description)
                raise
            except Exception as e:
                logger.exception('Failed to %s %s: %s', action, entity, e)
                raise EntityOperationFailed(entity, action, e) from e
        return wrapper
    return decorator


def discard_blobs(blobs, references):
    """Best-effort removal of stored files; failures only get logged."""
    for reference in references:
        if not reference:
            continue
        try:
            blobs.delete(reference)
        except StorageIOError:
            logger.warning('Could not delete file %s, leaving it orphaned', reference)


class NamedEntityManager:
    model = None
    repository_class = None

    def __init__(self, repository=None, blobs=None):
        self.repo = repository or self.repository_class()
        self.blobs = blobs

    @property
    def entity(self):
        return self.model.entity

    @property
    def plural(self):
        return self.model.plural

    def _existing_with_name(self, name):
        try:
            return self.find_by_name(name)[self.plural]
        except EntityNotFoundByName:
            return []

    # Attachment hooks, no-ops unless the entity stores files.

    def _attach(self, record, attachments):
        return []

    def _replace_attachments(self, existing, changes, attachments):
        return [], []

    def _attachment_refs(self, record):
        return []

    def _discard(self, references):
        if self.blobs is not None:
            discard_blobs(self.blobs, references)

    @entity_operation('create')
    def create(self, data, **attachments):
        name = data['name']
        if self._existing_with_name(name):
            raise EntityAlreadyExists(self.entity, 'name', name)

        record = self.model.new(data)
        uploaded = self._attach(record, attachments)
        try:
            created = self.repo.save(record)
        except Exception:
            self._discard(uploaded)
            raise
        logger.info('Created %s with ID: %s', self.entity, created['id'])
        return created

    @entity_operation('fetch')
    def find_all(self, limit=10, cursor=None):
        page = self.repo.scan(limit=limit, cursor=cursor)
        if not page.items:
            return {'message': f'No {self.plural} found', self.plural: [], 'cursor': None}
        return {
            'message': f'{self.plural.capitalize()} retrieved successfully',
            self.plural: page.items,
            'cursor': page.cursor,
        }

    @entity_operation('fetch')
    def find_one(self, entity_id):
        item = self.repo.get_by_id(entity_id)
        if not item:
            raise EntityNotFound(self.entity, entity_id)
        return item

    @entity_operation('fetch')
    def find_by_name(self, name, limit=None, cursor=None):
        page = self.repo.get_by_name(name, limit=limit, cursor=cursor)
        if not page.items:
            raise EntityNotFoundByName(self.entity, name)
        return {
            'message': f'{self.plural.capitalize()} retrieved successfully',
            self.plural: page.items,
            'cursor': page.cursor,
        }

    @entity_operation('update')
    def update(self, entity_id, data, **attachments):
        existing = self.find_one(entity_id)

        name = data.get('name')
        if name and name != existing.get('name'):
            clashes = [item for item in self._existing_with_name(name) if item['id'] != entity_id]
            if clashes:
                raise EntityAlreadyExists(self.entity, 'name', name)

        changes = {
            field: data[field]
            for field in self.model.updatable_fields
            if data.get(field) is not None
        }
        changes['updated_at'] = utcnow_iso()

        uploaded, replaced = self._replace_attachments(existing, changes, attachments)
        try:
            updated = self.repo.update(entity_id, changes)
        except Exception:
            self._discard(uploaded)
            raise
        self._discard(replaced)
        logger.info('Updated %s with ID: %s', self.entity, entity_id)
        return updated

    @entity_operation('delete')
    def remove(self, entity_id):
        existing = self.find_one(entity_id)
        if existing.get(COUNTER, 0) > 0:
            raise EntityHasDependents(self.entity, entity_id)

        self.repo.delete(entity_id)
        self._discard(self._attachment_refs(existing))
        logger.info('Deleted %s with ID: %s', self.entity, entity_id)
        return {'message': f'{self.entity.capitalize()} with ID "{entity_id}" has been successfully deleted'}

    @entity_operation('update')
    def increment_books_count(self, entity_id):
        updated = self.repo.adjust_counter(entity_id, COUNTER, 1)
        logger.info('Incremented books count for %s %s', self.entity, entity_id)
        return updated

    @entity_operation('update')
    def decrement_books_count(self, entity_id):
        updated = self.repo.adjust_counter(entity_id, COUNTER, -1)
        logger.info('Decremented books count for %s %s', self.entity, entity_id)
        return updated
