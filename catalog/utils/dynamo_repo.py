import base64
import json
import logging
import uuid
from collections import namedtuple
from datetime import datetime, timezone
from decimal import Decimal
from itertools import count

from boto3.dynamodb.conditions import Key, Attr
from botocore.exceptions import ClientError
from flask import current_app

from catalog.exceptions import ConditionNotMet, CounterUnderflow, DuplicateKey, InvalidRequest, RecordNotFound
from catalog.models.book import BookStatus
from .aws_services import get_dynamodb_resource

logger = logging.getLogger(__name__)

Page = namedtuple('Page', ['items', 'cursor'])


def utcnow_iso():
    return datetime.now(timezone.utc).isoformat()


def from_dynamo(value):
    """Turn the Decimals boto3 hands back into plain ints and floats."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value


def to_dynamo(value):
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(v) for v in value]
    return value


def encode_cursor(last_key):
    if not last_key:
        return None
    raw = json.dumps(from_dynamo(last_key), sort_keys=True).encode('utf-8')
    return base64.urlsafe_b64encode(raw).decode('ascii').rstrip('=')


def decode_cursor(cursor):
    if not cursor:
        return None
    padded = cursor + '=' * (-len(cursor) % 4)
    try:
        key = json.loads(base64.urlsafe_b64decode(padded.encode('ascii')))
    except ValueError as e:
        raise InvalidRequest('Invalid pagination cursor') from e
    if not isinstance(key, dict):
        raise InvalidRequest('Invalid pagination cursor')
    return key


def _is_condition_failure(error):
    return error.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException'


class DynamoRepository:
    def __init__(self, table_name):
        self.table_name = table_name
        self.resource = None
        self._table = None

    @property
    def table(self):
        if self._table is None:
            self.resource = get_dynamodb_resource()
            self._table = self.resource.Table(self.table_name)
        return self._table

    def get_by_id(self, item_id):
        response = self.table.get_item(Key={'id': str(item_id)}, ConsistentRead=True)
        item = response.get('Item')
        return from_dynamo(item) if item else None

    def save(self, item_data):
        """Insert a new item; refuses to overwrite an existing id."""
        if 'id' not in item_data:
            item_data['id'] = str(uuid.uuid4())
        now = utcnow_iso()
        if 'created_at' not in item_data:
            item_data['created_at'] = now
        item_data['updated_at'] = now

        try:
            self.table.put_item(
                Item=to_dynamo(item_data),
                ConditionExpression=Attr('id').not_exists()
            )
        except ClientError as e:
            if _is_condition_failure(e):
                raise DuplicateKey(self.table_name, item_data['id']) from e
            raise
        return {k: v for k, v in item_data.items() if v is not None}

    def update(self, item_id, changes=None, remove=(), increments=None, condition=None):
        """Apply SET/REMOVE/arithmetic changes to an existing item in one write.

        ``changes`` values of ``None`` are removed instead of set. The write
        always requires the item to exist; ``condition`` is ANDed on top.
        Returns the item as stored after the write.
        """
        names, values = {}, {}
        set_parts, remove_parts = [], []
        placeholders = count()

        def name_of(attr):
            placeholder = f'#u{next(placeholders)}'
            names[placeholder] = attr
            return placeholder

        def value_of(value):
            placeholder = f':u{next(placeholders)}'
            values[placeholder] = to_dynamo(value)
            return placeholder

        for attr, value in (changes or {}).items():
            if value is None:
                remove_parts.append(name_of(attr))
            else:
                set_parts.append(f'{name_of(attr)} = {value_of(value)}')
        for attr, delta in (increments or {}).items():
            placeholder = name_of(attr)
            set_parts.append(f'{placeholder} = {placeholder} + {value_of(delta)}')
        for attr in remove:
            remove_parts.append(name_of(attr))

        clauses = []
        if set_parts:
            clauses.append('SET ' + ', '.join(set_parts))
        if remove_parts:
            clauses.append('REMOVE ' + ', '.join(remove_parts))
        if not clauses:
            item = self.get_by_id(item_id)
            if item is None:
                raise RecordNotFound(self.table_name, item_id)
            return item

        guard = Attr('id').exists()
        if condition is not None:
            guard = guard & condition

        params = {
            'Key': {'id': str(item_id)},
            'UpdateExpression': ' '.join(clauses),
            'ExpressionAttributeNames': names,
            'ConditionExpression': guard,
            'ReturnValues': 'ALL_NEW',
        }
        if values:
            params['ExpressionAttributeValues'] = values

        try:
            response = self.table.update_item(**params)
        except ClientError as e:
            if _is_condition_failure(e):
                self._raise_condition_failure(item_id, e)
            raise
        return from_dynamo(response.get('Attributes', {}))

    def _raise_condition_failure(self, item_id, error):
        if self.get_by_id(item_id) is None:
            raise RecordNotFound(self.table_name, item_id) from error
        raise ConditionNotMet(self.table_name, item_id) from error

    def adjust_counter(self, item_id, attribute, delta):
        """Atomically add ``delta`` to a numeric attribute; never below zero."""
        condition = Attr(attribute).gte(-delta) if delta < 0 else None
        try:
            return self.update(item_id, increments={attribute: delta}, condition=condition)
        except ConditionNotMet as e:
            raise CounterUnderflow(attribute) from e

    def delete(self, item_id):
        try:
            self.table.delete_item(
                Key={'id': str(item_id)},
                ConditionExpression=Attr('id').exists()
            )
        except ClientError as e:
            if _is_condition_failure(e):
                raise RecordNotFound(self.table_name, item_id) from e
            raise
        return True

    def query(self, index_name, key_condition, limit=None, cursor=None):
        params = {'IndexName': index_name, 'KeyConditionExpression': key_condition}
        if limit:
            params['Limit'] = int(limit)
        start_key = decode_cursor(cursor)
        if start_key:
            params['ExclusiveStartKey'] = start_key
        response = self.table.query(**params)
        items = [from_dynamo(item) for item in response.get('Items', [])]
        return Page(items, encode_cursor(response.get('LastEvaluatedKey')))

    def query_all(self, index_name, key_condition):
        items, cursor = [], None
        while True:
            page = self.query(index_name, key_condition, cursor=cursor)
            items.extend(page.items)
            if not page.cursor:
                return items
            cursor = page.cursor

    def scan(self, filter_expression=None, limit=None, cursor=None):
        params = {}
        if filter_expression is not None:
            params['FilterExpression'] = filter_expression
        if limit:
            params['Limit'] = int(limit)
        start_key = decode_cursor(cursor)
        if start_key:
            params['ExclusiveStartKey'] = start_key
        response = self.table.scan(**params)
        items = [from_dynamo(item) for item in response.get('Items', [])]
        return Page(items, encode_cursor(response.get('LastEvaluatedKey')))

    def scan_all(self, filter_expression=None):
        items, cursor = [], None
        while True:
            page = self.scan(filter_expression, cursor=cursor)
            items.extend(page.items)
            if not page.cursor:
                return items
            cursor = page.cursor


class NamedRepository(DynamoRepository):
    """Tables with a ``NameIndex`` on ``name``."""

    def get_by_name(self, name, limit=None, cursor=None):
        return self.query('NameIndex', Key('name').eq(name), limit=limit, cursor=cursor)


class AuthorRepository(NamedRepository):
    def __init__(self):
        table_name = current_app.config.get('DYNAMODB_AUTHORS_TABLE', 'Authors')
        super().__init__(table_name)


class CategoryRepository(NamedRepository):
    def __init__(self):
        table_name = current_app.config.get('DYNAMODB_CATEGORIES_TABLE', 'Categories')
        super().__init__(table_name)


class BookRepository(DynamoRepository):
    def __init__(self):
        table_name = current_app.config.get('DYNAMODB_BOOKS_TABLE', 'Books')
        super().__init__(table_name)

    def get_by_isbn(self, isbn):
        return self.query_all('ISBNIndex', Key('isbn').eq(isbn))

    def get_by_category(self, category_id, limit=None, cursor=None):
        return self.query('CategoryIndex', Key('category_id').eq(str(category_id)), limit=limit, cursor=cursor)

    def get_by_author(self, author_id, limit=None, cursor=None):
        return self.query('AuthorIndex', Key('author_id').eq(str(author_id)), limit=limit, cursor=cursor)

    def get_by_title(self, title):
        return self.query_all('TitleIndex', Key('title').eq(title))

    def get_by_min_rating(self, rating):
        return self.scan_all(Attr('rating').gte(to_dynamo(rating)))

    def get_borrowed_by(self, borrower_id):
        condition = Key('borrower_id').eq(str(borrower_id)) & Key('status').eq(BookStatus.BORROWED.value)
        return self.query_all('BorrowerStatusIndex', condition)
