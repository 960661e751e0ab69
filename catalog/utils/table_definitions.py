import logging

from botocore.exceptions import ClientError
from flask import current_app

logger = logging.getLogger(__name__)

THROUGHPUT = {'ReadCapacityUnits': 5, 'WriteCapacityUnits': 5}


def _index(name, hash_key, range_key=None):
    key_schema = [{'AttributeName': hash_key, 'KeyType': 'HASH'}]
    if range_key:
        key_schema.append({'AttributeName': range_key, 'KeyType': 'RANGE'})
    return {
        'IndexName': name,
        'KeySchema': key_schema,
        'Projection': {'ProjectionType': 'ALL'},
        'ProvisionedThroughput': THROUGHPUT,
    }


def _string_attributes(*names):
    return [{'AttributeName': name, 'AttributeType': 'S'} for name in names]


def table_definitions(config=None):
    config = config or current_app.config
    return [
        {
            'TableName': config.get('DYNAMODB_BOOKS_TABLE', 'Books'),
            'KeySchema': [{'AttributeName': 'id', 'KeyType': 'HASH'}],
            'AttributeDefinitions': _string_attributes(
                'id', 'author_id', 'category_id', 'isbn', 'title', 'status', 'borrower_id'
            ),
            'GlobalSecondaryIndexes': [
                _index('AuthorIndex', 'author_id'),
                _index('CategoryIndex', 'category_id'),
                _index('ISBNIndex', 'isbn'),
                _index('TitleIndex', 'title'),
                _index('StatusIndex', 'status'),
                _index('BorrowerStatusIndex', 'borrower_id', 'status'),
            ],
        },
        {
            'TableName': config.get('DYNAMODB_AUTHORS_TABLE', 'Authors'),
            'KeySchema': [{'AttributeName': 'id', 'KeyType': 'HASH'}],
            'AttributeDefinitions': _string_attributes('id', 'name'),
            'GlobalSecondaryIndexes': [_index('NameIndex', 'name')],
        },
        {
            'TableName': config.get('DYNAMODB_CATEGORIES_TABLE', 'Categories'),
            'KeySchema': [{'AttributeName': 'id', 'KeyType': 'HASH'}],
            'AttributeDefinitions': _string_attributes('id', 'name'),
            'GlobalSecondaryIndexes': [_index('NameIndex', 'name')],
        },
    ]


def create_tables(dynamodb, config=None):
    """Create every catalog table that does not exist yet; returns the new names."""
    created = []
    for table_config in table_definitions(config):
        name = table_config['TableName']
        try:
            logger.info('Creating table %s...', name)
            table = dynamodb.create_table(ProvisionedThroughput=THROUGHPUT, **table_config)
            table.wait_until_exists()
            logger.info('Table %s created successfully.', name)
            created.append(name)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ResourceInUseException':
                logger.info('Table %s already exists.', name)
            else:
                raise
    return created
