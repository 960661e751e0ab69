"""Provision the DynamoDB tables and the S3 bucket used by the catalog"""
import logging

from dotenv import load_dotenv

load_dotenv()

from catalog import create_app
from catalog.utils.aws_services import get_dynamodb_resource
from catalog.utils.blob_store import BlobStore
from catalog.utils.table_definitions import create_tables

logger = logging.getLogger('aws_init')


def init_aws():
    app = create_app()
    with app.app_context():
        logger.info('Initializing DynamoDB tables in region: %s', app.config.get('AWS_REGION'))
        created = create_tables(get_dynamodb_resource())
        logger.info('Created tables: %s', ', '.join(created) or 'none')

        store = BlobStore()
        if store.ensure_bucket():
            logger.info('Bucket %s created.', store.bucket)
        else:
            logger.info('Bucket %s already exists.', store.bucket)


if __name__ == '__main__':
    init_aws()
