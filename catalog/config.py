import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name, default='False'):
    return os.environ.get(name, default).lower() == 'true'


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Upload limits
    MAX_UPLOAD_SIZE = int(os.environ.get('MAX_UPLOAD_SIZE', 10 * 1024 * 1024))
    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_CONTENT_LENGTH', 25 * 1024 * 1024))

    # AWS Settings
    AWS_ACCESS_KEY_ID = os.environ.get('AWS_ACCESS_KEY_ID')
    AWS_SECRET_ACCESS_KEY = os.environ.get('AWS_SECRET_ACCESS_KEY')
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')
    DYNAMODB_ENDPOINT_URL = os.environ.get('DYNAMODB_ENDPOINT_URL')
    S3_ENDPOINT_URL = os.environ.get('S3_ENDPOINT_URL')

    # DynamoDB Table Names
    DYNAMODB_BOOKS_TABLE = os.environ.get('DYNAMODB_BOOKS_TABLE', 'Books')
    DYNAMODB_AUTHORS_TABLE = os.environ.get('DYNAMODB_AUTHORS_TABLE', 'Authors')
    DYNAMODB_CATEGORIES_TABLE = os.environ.get('DYNAMODB_CATEGORIES_TABLE', 'Categories')

    # S3 Settings
    S3_BUCKET_NAME = os.environ.get('S3_BUCKET_NAME', 'library-catalog-assets')
    S3_PUBLIC_BASE_URL = os.environ.get('S3_PUBLIC_BASE_URL')
    S3_MULTIPART_THRESHOLD = int(os.environ.get('S3_MULTIPART_THRESHOLD', 8 * 1024 * 1024))

    # Borrowing rules
    MAX_BORROWED_BOOKS = int(os.environ.get('MAX_BORROWED_BOOKS', 3))
    MAX_BORROW_DAYS = int(os.environ.get('MAX_BORROW_DAYS', 30))
    STRICT_BORROW_QUANTITY = _env_flag('STRICT_BORROW_QUANTITY')
    REQUIRE_BOOK_ATTACHMENTS = _env_flag('REQUIRE_BOOK_ATTACHMENTS', 'True')

    # Identity forwarded by the gateway authorizer
    AUTH_USER_HEADER = os.environ.get('AUTH_USER_HEADER', 'X-User-Id')
    AUTH_GROUPS_HEADER = os.environ.get('AUTH_GROUPS_HEADER', 'X-User-Groups')
    ADMIN_GROUP = os.environ.get('ADMIN_GROUP', 'ADMIN')


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    AWS_ACCESS_KEY_ID = 'testing'
    AWS_SECRET_ACCESS_KEY = 'testing'
    AWS_REGION = 'us-east-1'
    DYNAMODB_ENDPOINT_URL = None
    S3_ENDPOINT_URL = None
    DYNAMODB_BOOKS_TABLE = 'Books'
    DYNAMODB_AUTHORS_TABLE = 'Authors'
    DYNAMODB_CATEGORIES_TABLE = 'Categories'
    S3_BUCKET_NAME = 'test-library-assets'
    S3_PUBLIC_BASE_URL = None
    S3_MULTIPART_THRESHOLD = 8 * 1024 * 1024
    MAX_BORROWED_BOOKS = 3
    MAX_BORROW_DAYS = 30
    STRICT_BORROW_QUANTITY = False
    REQUIRE_BOOK_ATTACHMENTS = True


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
