"""
Pytest configuration and fixtures for the library catalog.

Every test runs against moto's in-memory DynamoDB and S3, provisioned with the
same table definitions aws_init.py uses.
"""
from datetime import datetime, timedelta, timezone
from itertools import count

import pytest
from flask import g
from flask.testing import FlaskClient
from moto import mock_aws

from catalog import create_app
from catalog.services import AuthorManager, BookManager, BorrowWorkflow, CategoryManager
from catalog.utils.aws_services import get_dynamodb_resource
from catalog.utils.blob_store import Attachment, BlobStore
from catalog.utils.table_definitions import create_tables


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real account."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def app(aws_credentials):
    with mock_aws():
        app = create_app('testing')
        with app.app_context():
            create_tables(get_dynamodb_resource())
            BlobStore().ensure_bucket()
            yield app


class FreshIdentityClient(FlaskClient):
    """Test client that resolves the caller again on every request.

    The fixtures keep one app context open and Flask reuses it for each
    request, so Flask-Login's cached user would carry over otherwise.
    """

    def open(self, *args, **kwargs):
        g.pop('_login_user', None)
        return super().open(*args, **kwargs)


@pytest.fixture
def client(app):
    app.test_client_class = FreshIdentityClient
    return app.test_client()


@pytest.fixture
def blob_store(app):
    return BlobStore()


@pytest.fixture
def s3_keys(blob_store):
    """Callable listing every key currently stored in the test bucket."""
    def _keys():
        response = blob_store.client.list_objects_v2(Bucket=blob_store.bucket)
        return sorted(obj['Key'] for obj in response.get('Contents', []))
    return _keys


@pytest.fixture
def categories(app):
    return CategoryManager()


@pytest.fixture
def authors(app):
    return AuthorManager()


@pytest.fixture
def books(app):
    return BookManager()


@pytest.fixture
def workflow(books):
    return BorrowWorkflow(books=books)


@pytest.fixture
def category(categories):
    return categories.create({'name': 'Programming', 'description': 'Software and computing'})


@pytest.fixture
def author(authors):
    return authors.create({
        'name': 'Alan Donovan',
        'biography': 'Member of the Go team at Google.',
        'birth_date': '1970-01-01',
        'nationality': 'American',
        'email': 'alan@example.com',
        'genres': ['Programming'],
    })


@pytest.fixture
def cover():
    return Attachment(b'\x89PNG\r\n\x1a\nfake-cover', 'image/png', 'cover.png')


@pytest.fixture
def pdf():
    return Attachment(b'%PDF-1.4 fake-pdf', 'application/pdf', 'book.pdf')


@pytest.fixture
def make_book(books, category, author, cover, pdf):
    """Factory creating books in the default category/author."""
    numbers = count(1)

    def _make(**overrides):
        n = next(numbers)
        data = {
            'title': f'Book {n}',
            'author_id': author['id'],
            'category_id': category['id'],
            'isbn': f'978000000{n:04d}',
            'published_year': 2015,
            'quantity': 2,
        }
        data.update(overrides)
        return books.create(data, cover=cover, pdf=pdf)
    return _make


@pytest.fixture
def period():
    """ISO start/return dates ``offset`` days from now, ``days`` apart."""
    def _period(days=10, offset=1):
        start = datetime.now(timezone.utc) + timedelta(days=offset)
        return start.isoformat(), (start + timedelta(days=days)).isoformat()
    return _period
