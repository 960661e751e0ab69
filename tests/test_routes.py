"""End-to-end tests through the Flask test client."""
import io
from urllib.parse import quote

import pytest

ADMIN = {'X-User-Id': 'admin-1', 'X-User-Groups': 'ADMIN'}
USER = {'X-User-Id': 'user-1'}
OTHER_USER = {'X-User-Id': 'user-2', 'X-User-Groups': 'READERS'}


def book_form(category, author, **overrides):
    form = {
        'title': 'The Go Programming Language',
        'author_id': author['id'],
        'category_id': category['id'],
        'isbn': '9780134190440',
        'published_year': '2015',
        'quantity': '2',
        'rating': '4.5',
        'cover': (io.BytesIO(b'\x89PNG fake'), 'cover.png', 'image/png'),
        'pdf': (io.BytesIO(b'%PDF-1.4 fake'), 'book.pdf', 'application/pdf'),
    }
    form.update(overrides)
    return {key: value for key, value in form.items() if value is not None}


@pytest.fixture
def posted_book(client, category, author):
    response = client.post('/books', data=book_form(category, author), headers=ADMIN,
                           content_type='multipart/form-data')
    assert response.status_code == 201
    return response.get_json()


def test_health(client):
    response = client.get('/')

    assert response.status_code == 200
    assert response.get_json()['message'] == 'Library catalog API is running'


class TestAuth:
    def test_anonymous_write(self, client):
        response = client.post('/categories', json={'name': 'History'})

        assert response.status_code == 401
        assert response.get_json()['message'] == 'Authentication required'

    def test_non_admin_write(self, client):
        response = client.post('/categories', json={'name': 'History'}, headers=OTHER_USER)

        assert response.status_code == 403
        assert response.get_json()['message'] == 'Admin access required'

    def test_anonymous_borrow(self, client, posted_book):
        response = client.patch(f'/books/{posted_book["id"]}/borrow', json={})

        assert response.status_code == 401

    def test_reads_are_public(self, client, category):
        assert client.get(f'/categories/{category["id"]}').status_code == 200

    def test_identity_is_resolved_per_request(self, client):
        assert client.post('/categories', json={'name': 'History'}, headers=ADMIN).status_code == 201

        response = client.post('/categories', json={'name': 'Poetry'})

        assert response.status_code == 401

    def test_user_after_admin_is_not_admin(self, client):
        client.post('/categories', json={'name': 'History'}, headers=ADMIN)

        assert client.post('/categories', json={'name': 'Poetry'}, headers=USER).status_code == 403


class TestCategories:
    def test_create(self, client):
        response = client.post('/categories', json={'name': '  History ', 'description': 'The past'}, headers=ADMIN)

        assert response.status_code == 201
        body = response.get_json()
        assert body['name'] == 'History'
        assert body['books_count'] == 0

    def test_create_requires_name(self, client):
        response = client.post('/categories', json={'description': 'Nameless'}, headers=ADMIN)

        assert response.status_code == 400
        assert response.get_json()['reason'] == 'INVALID_REQUEST'

    def test_create_rejects_repeated_name(self, client, categories):
        response = client.post('/categories', json={'name': ['History', 'Poetry']}, headers=ADMIN)

        assert response.status_code == 400
        assert response.get_json()['message'] == 'name must be a single value.'
        assert categories.repo.scan_all() == []

    def test_duplicate(self, client, category):
        response = client.post('/categories', json={'name': 'Programming'}, headers=ADMIN)

        assert response.status_code == 409

    def test_not_found(self, client):
        response = client.get('/categories/missing')

        assert response.status_code == 404
        assert response.get_json() == {
            'status_code': 404,
            'error': 'Not Found',
            'message': 'Category with ID "missing" not found',
        }

    def test_list_with_cursor(self, client, categories):
        for name in ('A', 'B', 'C'):
            categories.create({'name': name})

        first = client.get('/categories?limit=2').get_json()
        second = client.get(f'/categories?limit=2&cursor={first["cursor"]}').get_json()

        names = {item['name'] for item in first['categories'] + second['categories']}
        assert names == {'A', 'B', 'C'}

    def test_bad_cursor(self, client):
        assert client.get('/categories?cursor=WzEsIDJd').status_code == 400

    def test_bad_limit(self, client):
        assert client.get('/categories?limit=0').status_code == 400

    def test_search(self, client, category):
        assert client.get('/categories/search?name=Programming').get_json()['categories'][0]['id'] == category['id']
        assert client.get('/categories/search?name=Cooking').status_code == 404
        assert client.get('/categories/search').status_code == 400

    def test_update(self, client, category):
        response = client.patch(f'/categories/{category["id"]}', json={'description': 'Code'}, headers=ADMIN)

        assert response.status_code == 200
        assert response.get_json()['description'] == 'Code'

    def test_delete_with_books(self, client, category, posted_book):
        response = client.delete(f'/categories/{category["id"]}', headers=ADMIN)

        assert response.status_code == 409
        assert response.get_json()['message'] == 'Cannot delete category with existing books'

    def test_books_in_category(self, client, category, posted_book):
        body = client.get(f'/categories/{category["id"]}/books').get_json()

        assert [book['id'] for book in body['books']] == [posted_book['id']]


class TestAuthors:
    def test_create_with_profile_picture(self, client, s3_keys):
        response = client.post('/authors', data={
            'name': 'Brian Kernighan',
            'genres': ['Programming', 'Unix'],
            'profile_picture': (io.BytesIO(b'\xff\xd8\xff'), 'me.jpg', 'image/jpeg'),
        }, headers=ADMIN, content_type='multipart/form-data')

        assert response.status_code == 201
        body = response.get_json()
        assert body['genres'] == ['Programming', 'Unix']
        assert body['profile'].endswith('-me.jpg')
        assert len(s3_keys()) == 1

    def test_profile_picture_must_be_image(self, client):
        response = client.post('/authors', data={
            'name': 'Brian Kernighan',
            'profile_picture': (io.BytesIO(b'%PDF'), 'me.pdf', 'application/pdf'),
        }, headers=ADMIN, content_type='multipart/form-data')

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Profile must be an image file'

    def test_books_by_author(self, client, author, posted_book):
        body = client.get(f'/authors/{author["id"]}/books').get_json()

        assert body['books'][0]['id'] == posted_book['id']

    def test_unknown_author_books(self, client):
        assert client.get('/authors/missing/books').status_code == 404


class TestBooks:
    def test_create(self, posted_book):
        assert posted_book['quantity'] == 2
        assert posted_book['published_year'] == 2015
        assert posted_book['rating'] == 4.5
        assert posted_book['status'] == 'AVAILABLE'
        assert posted_book['cover'] and posted_book['pdf']

    def test_create_rejects_bad_cover(self, client, category, author, s3_keys):
        form = book_form(category, author, cover=(io.BytesIO(b'GIF89a'), 'cover.gif', 'image/gif'))

        response = client.post('/books', data=form, headers=ADMIN, content_type='multipart/form-data')

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Invalid cover image format. Only JPG, JPEG, and PNG are allowed'
        assert s3_keys() == []

    def test_create_requires_pdf(self, client, category, author):
        form = book_form(category, author, pdf=None)

        response = client.post('/books', data=form, headers=ADMIN, content_type='multipart/form-data')

        assert response.status_code == 400

    def test_create_validates_fields(self, client, category, author):
        form = book_form(category, author, title=None, rating='9')

        response = client.post('/books', data=form, headers=ADMIN, content_type='multipart/form-data')

        assert response.status_code == 400
        message = response.get_json()['message']
        assert 'title is required.' in message
        assert 'rating must be at most 5.' in message

    def test_create_rejects_repeated_form_field(self, client, category, author, s3_keys):
        form = book_form(category, author, isbn=['9780134190440', '9780134190441'])

        response = client.post('/books', data=form, headers=ADMIN, content_type='multipart/form-data')

        assert response.status_code == 400
        assert response.get_json()['message'] == 'isbn must be a single value.'
        assert s3_keys() == []

    def test_duplicate_isbn(self, client, category, author, posted_book):
        response = client.post('/books', data=book_form(category, author), headers=ADMIN,
                               content_type='multipart/form-data')

        assert response.status_code == 409

    def test_get_and_list(self, client, posted_book):
        assert client.get(f'/books/{posted_book["id"]}').get_json()['title'] == posted_book['title']
        assert len(client.get('/books').get_json()['books']) == 1

    def test_not_found(self, client):
        response = client.get('/books/missing')

        assert response.status_code == 404
        assert response.get_json()['message'] == 'Book with ID "missing" not found'

    def test_finders(self, client, posted_book):
        title = posted_book['title']

        assert client.get(f'/books/title/{quote(title)}').get_json()['books'][0]['id'] == posted_book['id']
        assert client.get('/books/rating/4').get_json()['books'][0]['id'] == posted_book['id']
        assert client.get('/books/rating/5').get_json()['books'] == []
        assert client.get(f'/books/isbn/{posted_book["isbn"]}').get_json()['books'][0]['id'] == posted_book['id']

    def test_search(self, client, posted_book):
        assert client.get('/books/search?query=go').get_json()['books'][0]['id'] == posted_book['id']
        assert client.get('/books/search').status_code == 400

    def test_update(self, client, posted_book):
        response = client.patch(f'/books/{posted_book["id"]}', json={'quantity': 0}, headers=ADMIN)

        assert response.status_code == 200
        assert response.get_json()['status'] == 'UNAVAILABLE'

    def test_delete(self, client, posted_book, s3_keys):
        response = client.delete(f'/books/{posted_book["id"]}', headers=ADMIN)

        assert response.status_code == 200
        assert client.get(f'/books/{posted_book["id"]}').status_code == 404
        assert s3_keys() == []


class TestBorrowing:
    def test_borrow_and_return(self, client, posted_book, period):
        start, end = period()
        url = f'/books/{posted_book["id"]}'

        borrowed = client.patch(f'{url}/borrow', json={'start_date': start, 'return_date': end}, headers=USER)
        assert borrowed.status_code == 200
        assert borrowed.get_json()['status'] == 'BORROWED'
        assert borrowed.get_json()['quantity'] == 1

        mine = client.get('/books/borrowed/me', headers=USER).get_json()
        assert [book['id'] for book in mine['books']] == [posted_book['id']]

        returned = client.post(f'{url}/return', headers=USER)
        assert returned.status_code == 200
        assert returned.get_json()['quantity'] == 2

    def test_borrow_requires_dates(self, client, posted_book):
        response = client.patch(f'/books/{posted_book["id"]}/borrow', json={}, headers=USER)

        assert response.status_code == 400
        assert response.get_json()['message'] == 'start_date is required. return_date is required.'

    def test_twice(self, client, posted_book, period):
        start, end = period()
        url = f'/books/{posted_book["id"]}/borrow'
        client.patch(url, json={'start_date': start, 'return_date': end}, headers=USER)

        response = client.patch(url, json={'start_date': start, 'return_date': end}, headers=USER)

        assert response.status_code == 400
        assert response.get_json()['reason'] == 'ALREADY_BORROWED'

    def test_return_not_borrowed(self, client, posted_book):
        response = client.post(f'/books/{posted_book["id"]}/return', headers=USER)

        assert response.status_code == 400
        assert response.get_json()['reason'] == 'NOT_BORROWED'

    def test_return_by_someone_else(self, client, posted_book, period):
        start, end = period()
        client.patch(f'/books/{posted_book["id"]}/borrow',
                     json={'start_date': start, 'return_date': end}, headers=USER)

        response = client.post(f'/books/{posted_book["id"]}/return', headers=OTHER_USER)

        assert response.status_code == 400
        assert response.get_json()['reason'] == 'NOT_BORROWER'

    def test_period_too_long(self, client, posted_book, period):
        start, end = period(days=45)

        response = client.patch(f'/books/{posted_book["id"]}/borrow',
                                json={'start_date': start, 'return_date': end}, headers=USER)

        assert response.status_code == 400
        assert response.get_json()['reason'] == 'INVALID_BORROW_PERIOD'
