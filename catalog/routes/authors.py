from flask import Blueprint, jsonify, request

from catalog.exceptions import InvalidRequest
from catalog.routes import clean_text, page_args, request_data, uploaded_file
from catalog.services.authors import AuthorManager
from catalog.services.books import BookManager
from catalog.utils.decorators import admin_required

authors_bp = Blueprint('authors', __name__)

TEXT_FIELDS = ('name', 'biography', 'birth_date', 'nationality', 'email')


def _author_payload(data, partial=False):
    payload = clean_text(data, TEXT_FIELDS)
    if not partial and 'name' not in payload:
        raise InvalidRequest('name is required.')

    genres = data.get('genres')
    if isinstance(genres, str):
        genres = [genres]
    if genres:
        payload['genres'] = [genre.strip() for genre in genres if str(genre).strip()]

    if data.get('social_media'):
        payload['social_media'] = data['social_media']
    return payload


def _profile_picture():
    return uploaded_file(
        'profile_picture',
        lambda mimetype: mimetype.startswith('image/'),
        'Profile must be an image file'
    )


@authors_bp.route('', methods=['POST'])
@admin_required
def create_author():
    """Add a new author, optionally with a profile picture"""
    author = AuthorManager().create(_author_payload(request_data()), profile_picture=_profile_picture())
    return jsonify(author), 201


@authors_bp.route('', methods=['GET'])
def list_authors():
    limit, cursor = page_args()
    return jsonify(AuthorManager().find_all(limit=limit, cursor=cursor))


@authors_bp.route('/search')
def search_authors():
    """Exact name lookup"""
    name = request.args.get('name', '').strip()
    if not name:
        raise InvalidRequest('name is required.')
    limit, cursor = page_args()
    return jsonify(AuthorManager().find_by_name(name, limit=limit, cursor=cursor))


@authors_bp.route('/<author_id>', methods=['GET'])
def get_author(author_id):
    return jsonify(AuthorManager().find_one(author_id))


@authors_bp.route('/<author_id>/books')
def author_books(author_id):
    """Books written by an author"""
    AuthorManager().find_one(author_id)
    limit, cursor = page_args()
    return jsonify(BookManager().find_by_author(author_id, limit=limit, cursor=cursor))


@authors_bp.route('/<author_id>', methods=['PATCH'])
@admin_required
def update_author(author_id):
    payload = _author_payload(request_data(), partial=True)
    return jsonify(AuthorManager().update(author_id, payload, profile_picture=_profile_picture()))


@authors_bp.route('/<author_id>', methods=['DELETE'])
@admin_required
def delete_author(author_id):
    return jsonify(AuthorManager().remove(author_id))
