from flask import Blueprint, jsonify, request

from catalog.exceptions import InvalidRequest
from catalog.routes import clean_text, page_args, request_data
from catalog.services.books import BookManager
from catalog.services.categories import CategoryManager
from catalog.utils.decorators import admin_required

categories_bp = Blueprint('categories', __name__)


@categories_bp.route('', methods=['POST'])
@admin_required
def create_category():
    """Add a new category"""
    payload = clean_text(request_data(), ('name', 'description'))
    if 'name' not in payload:
        raise InvalidRequest('name is required.')
    return jsonify(CategoryManager().create(payload)), 201


@categories_bp.route('', methods=['GET'])
def list_categories():
    limit, cursor = page_args()
    return jsonify(CategoryManager().find_all(limit=limit, cursor=cursor))


@categories_bp.route('/search')
def search_categories():
    name = request.args.get('name', '').strip()
    if not name:
        raise InvalidRequest('name is required.')
    limit, cursor = page_args()
    return jsonify(CategoryManager().find_by_name(name, limit=limit, cursor=cursor))


@categories_bp.route('/<category_id>', methods=['GET'])
def get_category(category_id):
    return jsonify(CategoryManager().find_one(category_id))


@categories_bp.route('/<category_id>/books')
def category_books(category_id):
    """Books filed under a category"""
    CategoryManager().find_one(category_id)
    limit, cursor = page_args()
    return jsonify(BookManager().find_by_category(category_id, limit=limit, cursor=cursor))


@categories_bp.route('/<category_id>', methods=['PATCH'])
@admin_required
def update_category(category_id):
    payload = clean_text(request_data(), ('name', 'description'))
    return jsonify(CategoryManager().update(category_id, payload))


@categories_bp.route('/<category_id>', methods=['DELETE'])
@admin_required
def delete_category(category_id):
    return jsonify(CategoryManager().remove(category_id))
