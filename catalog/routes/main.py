from flask import Blueprint, jsonify

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    """Health check"""
    return jsonify({'message': 'Library catalog API is running'})
