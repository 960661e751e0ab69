from functools import wraps
from flask import current_app
from flask_login import current_user
from werkzeug.exceptions import Forbidden, Unauthorized

from catalog.models.user import CatalogUser


def load_user_from_request(request):
    """Build the caller's identity from the headers the gateway authorizer sets"""
    config = current_app.config
    user_id = (request.headers.get(config['AUTH_USER_HEADER']) or '').strip()
    if not user_id:
        return None
    raw_groups = request.headers.get(config['AUTH_GROUPS_HEADER'], '')
    groups = [group.strip() for group in raw_groups.split(',') if group.strip()]
    return CatalogUser(user_id, groups, admin_group=config['ADMIN_GROUP'])


def admin_required(f):
    """Decorator to require admin role"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            raise Unauthorized('Authentication required')
        if not current_user.is_admin():
            raise Forbidden('Admin access required')
        return f(*args, **kwargs)
    return decorated_function
