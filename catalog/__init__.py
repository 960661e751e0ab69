import logging
import os

from flask import Flask, jsonify
from flask_login import LoginManager
from werkzeug.exceptions import HTTPException, Unauthorized

login_manager = LoginManager()

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    app = Flask(__name__)

    # Configuration
    from catalog.config import config
    config_name = config_name or os.environ.get('FLASK_CONFIG', 'default')
    app.config.from_object(config[config_name])

    configure_logging(app)

    # Initialize extensions
    login_manager.init_app(app)

    from catalog.utils.decorators import load_user_from_request

    @login_manager.request_loader
    def load_user(request):
        return load_user_from_request(request)

    @login_manager.unauthorized_handler
    def unauthorized():
        raise Unauthorized('Authentication required')

    register_error_handlers(app)

    # Register blueprints
    from catalog.routes.main import main_bp
    from catalog.routes.books import books_bp
    from catalog.routes.authors import authors_bp
    from catalog.routes.categories import categories_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(books_bp, url_prefix='/books')
    app.register_blueprint(authors_bp, url_prefix='/authors')
    app.register_blueprint(categories_bp, url_prefix='/categories')

    return app


def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    app.logger.setLevel(level)


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        body = {
            'status_code': error.code,
            'error': error.name,
            'message': error.description,
        }
        reason = getattr(error, 'reason', None)
        if reason:
            body['reason'] = reason
        return jsonify(body), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_exception(error):
        logger.exception('Unhandled error: %s', error)
        return jsonify({
            'status_code': 500,
            'error': 'Internal Server Error',
            'message': 'An unexpected error occurred',
        }), 500
