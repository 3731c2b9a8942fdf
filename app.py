import logging

from flask import Flask
from flask_cors import CORS

from config import Config


def create_app(config_class=Config):
    """Build the toolpath API app from a config object."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # The preview page may be served from another origin
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # Blueprints
    from web.routes.api import api_bp

    app.register_blueprint(api_bp, url_prefix='/api')

    return app


# Module-level app for gunicorn and `flask run`
app = create_app()

if __name__ == '__main__':
    app.run(debug=True, port=5001)
