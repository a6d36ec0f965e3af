"""
Application factory

Flask CLI: FLASK_APP="advisor.app:create_app" flask run
"""

# Python Packages
from flask import Flask
from flask_cors import CORS
from flask_migrate import Migrate

# Local Imports
from .base import constants
from .config.swagger import api
from .config.urls import URLs
from .config.database import init_db, db

# Services
from .conversation.handler import ENGINE_EXTENSION_KEY
from .conversation.services.conversation_engine import ConversationEngine
from .conversation.services.conversation_service import ConversationService





def create_app(config_overrides: dict = None, engine: ConversationEngine = None):
    """
    Application Factory

    Args:
        config_overrides: Values applied to app.config before extensions load
                          (e.g. SQLALCHEMY_DATABASE_URI for tests).
        engine:           Pre-built ConversationEngine; one is created otherwise.
    """

    # App Object
    app = Flask(__name__)
    app.config["DEBUG"] = constants.APP_DEBUG
    app.config["SECRET_KEY"] = constants.APP_SECRET_KEY

    if config_overrides:
        app.config.update(config_overrides)

    # Initialize Database
    init_db(app)

    # Register models
    from . import models

    # Initialize Migration
    Migrate(app, db)

    # Enable CORS
    CORS(app)

    # Register Namespaces (before init_app so every app gets the routes)
    URLs.add_namespaces()

    # Initialize Swagger
    api.init_app(app)

    # Conversation engine: one per app, shared by all requests
    app.extensions[ENGINE_EXTENSION_KEY] = engine or ConversationEngine.create(
        message_store = ConversationService()
    )

    return app



if __name__ == "__main__":
    create_app().run(host = "0.0.0.0", port = 5000)
