"""
Swagger Configuration
Global flask-restx Api for the advisor service. URLs.add_namespaces()
attaches the namespaces and create_app() binds the Api to each app.

The interactive docs live at SWAGGER_DOC_PATH; production hides them.
"""

# Python Packages
from flask_restx import Api

# Constants
from ..base import constants


SWAGGER_DOC_PATH = "/swagger/"





def swagger_doc_path(app_env: str = constants.APP_ENV):
    """ Docs path for *app_env*, or False when the UI is hidden... """

    if app_env == "production":
        return False
    return SWAGGER_DOC_PATH



api = Api(
    title = constants.SWAGGER_APP_PROPS['name'],
    version = constants.SWAGGER_APP_PROPS['version'],
    description = constants.SWAGGER_APP_PROPS['description'],
    doc = swagger_doc_path()
)
