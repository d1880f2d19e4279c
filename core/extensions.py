from core.imports import Bcrypt, Swagger, JWTManager, SQLAlchemy, CORS, Migrate, Mail

SWAGGER_TEMPLATE = {
    "info": {
        "title": "T-Shirt Store API",
        "description": "Catalogue, session cart, checkout and admin back-office",
    },
    "securityDefinitions": {
        "Bearer": {"type": "apiKey", "name": "Authorization", "in": "header"}
    },
}

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
bcrypt = Bcrypt()
mail = Mail()
cors = CORS()
swagger = Swagger(template=SWAGGER_TEMPLATE)
