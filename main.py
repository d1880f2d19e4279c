import logging

from core.imports import jsonify, Flask
from core.config import Config
from core.extensions import db, jwt, swagger, cors, bcrypt, migrate, mail
from core.errors import register_error_handlers
from core.log import configure_logging
import core.security  # noqa: F401  registers the JWT error callbacks
from routes.products import products_bp, seed_products
from routes.flashDeals import flash_deals_bp
from routes.cart import cart_bp
from routes.orders import orders_bp
from routes.auth import auth_bp, seed_demo_admin
from routes.adminProducts import admin_products_bp
from routes.adminUsers import admin_users_bp
from routes.adminOrders import admin_orders_bp
from routes.adminCustomers import admin_customers_bp
from routes.adminFlashDeals import admin_flash_deals_bp
from routes.adminStats import admin_stats_bp

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    bcrypt.init_app(app)
    mail.init_app(app)
    swagger.init_app(app)
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config["FRONTEND_URL"]}},
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "x-session-id", "Authorization"],
    )
    register_error_handlers(app)

    app.register_blueprint(products_bp)
    app.register_blueprint(flash_deals_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_products_bp)
    app.register_blueprint(admin_users_bp)
    app.register_blueprint(admin_orders_bp)
    app.register_blueprint(admin_customers_bp)
    app.register_blueprint(admin_flash_deals_bp)
    app.register_blueprint(admin_stats_bp)

    @app.route('/api/health')
    def health():
        return jsonify({"status": "ok", "message": "Server is running"}), 200

    return app


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()

        seed_demo_admin()
        created = seed_products()
        if created:
            logger.info("Products created: %s", ", ".join(created))

    app.run(debug=True, port=3001)
