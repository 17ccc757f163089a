from flask import Flask, jsonify
from pathlib import Path
from .extensions import db, login_manager
from .errors import register_error_handlers


def create_app(config_class=None):
    app = Flask(__name__, instance_path=str(Path(__file__).resolve().parents[2] / "instance"))

    if config_class is None:
        from .config import Config
        config_class = Config
    app.config.from_object(config_class)

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") and \
            ":memory:" not in app.config["SQLALCHEMY_DATABASE_URI"]:
        Path(app.instance_path).mkdir(parents=True, exist_ok=True)

    # init extensions
    db.init_app(app)
    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Unauthorized"}), 401

    from . import models

    # register blueprints
    from .auth import auth_bp
    from .api import api_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(api_bp, url_prefix="/api")
    register_error_handlers(app)

    # a failure here aborts startup
    with app.app_context():
        if app.config.get("RESET_DB_ON_START", True):
            from .seed import reset_database
            reset_database(app)
        else:
            db.create_all()

    return app
