# app.py
import logging

from flask import Flask, jsonify
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from dotenv import load_dotenv
from flask_migrate import Migrate

from config import Config
from extensions import db

# ---- blueprints ----
from routes.phases import phases_bp
from routes.country_profiles import country_profiles_bp

load_dotenv()


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ---- extensions ----
    db.init_app(app)
    from models.student import Student  # noqa: F401
    from models.application import ApplicationCountry, PhaseMetadata  # noqa: F401
    from models.country_process import CountryApplicationProcess  # noqa: F401
    from models.document import Document  # noqa: F401
    from models.university import University  # noqa: F401
    from models.activity import Activity, Notification  # noqa: F401

    JWTManager(app)
    Migrate(app, db)

    # ---- CORS ----
    CORS(
        app,
        resources={
            r"/api/*": {
                "origins": app.config.get("CORS_ORIGINS") or [],
                "supports_credentials": True,
                "allow_headers": ["Content-Type", "Authorization"],
                "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            }
        },
    )

    # ---- blueprints ----
    app.register_blueprint(phases_bp)
    app.register_blueprint(country_profiles_bp)

    # ---- health ----
    @app.get("/")
    def health():
        return jsonify({"status": "ok"})

    return app
