# config.py
import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
INSTANCE_DIR = os.path.join(BASE_DIR, "instance")
os.makedirs(INSTANCE_DIR, exist_ok=True)  # sqlite file lives here

DB_PATH = os.path.join(INSTANCE_DIR, "phase_tracker.sqlite3")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    # absolute path + 3 slashes
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "SQLALCHEMY_DATABASE_URI",
        f"sqlite:///{DB_PATH.replace(os.sep, '/')}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-jwt")
    JSON_AS_ASCII = False

    CORS_ORIGINS = [
        o.strip()
        for o in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:8848,http://127.0.0.1:8848",
        ).split(",")
        if o.strip()
    ]

    # How many times a completed phase may be reopened before it locks
    PHASE_MAX_REOPEN_ALLOWED = int(os.getenv("PHASE_MAX_REOPEN_ALLOWED", "2"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
