# routes/common.py
"""Helpers shared by the counselor blueprints."""
from flask import current_app, jsonify
from flask_jwt_extended import get_jwt_identity
from sqlalchemy.exc import SQLAlchemyError

from services.errors import PhaseEngineError, StudentNotFound


def current_user_id():
    ident = get_jwt_identity()
    if isinstance(ident, dict) and "id" in ident:
        return int(ident["id"])
    if isinstance(ident, (str, int)):
        try:
            return int(ident)
        except ValueError:
            return None
    return None


def err(message: str, status: int = 400, **extra):
    body = {"error": message}
    body.update(extra)
    return jsonify(body), status


def owned_student(service, student_id):
    """The student, when it belongs to the calling counselor; raises StudentNotFound otherwise."""
    student = service.profiles.get_student(student_id)
    if student is None or student.counselor_id != current_user_id():
        raise StudentNotFound(student_id)
    return student


def register_error_handlers(bp, tag: str):
    @bp.errorhandler(PhaseEngineError)
    def _engine_error(e):
        return err(e.message, e.status_code)

    @bp.errorhandler(SQLAlchemyError)
    def _storage_error(e):
        current_app.logger.exception(f"[{tag}] storage error: {e}")
        return err("try again later", 503)
