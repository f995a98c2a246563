# routes/country_profiles.py
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from routes.common import owned_student, register_error_handlers
from services.phase_engine import build_phase_service

country_profiles_bp = Blueprint("country_profiles", __name__, url_prefix="/api/counselor")
register_error_handlers(country_profiles_bp, "country")


@country_profiles_bp.route("/students/<int:student_id>/countries", methods=["GET"])
@jwt_required()
def list_countries(student_id):
    service = build_phase_service()
    owned_student(service, student_id)
    return jsonify({"student_id": student_id, "countries": service.list_country_profiles(student_id)})


@country_profiles_bp.route("/students/<int:student_id>/countries", methods=["POST"])
@jwt_required()
def add_country(student_id):
    data = request.get_json(force=True) or {}
    service = build_phase_service()
    owned_student(service, student_id)

    profile, created = service.create_country_profile(student_id, data.get("country"))
    return jsonify({"created": created, "profile": profile.to_dict()}), (201 if created else 200)
