# routes/phases.py
"""Counselor-facing phase endpoints: update, reopen, metadata, requirements, catalog."""
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from routes.common import current_user_id, owned_student, register_error_handlers
from services.phase_engine import build_phase_service

phases_bp = Blueprint("phases", __name__, url_prefix="/api/counselor")
register_error_handlers(phases_bp, "phase")

# request body keys that are not phase payload
_BODY_KEYS = ("country", "currentPhase", "remarks")


def _outcome_response(outcome):
    return jsonify(outcome.to_dict()), (200 if outcome.code is None else 400)


@phases_bp.route("/students/<int:student_id>/phase", methods=["PUT"])
@jwt_required()
def update_phase(student_id):
    data = request.get_json(force=True) or {}
    service = build_phase_service()
    owned_student(service, student_id)

    extra = {k: v for k, v in data.items() if k not in _BODY_KEYS}
    outcome = service.request_phase_transition(
        student_id,
        data.get("country"),
        data.get("currentPhase"),
        extra_payload=extra,
        actor_id=current_user_id(),
        remarks=data.get("remarks"),
    )
    return _outcome_response(outcome)


@phases_bp.route("/students/<int:student_id>/phase/reopen", methods=["POST"])
@jwt_required()
def reopen_phase(student_id):
    data = request.get_json(force=True) or {}
    service = build_phase_service()
    owned_student(service, student_id)

    outcome = service.request_phase_reopen(
        student_id, data.get("country"), data.get("phaseName"), actor_id=current_user_id()
    )
    return _outcome_response(outcome)


@phases_bp.route("/students/<int:student_id>/phase-metadata", methods=["GET"])
@jwt_required()
def phase_metadata(student_id):
    service = build_phase_service()
    owned_student(service, student_id)
    country = request.args.get("country")
    return jsonify({
        "student_id": student_id,
        "country": country,
        "metadata": service.get_phase_metadata(student_id, country),
        "tracking_enabled": service.store.tracking_enabled,
    })


@phases_bp.route("/students/<int:student_id>/phase-requirements", methods=["GET"])
@jwt_required()
def phase_requirements(student_id):
    service = build_phase_service()
    owned_student(service, student_id)
    return jsonify(service.get_phase_requirements(
        student_id, request.args.get("country"), request.args.get("phase")
    ))


@phases_bp.route("/countries/<country>/phases", methods=["GET"])
@jwt_required()
def country_phases(country):
    return jsonify(build_phase_service().get_catalog(country).to_dict())
