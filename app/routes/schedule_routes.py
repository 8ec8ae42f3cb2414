# app/routes/schedule_routes.py
from flask import Blueprint
from app.controllers import schedule_controller

schedule_bp = Blueprint("schedule", __name__, url_prefix="/api/v1")

schedule_bp.route("/schedule/<int:patient_id>", methods=["GET"])(schedule_controller.get_patient_schedule)
schedule_bp.route("/caregivers/<int:caregiver_id>/schedule", methods=["GET"])(schedule_controller.get_caregiver_schedule)
schedule_bp.route("/family/<int:family_id>/schedule", methods=["GET"])(schedule_controller.get_family_schedule)
schedule_bp.route("/reminders/<int:reminder_id>/done", methods=["POST"])(schedule_controller.mark_done)
schedule_bp.route("/predict-adherence/<int:patient_id>", methods=["GET"])(schedule_controller.predict_adherence)
schedule_bp.route("/reports", methods=["GET"])(schedule_controller.get_reports)
