# app/routes/admin_routes.py
from flask import Blueprint
from app.controllers import admin_controller

admin_bp = Blueprint("admin", __name__, url_prefix="/api/v1")

admin_bp.route("/patients", methods=["GET"])(admin_controller.list_patients)
admin_bp.route("/patients", methods=["POST"])(admin_controller.create_patient)
admin_bp.route("/patients/<int:patient_id>", methods=["PUT"])(admin_controller.update_patient)
admin_bp.route("/patients/<int:patient_id>", methods=["DELETE"])(admin_controller.delete_patient)

admin_bp.route("/caregivers", methods=["GET"])(admin_controller.list_caregivers)
admin_bp.route("/caregivers", methods=["POST"])(admin_controller.create_caregiver)
admin_bp.route("/caregivers/<int:caregiver_id>", methods=["PUT"])(admin_controller.update_caregiver)
admin_bp.route("/caregivers/<int:caregiver_id>", methods=["DELETE"])(admin_controller.delete_caregiver)

admin_bp.route("/family", methods=["GET"])(admin_controller.list_family)
admin_bp.route("/family", methods=["POST"])(admin_controller.create_family_member)
admin_bp.route("/family/<int:family_id>", methods=["PUT"])(admin_controller.update_family_member)
admin_bp.route("/family/<int:family_id>", methods=["DELETE"])(admin_controller.delete_family_member)

admin_bp.route("/appointments", methods=["GET"])(admin_controller.list_appointments)
admin_bp.route("/appointments", methods=["POST"])(admin_controller.create_appointment)
admin_bp.route("/appointments/<int:appointment_id>", methods=["DELETE"])(admin_controller.delete_appointment)

admin_bp.route("/medications", methods=["GET"])(admin_controller.list_medications)
admin_bp.route("/medications", methods=["POST"])(admin_controller.create_medication)
admin_bp.route("/medications/<int:medication_id>", methods=["PUT"])(admin_controller.update_medication)
admin_bp.route("/medications/<int:medication_id>", methods=["DELETE"])(admin_controller.delete_medication)
