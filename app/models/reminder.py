from datetime import datetime
from app.extensions import db

PENDING = "PENDING"
DONE = "DONE"
MISSED = "MISSED"
STATUSES = (PENDING, DONE, MISSED)


class Reminder(db.Model):
    __tablename__ = "reminders"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    patient_id = db.Column(db.Integer, db.ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)
    medication_id = db.Column(db.Integer, db.ForeignKey("medications.id", ondelete="CASCADE"), nullable=False)

    alert_time = db.Column(db.DateTime, nullable=False)
    # PENDING -> DONE (user) or PENDING -> MISSED (sweep); both terminal
    status = db.Column(db.String(10), nullable=False, default=PENDING, server_default=PENDING)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    patient = db.relationship("Patient", back_populates="reminders")
    medication = db.relationship("Medication", back_populates="reminders")

    __table_args__ = (
        db.UniqueConstraint("medication_id", "alert_time", name="uq_reminders_medication_alert"),
        db.Index("ix_reminders_status_alert", "status", "alert_time"),
        db.Index("ix_reminders_patient_alert", "patient_id", "alert_time"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "medication_id": self.medication_id,
            "alert_time": self.alert_time.isoformat(sep=" "),
            "status": self.status,
        }
