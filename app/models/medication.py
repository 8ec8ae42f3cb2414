from app.extensions import db
from app.utils import clock
from app.utils.parsing import parse_time_schedule


class Medication(db.Model):
    __tablename__ = "medications"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    patient_id = db.Column(db.Integer, db.ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)

    drug_name = db.Column(db.String(120), nullable=False)
    dosage = db.Column(db.String(60), nullable=True)        # e.g., "500 mg"
    time_schedule = db.Column(db.String(120), nullable=False)  # e.g., "08:00, 20:00"
    # when the current time_schedule took effect; doses before it get no reminder
    effective_from = db.Column(db.DateTime, nullable=True, default=lambda: clock.now())

    patient = db.relationship("Patient", back_populates="medications")
    reminders = db.relationship(
        "Reminder", back_populates="medication", cascade="all,delete-orphan"
    )

    def dose_times(self):
        return parse_time_schedule(self.time_schedule)

    def to_dict(self):
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "drug_name": self.drug_name,
            "dosage": self.dosage,
            "time_schedule": self.time_schedule,
            "effective_from": self.effective_from.isoformat(sep=" ") if self.effective_from else None,
        }
