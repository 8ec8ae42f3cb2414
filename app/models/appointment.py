from app.extensions import db


class Appointment(db.Model):
    __tablename__ = "appointments"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    patient_id = db.Column(db.Integer, db.ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    caregiver_id = db.Column(db.Integer, db.ForeignKey("caregivers.id", ondelete="SET NULL"), nullable=True, index=True)

    date_time = db.Column(db.DateTime, nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)

    patient = db.relationship("Patient", back_populates="appointments")
    caregiver = db.relationship("Caregiver", back_populates="appointments")

    def to_dict(self):
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "caregiver_id": self.caregiver_id,
            "date_time": self.date_time.isoformat(sep=" ") if self.date_time else None,
            "description": self.description,
        }
