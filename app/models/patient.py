from datetime import datetime
from app.extensions import db


class Patient(db.Model):
    __tablename__ = "patients"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(120), nullable=False)
    contact = db.Column(db.String(120), nullable=True)
    medical_history = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    medications = db.relationship(
        "Medication", back_populates="patient", cascade="all,delete-orphan"
    )
    appointments = db.relationship(
        "Appointment", back_populates="patient", cascade="all,delete-orphan"
    )
    reminders = db.relationship(
        "Reminder", back_populates="patient", cascade="all,delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "contact": self.contact,
            "medical_history": self.medical_history,
        }
