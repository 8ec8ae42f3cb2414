from app.extensions import db
from app.utils.parsing import parse_assigned_patients


class FamilyMember(db.Model):
    __tablename__ = "family_members"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(120), nullable=False)
    contact = db.Column(db.String(120), nullable=True)
    assigned_patients = db.Column(db.Text, nullable=True)

    def patient_ids(self):
        return parse_assigned_patients(self.assigned_patients)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "contact": self.contact,
            "assigned_patients": self.assigned_patients,
        }
