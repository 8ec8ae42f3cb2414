# app/models/__init__.py
from .user import User
from .patient import Patient
from .caregiver import Caregiver
from .family_member import FamilyMember
from .medication import Medication
from .appointment import Appointment
from .reminder import Reminder
