# app/utils/clock.py
from datetime import datetime
from flask import current_app


def now():
    """Wall-clock time for schedule math. Tests swap app.config["CLOCK"] for a fixed one."""
    return current_app.config.get("CLOCK", datetime.now)()
