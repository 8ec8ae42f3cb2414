# app/helpers.py
def api_response(success, message, data=None, status_code=200):
    return {
        "success": success,
        "message": message,
        "data": data
    }, status_code


def require_fields(data, fields):
    """Return the names in `fields` that are missing or blank in `data`."""
    missing = []
    for f in fields:
        value = data.get(f)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(f)
    return missing
