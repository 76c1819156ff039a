from flask import jsonify


def api_message(message: str, status: int = 200, **extra):
    payload = {"message": message}
    payload.update(extra)
    return jsonify(payload), status


def api_error(code: str, message: str, status: int = 400, details=None):
    payload = {
        "error": message,
        "code": code,
    }
    if details is not None:
        payload["details"] = details
    return jsonify(payload), status
