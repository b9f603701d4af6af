from flask import jsonify


def success_response(data=None, message=None, status=200, **extra):
    resp = {"success": True}
    if data is not None:
        resp["data"] = data
    if message:
        resp["message"] = message
    resp.update(extra)
    return jsonify(resp), status


def error_response(code, message, details=None, status=400):
    err = {
        "success": False,
        "message": message,
        "error": {
            "code": code,
            "message": message,
            "details": details or {}
        }
    }
    return jsonify(err), status
