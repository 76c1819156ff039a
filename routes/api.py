"""
Program: «Digital Residue» – file-sharing portal API.
Module: routes/api.py – JSON API routes under /api.
"""

from flask import Blueprint, current_app, jsonify, request, send_file
from flask_babel import gettext as _

from utils.api_response import api_error, api_message
from utils.comment_service import add_comment, list_comments
from utils.errors import UploadServiceError
from utils.mutation_service import delete_upload, like_upload, open_download, update_upload
from utils.query_service import get_upload, leaderboard, list_uploads, search_uploads
from utils.upload_service import create_upload


def _blob_store():
    return current_app.extensions["blob_store"]


def _override_code() -> str | None:
    return current_app.config.get("OPERATOR_OVERRIDE_CODE") or None


def _payload() -> dict:
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return request.form.to_dict()


def _service_error(exc: UploadServiceError):
    return api_error(exc.code, _(exc.message), status=exc.status)


def register_routes(app):
    bp = Blueprint("api", __name__, url_prefix="/api")

    @bp.get("/uploads")
    def uploads_index():
        return jsonify(list_uploads())

    @bp.get("/uploads/<int:upload_id>")
    def uploads_show(upload_id: int):
        try:
            return jsonify(get_upload(upload_id))
        except UploadServiceError as exc:
            return _service_error(exc)

    @bp.get("/search")
    def search():
        # Filters are matched as given; only a missing or empty value means no filter.
        q = request.args.get("q") or None
        tag = request.args.get("tag") or None
        return jsonify(search_uploads(q=q, tag=tag))

    @bp.get("/leaderboard")
    def leaderboard_index():
        try:
            return jsonify(leaderboard(request.args.get("month")))
        except UploadServiceError as exc:
            return _service_error(exc)

    @bp.post("/upload")
    def upload_file():
        """Accept one image plus metadata. The secret code is returned only here."""
        try:
            result = create_upload(request.files.get("file"), request.form, _blob_store())
        except UploadServiceError as exc:
            return _service_error(exc)

        return api_message(_("File uploaded successfully"), **result)

    @bp.post("/like/<int:upload_id>")
    def like(upload_id: int):
        try:
            like_upload(upload_id)
        except UploadServiceError as exc:
            return _service_error(exc)
        return api_message(_("File liked successfully"))

    @bp.get("/download/<int:upload_id>")
    def download(upload_id: int):
        try:
            path, original_name = open_download(upload_id, _blob_store())
        except UploadServiceError as exc:
            return _service_error(exc)

        return send_file(path, as_attachment=True, download_name=original_name)

    @bp.put("/uploads/<int:upload_id>")
    def uploads_update(upload_id: int):
        payload = _payload()
        try:
            update_upload(upload_id, payload, override_code=_override_code())
        except UploadServiceError as exc:
            return _service_error(exc)
        return api_message(_("Updated successfully"))

    @bp.delete("/uploads/<int:upload_id>")
    def uploads_delete(upload_id: int):
        payload = _payload()
        secret_code = payload.get("secret_code") or request.args.get("secret_code")
        try:
            delete_upload(upload_id, secret_code, _blob_store(), override_code=_override_code())
        except UploadServiceError as exc:
            return _service_error(exc)
        return api_message(_("Deleted successfully"))

    @bp.get("/uploads/<int:upload_id>/comments")
    def comments_index(upload_id: int):
        try:
            return jsonify(list_comments(upload_id))
        except UploadServiceError as exc:
            return _service_error(exc)

    @bp.post("/uploads/<int:upload_id>/comments")
    def comments_create(upload_id: int):
        payload = _payload()
        try:
            return jsonify(add_comment(upload_id, payload))
        except UploadServiceError as exc:
            return _service_error(exc)

    app.register_blueprint(bp)
