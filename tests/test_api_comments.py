from datetime import datetime, timedelta

from extensions import db
from models.comment import Comment


def test_add_and_list_comments_newest_first(client, upload_file, app):
    upload_id = upload_file().get_json()["id"]

    first = client.post(f"/api/uploads/{upload_id}/comments", json={"name": "Ana", "comment": "first"})
    second = client.post(f"/api/uploads/{upload_id}/comments", json={"comment": "second"})
    assert first.status_code == 200
    assert second.status_code == 200

    with app.app_context():
        older = db.session.get(Comment, first.get_json()["id"])
        older.created_at = datetime.utcnow() - timedelta(hours=1)
        db.session.commit()

    items = client.get(f"/api/uploads/{upload_id}/comments").get_json()
    assert [item["comment"] for item in items] == ["second", "first"]
    assert items[1]["name"] == "Ana"
    assert items[0]["name"] == ""
    assert items[0]["created_at"].endswith("Z")


def test_comment_is_required(client, upload_file):
    upload_id = upload_file().get_json()["id"]

    response = client.post(f"/api/uploads/{upload_id}/comments", json={"name": "Ana", "comment": "   "})
    assert response.status_code == 400
    assert response.get_json()["error"] == "comment is required"


def test_long_name_and_comment_are_clamped(client, upload_file):
    upload_id = upload_file().get_json()["id"]

    response = client.post(
        f"/api/uploads/{upload_id}/comments",
        json={"name": "n" * 500, "comment": "c" * 5000},
    )
    assert response.status_code == 200

    item = client.get(f"/api/uploads/{upload_id}/comments").get_json()[0]
    assert len(item["name"]) == 120
    assert len(item["comment"]) == 4000


def test_comments_on_unknown_upload_return_404(client):
    assert client.get("/api/uploads/77/comments").status_code == 404
    assert client.post("/api/uploads/77/comments", json={"comment": "hello"}).status_code == 404


def test_comments_accept_form_encoded_body(client, upload_file):
    upload_id = upload_file().get_json()["id"]

    response = client.post(f"/api/uploads/{upload_id}/comments", data={"comment": "from a form"})
    assert response.status_code == 200
    assert "id" in response.get_json()
