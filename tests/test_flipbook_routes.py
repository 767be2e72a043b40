from datetime import datetime, timedelta

from sqlmodel import Session

from flipbook.database import engine
from flipbook.models.flipbook import Flipbook

from conftest import make_pdf, page_width


def set_fields(flipbook_id, **fields):
    with Session(engine) as s:
        flipbook = s.get(Flipbook, flipbook_id)
        for name, value in fields.items():
            setattr(flipbook, name, value)
        s.add(flipbook)
        s.commit()


def page_url(token, page):
    return f"/api/flipbook/{token}/page/{page}"


# -------- Registration --------

def test_register_trial_flipbook(client, upload_flipbook, sent_emails):
    body = upload_flipbook(page_count=10)

    assert body["message"] == "Flipbook created successfully and email sent"
    assert body["isTrial"] is True
    assert body["emailSent"] is True
    assert body["totalPages"] == 10
    assert body["expiresAt"] is not None
    assert len(body["accessToken"]) == 64
    assert body["flipbookLink"].endswith(body["accessToken"])
    assert body["user"] == {"firstname": "Ada", "lastname": "Reader", "email": "reader@example.com"}

    recipients = [mail["to"] for mail in sent_emails]
    assert "reader@example.com" in recipients
    assert "owner@flipbook.test" in recipients


def test_register_admin_upload_never_expires(upload_flipbook):
    body = upload_flipbook(email="owner@flipbook.test")

    assert body["isTrial"] is False
    assert body["expiresAt"] is None


def test_register_reports_email_failure(client, monkeypatch):
    from flipbook.services import email_service

    monkeypatch.setattr(email_service, "send_email", lambda to, subject, html: False)

    res = client.post(
        "/api/flipbook/register",
        data={"firstname": "Ada", "lastname": "Reader", "email": "reader@example.com"},
        files={"pdf": ("book.pdf", make_pdf(2), "application/pdf")},
    )

    assert res.status_code == 201
    assert res.json()["emailSent"] is False
    assert res.json()["message"] == "Flipbook created successfully but email failed"


def test_register_missing_fields(client):
    res = client.post(
        "/api/flipbook/register",
        data={"firstname": "Ada", "email": "reader@example.com"},
        files={"pdf": ("book.pdf", make_pdf(2), "application/pdf")},
    )

    assert res.status_code == 400
    assert res.json()["message"] == "All fields are required"


def test_register_requires_pdf(client):
    res = client.post(
        "/api/flipbook/register",
        data={"firstname": "Ada", "lastname": "Reader", "email": "reader@example.com"},
    )

    assert res.status_code == 400
    assert res.json()["message"] == "PDF file is required"


def test_register_rejects_other_file_types(client):
    res = client.post(
        "/api/flipbook/register",
        data={"firstname": "Ada", "lastname": "Reader", "email": "reader@example.com"},
        files={"pdf": ("photo.png", b"\x89PNG....", "image/png")},
    )

    assert res.status_code == 400
    assert res.json()["message"] == "Only PDF files are allowed"


def test_register_rejects_invalid_email(client):
    res = client.post(
        "/api/flipbook/register",
        data={"firstname": "Ada", "lastname": "Reader", "email": "nope"},
        files={"pdf": ("book.pdf", make_pdf(2), "application/pdf")},
    )

    assert res.status_code == 400
    assert res.json()["message"] == "Invalid email address"


def test_register_corrupt_pdf(client):
    res = client.post(
        "/api/flipbook/register",
        data={"firstname": "Ada", "lastname": "Reader", "email": "reader@example.com"},
        files={"pdf": ("book.pdf", b"not really a pdf", "application/pdf")},
    )

    assert res.status_code == 500
    assert res.json()["message"] == "Failed to process PDF"


# -------- Viewer --------

def test_page_miss_then_hit(client, upload_flipbook):
    token = upload_flipbook(page_count=10)["accessToken"]

    first = client.get(page_url(token, 3))
    second = client.get(page_url(token, 3))

    assert first.status_code == 200
    assert first.headers["content-type"] == "application/pdf"
    assert first.headers["cache-control"] == "private, max-age=600"
    assert "public" not in second.headers["cache-control"]
    assert first.headers["x-cache"] == "MISS"
    assert second.headers["x-cache"] == "HIT"
    assert first.content == second.content
    assert page_width(first.content) == 103


def test_page_out_of_range(client, upload_flipbook):
    token = upload_flipbook(page_count=10)["accessToken"]

    for page in (0, 11):
        res = client.get(page_url(token, page))
        assert res.status_code == 404
        assert res.json()["message"] == "Page not found"


def test_page_number_must_be_integer(client, upload_flipbook):
    token = upload_flipbook(page_count=2)["accessToken"]

    assert client.get(page_url(token, "first")).status_code == 400


def test_unknown_token(client):
    token = "0" * 64

    for url in (page_url(token, 1), f"/api/flipbook/{token}/metadata", f"/api/flipbook/verify/{token}"):
        res = client.get(url)
        assert res.status_code == 404
        assert res.json()["message"] == "Flipbook not found"


def test_metadata(client, upload_flipbook):
    body = upload_flipbook(page_count=4)

    res = client.get(f"/api/flipbook/{body['accessToken']}/metadata")

    assert res.status_code == 200
    data = res.json()
    assert data["flipbookId"] == body["flipbookId"]
    assert data["totalPages"] == 4
    assert data["paymentStatus"] == "pending"
    assert data["isActive"] is True
    assert data["userData"]["email"] == "reader@example.com"
    assert data["server"]["flipbookLink"] == body["flipbookLink"]
    assert data["accessToken"] == body["accessToken"]


def test_verify_counts_each_view(client, upload_flipbook):
    token = upload_flipbook()["accessToken"]

    client.get(f"/api/flipbook/verify/{token}")
    res = client.get(f"/api/flipbook/verify/{token}")

    assert res.status_code == 200
    assert res.json()["message"] == "Access granted"
    assert res.json()["flipbook"]["accessCount"] == 2


def test_expired_flipbook_is_forbidden(client, upload_flipbook):
    body = upload_flipbook()
    set_fields(body["flipbookId"], expires_at=datetime.utcnow() - timedelta(minutes=1))

    for url in (page_url(body["accessToken"], 1), f"/api/flipbook/verify/{body['accessToken']}"):
        res = client.get(url)
        assert res.status_code == 403
        assert res.json()["message"] == "Flipbook expired"


# -------- Admin transitions seen by the viewer --------

def test_deactivate_hides_cached_pages(client, upload_flipbook, admin_headers):
    body = upload_flipbook(page_count=10)
    token = body["accessToken"]
    assert client.get(page_url(token, 1)).headers["x-cache"] == "MISS"
    assert client.get(page_url(token, 1)).headers["x-cache"] == "HIT"

    res = client.patch(
        f"/api/admin/flipbook/{body['flipbookId']}",
        json={"action": "deactivate"},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["flipbook"]["isActive"] is False

    res = client.get(page_url(token, 1))
    assert res.status_code == 403
    assert res.json()["message"] == "Flipbook deactivated"

    client.patch(
        f"/api/admin/flipbook/{body['flipbookId']}",
        json={"action": "activate"},
        headers=admin_headers,
    )
    assert client.get(page_url(token, 1)).headers["x-cache"] == "MISS"


def test_extend_revives_expired_flipbook(client, upload_flipbook, admin_headers, sent_emails):
    body = upload_flipbook()
    set_fields(body["flipbookId"], expires_at=datetime.utcnow() - timedelta(days=1))
    assert client.get(page_url(body["accessToken"], 1)).status_code == 403
    sent_emails.clear()

    res = client.patch(
        f"/api/admin/flipbook/{body['flipbookId']}",
        json={"action": "extend", "days": 14},
        headers=admin_headers,
    )

    assert res.status_code == 200
    assert res.json()["message"] == "Access extended by 14 days"
    assert res.json()["flipbook"]["paymentStatus"] == "paid"
    assert client.get(page_url(body["accessToken"], 1)).status_code == 200
    metadata = client.get(f"/api/flipbook/{body['accessToken']}/metadata").json()
    assert metadata["paymentStatus"] == "paid"
    assert metadata["server"]["expiresAt"] is not None
    # background task runs before TestClient returns
    assert [mail["to"] for mail in sent_emails] == ["reader@example.com"]


def test_make_permanent(client, upload_flipbook, admin_headers):
    body = upload_flipbook()

    res = client.patch(
        f"/api/admin/flipbook/{body['flipbookId']}",
        json={"action": "make_permanent"},
        headers=admin_headers,
    )

    flipbook = res.json()["flipbook"]
    assert flipbook["expiresAt"] is None
    assert flipbook["paymentStatus"] == "admin"
    assert flipbook["isPaid"] is True


def test_delete_via_patch(client, upload_flipbook, admin_headers):
    body = upload_flipbook()
    token = body["accessToken"]
    client.get(page_url(token, 1))

    res = client.patch(
        f"/api/admin/flipbook/{body['flipbookId']}",
        json={"action": "delete"},
        headers=admin_headers,
    )

    assert res.status_code == 200
    assert res.json() == {
        "success": True,
        "message": "Flipbook deleted successfully",
        "deletedId": body["flipbookId"],
    }
    assert client.get(page_url(token, 1)).status_code == 404
    assert client.get(f"/api/flipbook/{token}/metadata").status_code == 404


def test_invalid_action(client, upload_flipbook, admin_headers):
    body = upload_flipbook()

    res = client.patch(
        f"/api/admin/flipbook/{body['flipbookId']}",
        json={"action": "publish"},
        headers=admin_headers,
    )

    assert res.status_code == 400
    assert res.json()["message"] == "Invalid request"


def test_extend_rejects_non_positive_days(client, upload_flipbook, admin_headers):
    body = upload_flipbook()

    res = client.patch(
        f"/api/admin/flipbook/{body['flipbookId']}",
        json={"action": "extend", "days": 0},
        headers=admin_headers,
    )

    assert res.status_code == 400


def test_transition_on_unknown_flipbook(client, admin_headers):
    res = client.patch("/api/admin/flipbook/4242", json={"action": "activate"}, headers=admin_headers)

    assert res.status_code == 404
