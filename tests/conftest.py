import io
import os
import tempfile

# Settings are read at import time, so the environment has to be ready first.
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_EMAIL"] = "owner@flipbook.test"
os.environ["RETENTION_INTERVAL_SECONDS"] = "0"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="flipbook-tests-")
os.environ.pop("BREVO_API_KEY", None)

import pikepdf
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from flipbook.database import engine
from flipbook.main import app
from flipbook.services import email_service
from flipbook.services.page_cache import PageCache

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret-pass"


def make_pdf(page_count: int, encryption=None) -> bytes:
    """A PDF whose page ``n`` (1-based) is ``100 + n`` points wide."""
    pdf = pikepdf.new()
    for n in range(1, page_count + 1):
        pdf.add_blank_page(page_size=(100 + n, 200))
    buffer = io.BytesIO()
    if encryption is not None:
        pdf.save(buffer, encryption=encryption)
    else:
        pdf.save(buffer)
    return buffer.getvalue()


def page_width(pdf_bytes: bytes, index: int = 0) -> float:
    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        box = pdf.pages[index].mediabox
        return float(box[2]) - float(box[0])


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_db():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Record outgoing email instead of calling Brevo."""
    outbox = []

    def fake_send_email(to, subject, html):
        outbox.append({"to": to, "subject": subject, "html": html})
        return True

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return outbox


@pytest.fixture
def session(reset_db):
    with Session(engine) as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return PageCache(max_entries=50, ttl_seconds=600, trim_fraction=0.3, clock=clock)


@pytest.fixture
def client(reset_db):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def admin_headers(client):
    res = client.post(
        "/api/admin/auth/register",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
    )
    assert res.status_code == 201, res.text
    res = client.post(
        "/api/admin/auth/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
    )
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture
def upload_flipbook(client):
    def _upload(page_count=10, email="reader@example.com", firstname="Ada", lastname="Reader"):
        res = client.post(
            "/api/flipbook/register",
            data={"firstname": firstname, "lastname": lastname, "email": email},
            files={"pdf": ("book.pdf", make_pdf(page_count), "application/pdf")},
        )
        assert res.status_code == 201, res.text
        return res.json()

    return _upload
