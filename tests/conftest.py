import asyncio
import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from dependencies import get_db, get_image_storage, get_mail_sender
from main import app
from services.email_service import MailSender
from services.storage import ImageStorage

DEFAULT_PASSWORD = "password123"
DEFAULT_ANSWERS = ["Fluffy", "Springfield", "Blue"]


class FakeMailSender(MailSender):
    def __init__(self):
        self.sent = []
        self.fail = False

    async def deliver(self, to, subject, html):
        if self.fail:
            raise ConnectionError("SMTP server unreachable")
        self.sent.append({"to": to, "subject": subject, "html": html})


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def db():
    return AsyncMongoMockClient()["bookswap_test"]


@pytest.fixture
def mail_sender():
    return FakeMailSender()


@pytest.fixture
def storage(tmp_path):
    return ImageStorage(root=str(tmp_path / "uploads"), max_bytes=1024)


@pytest.fixture
def client(db, mail_sender, storage):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_mail_sender] = lambda: mail_sender
    app.dependency_overrides[get_image_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


class CollectionWrapper:
    """A collection with some methods swapped for test doubles."""

    def __init__(self, collection, **methods):
        self._collection = collection
        self._methods = methods

    def __getattr__(self, name):
        if name in self._methods:
            return self._methods[name]
        return getattr(self._collection, name)


class DatabaseWrapper:
    def __init__(self, database, **collections):
        self._database = database
        self._collections = collections

    def __getattr__(self, name):
        if name in self._collections:
            return self._collections[name]
        return getattr(self._database, name)

    def __getitem__(self, name):
        return self.__getattr__(name)


@pytest.fixture
def use_db(client):
    def _use_db(database):
        app.dependency_overrides[get_db] = lambda: database
    return _use_db


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(client):
    def _make_user(email, name=None, password=DEFAULT_PASSWORD, answers=None):
        response = client.post("/api/auth/register", json={
            "name": name or email.split("@")[0].title(),
            "email": email,
            "password": password,
            "securityAnswers": answers or DEFAULT_ANSWERS,
        })
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "id": body["user"]["id"],
            "email": email,
            "token": body["token"],
            "headers": auth(body["token"]),
        }
    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user("alice@example.com", name="Alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob@example.com", name="Bob")


@pytest.fixture
def carol(make_user):
    return make_user("carol@example.com", name="Carol")


@pytest.fixture
def create_book(client):
    def _create_book(user, title="Dune", author="Frank Herbert", genre="Science Fiction",
                     condition="Good", location="Mumbai", **extra):
        payload = {
            "title": title,
            "author": author,
            "genre": genre,
            "condition": condition,
            "location": location,
            **extra,
        }
        response = client.post("/api/books", json=payload, headers=user["headers"])
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create_book


@pytest.fixture
def request_book(client):
    def _request_book(user, book_id, delivery_method="mail", duration=5, message=None):
        payload = {"bookId": book_id, "terms": {"deliveryMethod": delivery_method, "duration": duration}}
        if message is not None:
            payload["message"] = message
        return client.post("/api/transactions/request", json=payload, headers=user["headers"])
    return _request_book
