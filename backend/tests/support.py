import shutil
import tempfile
import unittest
import uuid

from fastapi.testclient import TestClient

from activities.database import Base, SessionLocal, engine
from activities.identity import Identity, IdentityError, IdentityProvider, Session
from activities.main import app
from activities.models import User
from activities.storage.local import LocalStorage
from activities.views import ViewInvalidator

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeIdentityProvider(IdentityProvider):
    """In-memory identity provider: accounts by email, sessions by token."""

    def __init__(self):
        self.accounts = {}
        self.tokens = {}
        self.signed_out = []
        self.deleted = []

    def issue(self, user_id, email=None):
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = Identity(user_id=user_id, email=email)
        return token

    def get_identity(self, token):
        return self.tokens.get(token)

    def sign_in(self, email, password):
        account = self.accounts.get(email)
        if not account or account["password"] != password:
            raise IdentityError("Invalid login credentials")
        return Session(access_token=self.issue(account["user_id"], email), expires_in=3600)

    def sign_up(self, email, password):
        if email in self.accounts:
            raise IdentityError("User already registered")
        user_id = str(uuid.uuid4())
        self.accounts[email] = {"user_id": user_id, "password": password}
        return Identity(user_id=user_id, email=email)

    def sign_out(self, token):
        self.signed_out.append(token)
        self.tokens.pop(token, None)

    def delete_user(self, user_id):
        self.deleted.append(user_id)
        self.accounts = {e: a for e, a in self.accounts.items() if a["user_id"] != user_id}
        self.tokens = {t: i for t, i in self.tokens.items() if i.user_id != user_id}


class ApiTestCase(unittest.TestCase):
    """Fresh schema, storage directory, identity provider and view registry per test."""

    def setUp(self):
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)

        self.media_root = tempfile.mkdtemp(prefix="activities-test-")
        self.addCleanup(shutil.rmtree, self.media_root, True)

        self.identity = FakeIdentityProvider()
        self.storage = LocalStorage(root=self.media_root, bucket="photos")
        self.views = ViewInvalidator()
        app.state.identity_provider = self.identity
        app.state.storage = self.storage
        app.state.views = self.views
        app.state.suggestion_providers = []

        self.client = TestClient(app)
        self.db = SessionLocal()
        self.addCleanup(self.db.close)

    def create_user(self, email="u1@example.com", name="User One"):
        user = User(id=str(uuid.uuid4()), email=email, name=name)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        token = self.identity.issue(user.id, email)
        return user, {"Authorization": f"Bearer {token}"}

    def count(self, model, **filters):
        self.db.expire_all()
        query = self.db.query(model)
        for field, value in filters.items():
            query = query.filter(getattr(model, field) == value)
        count = query.count()
        self.db.commit()
        return count

    def upload(self, path, headers, filename="dish.png", content=PNG_BYTES, content_type="image/png", name=None):
        data = {"name": name} if name is not None else {}
        return self.client.post(
            path,
            headers=headers,
            files={"file": (filename, content, content_type)},
            data=data,
        )
