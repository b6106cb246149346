import hashlib
import logging
import secrets
import uuid

from filevault.documents import USERS, DocumentStore, DuplicateKey
from filevault.errors import BadRequest, Conflict
from filevault.models import User


def hash_password(password: str) -> str:
    """Hash a password using SHA-256."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def user_id_for(email: str) -> str:
    """
    Users are stored under an id derived from their email, so that creating
    a second user with the same email fails atomically in the document store
    """
    return uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{email}").hex


class UserStore:
    def __init__(self, store: DocumentStore):
        self._store = store

    async def create(self, email: str | None, password: str | None) -> User:
        if not email:
            raise BadRequest("Missing email")
        if not password:
            raise BadRequest("Missing password")
        if await self._store.find_one(USERS, email=email):
            raise Conflict("Already exists")

        doc = dict(email=email, password=hash_password(password))
        try:
            id = await self._store.insert(USERS, doc, id=user_id_for(email))
        except DuplicateKey:
            raise Conflict("Already exists")
        logging.info(f"Registered user {id}")
        return User(id=id, **doc)

    async def get(self, id: str) -> User | None:
        doc = await self._store.get(USERS, id)
        if doc is None:
            return None
        return User(id=id, email=doc["email"], password=doc["password"])

    async def get_by_email(self, email: str) -> User | None:
        hit = await self._store.find_one(USERS, email=email)
        if hit is None:
            return None
        id, doc = hit
        return User(id=id, email=doc["email"], password=doc["password"])

    async def count(self) -> int:
        return await self._store.count(USERS)


class CredentialVerifier:
    """Checks an email/password pair against the stored password digests. This is the only way to get a session."""

    def __init__(self, users: UserStore):
        self._users = users

    async def verify(self, email: str, password: str) -> User | None:
        user = await self._users.get_by_email(email)
        if user is None:
            return None
        if not secrets.compare_digest(user.password, hash_password(password)):
            return None
        return user
