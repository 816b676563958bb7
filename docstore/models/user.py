# docstore/models/user.py
from pathlib import Path

from starlette.concurrency import run_in_threadpool

from docstore.core.errors import ConflictError, UnauthorizedError
from docstore.core.logging import get_logger
from docstore.core.security import hash_password, verify_password
from docstore.models.database import JsonArrayFile, LockRegistry, Record

logger = get_logger(__name__)

USERS_FILE = "users.json"


class UserStore:
    """``{username, passwordHash}`` entries kept in ``<root>/users.json``."""

    def __init__(self, root: Path, locks: LockRegistry | None = None) -> None:
        self.file = JsonArrayFile(Path(root) / USERS_FILE)
        self.locks = locks or LockRegistry()

    async def find(self, username: str) -> Record | None:
        users = await run_in_threadpool(self.file.load) or []
        return next((user for user in users if user.get("username") == username), None)

    async def register(self, username: str, password: str) -> Record:
        password_hash = await run_in_threadpool(hash_password, password)

        async with self.locks.for_path(self.file.path):
            users = await run_in_threadpool(self.file.load) or []
            # Check if user exists
            if any(user.get("username") == username for user in users):
                raise ConflictError("Username already exists")

            user = {"username": username, "passwordHash": password_hash}
            users.append(user)
            await run_in_threadpool(self.file.save, users)

        logger.info("user registered", username=username)
        return user

    async def authenticate(self, username: str, password: str) -> Record:
        user = await self.find(username)
        if not user or not await run_in_threadpool(verify_password, user.get("passwordHash", ""), password):
            logger.warning("login rejected", username=username)
            raise UnauthorizedError("Invalid credentials")
        return user
