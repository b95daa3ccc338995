"""File-system implementation of UserStore.

Stores one JSON document per user in a flat directory, named
``$<user id>$<email>.json``, with the email percent-encoded so that
``/`` or ``$`` in an address cannot escape the directory or the name
layout. Both lookup indexes are rebuilt from the file names when the
store is opened.
"""

import json
import re
import uuid
from logging import getLogger
from pathlib import Path
from urllib.parse import quote, unquote

from domain.model.errors import DuplicateError, UserNotFoundError
from domain.model.user import UserRecord, normalize_email

logger = getLogger(__name__)

_FILENAME_PATTERN = re.compile(r"^\$([^$]+)\$(.+)\.json$")


class FileSystemUserStore:
    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._id_index: dict[str, Path] = {}
        self._email_index: dict[str, Path] = {}
        self._load_index()

    def _load_index(self) -> None:
        for path in self.directory.glob("$*.json"):
            match = _FILENAME_PATTERN.match(path.name)
            if match is None:
                raise ValueError(f"Cannot parse filename: {path}")
            self._id_index[match.group(1)] = path
            self._email_index[unquote(match.group(2))] = path
        logger.debug("Loaded user index", extra={"directory": str(self.directory), "count": len(self._id_index)})

    def _path_for(self, user_id: str, email: str) -> Path:
        return self.directory / f"${user_id}${quote(email, safe='@')}.json"

    @staticmethod
    def _read(path: Path) -> UserRecord:
        return UserRecord.from_dict(json.loads(path.read_text(encoding="utf-8")))

    # ── write operations ─────────────────────────────────────

    def store_user(self, user: UserRecord) -> None:
        user_id = str(user.get_id())
        path = self._path_for(user_id, user.email)

        # Not atomic with the write below; concurrent writers may race
        existing = self._email_index.get(user.email)
        if existing is not None and existing != path:
            raise DuplicateError(f"Email already registered: {user.email}")

        previous = self._id_index.get(user_id)
        if previous is not None and previous != path:
            # Email changed: the old file name no longer matches
            previous.unlink(missing_ok=True)
            self._email_index = {e: p for e, p in self._email_index.items() if p != previous}

        path.write_text(json.dumps(user.to_dict()) + "\n", encoding="utf-8")
        self._id_index[user_id] = path
        self._email_index[user.email] = path

    # ── read operations ──────────────────────────────────────

    def get_user_by_id(self, user_id: uuid.UUID) -> UserRecord:
        path = self._id_index.get(str(user_id))
        if path is None:
            raise UserNotFoundError()
        return self._read(path)

    def get_user_by_email(self, email: str) -> UserRecord:
        path = self._email_index.get(normalize_email(email))
        if path is None:
            raise UserNotFoundError()
        return self._read(path)

    def user_exists_by_email(self, email: str) -> bool:
        return normalize_email(email) in self._email_index

    def get_user_count(self) -> int:
        return len(self._id_index)

    def users_exist(self) -> bool:
        return bool(self._id_index)
