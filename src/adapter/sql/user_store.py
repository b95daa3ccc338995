"""SQL implementation of UserStore (SQLAlchemy Core).

Uses a single table with these columns:

    id      canonical UUID string, primary key
    email   normalized email, unique
    data    the user record as a JSON document

The same code serves SQLite and PostgreSQL. create_table() is a
convenience; callers may maintain the table (and its indexes) themselves.
"""

import json
import uuid
from logging import getLogger

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from domain.model.errors import DuplicateError, UserNotFoundError
from domain.model.user import UserRecord, normalize_email

logger = getLogger(__name__)

DEFAULT_TABLE_NAME = "magiclink"


def make_engine(database_url: str) -> Engine:
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


def _users_table(metadata: MetaData, table_name: str) -> Table:
    return Table(
        table_name,
        metadata,
        Column("id", String(36), primary_key=True),
        Column("email", String(320), nullable=False, unique=True, index=True),
        Column("data", Text, nullable=False),
    )


class SQLUserStore:
    def __init__(self, engine: Engine, table_name: str = DEFAULT_TABLE_NAME):
        self.engine = engine
        self.metadata = MetaData()
        self.table = _users_table(self.metadata, table_name)

    def create_table(self) -> None:
        self.metadata.create_all(self.engine, tables=[self.table])

    # ── write operations ─────────────────────────────────────

    def store_user(self, user: UserRecord) -> None:
        user_id = str(user.get_id())
        data = json.dumps(user.to_dict())
        try:
            # Check-then-write race: UPSERT syntax is not portable across engines
            if not self.user_exists_by_email(user.email) and not self._id_exists(user_id):
                with self.engine.begin() as conn:
                    conn.execute(self.table.insert().values(id=user_id, email=user.email, data=data))
                logger.info("User created", extra={"userId": user_id, "email": user.email})
            else:
                # Known email, or a known id whose email changed
                with self.engine.begin() as conn:
                    result = conn.execute(
                        self.table.update()
                        .where(self.table.c.id == user_id)
                        .values(email=user.email, data=data)
                    )
                    if result.rowcount == 0:
                        # The email belongs to a different user id
                        raise DuplicateError(f"Email already registered: {user.email}")
        except IntegrityError as e:
            logger.warning("User store conflict", extra={"userId": user_id, "email": user.email})
            raise DuplicateError(f"Email already registered: {user.email}") from e

    def _id_exists(self, user_id: str) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(select(self.table.c.id).where(self.table.c.id == user_id)).first() is not None

    # ── read operations ──────────────────────────────────────

    def _fetch_one(self, where) -> UserRecord:
        with self.engine.connect() as conn:
            data = conn.execute(select(self.table.c.data).where(where)).scalar_one_or_none()
        if data is None:
            raise UserNotFoundError()
        return UserRecord.from_dict(json.loads(data))

    def get_user_by_id(self, user_id: uuid.UUID) -> UserRecord:
        return self._fetch_one(self.table.c.id == str(user_id))

    def get_user_by_email(self, email: str) -> UserRecord:
        return self._fetch_one(self.table.c.email == normalize_email(email))

    def user_exists_by_email(self, email: str) -> bool:
        query = select(func.count()).select_from(self.table).where(
            self.table.c.email == normalize_email(email)
        )
        with self.engine.connect() as conn:
            return conn.execute(query).scalar_one() > 0

    def get_user_count(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(self.table)).scalar_one()

    def users_exist(self) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(select(self.table.c.id).limit(1)).first() is not None
