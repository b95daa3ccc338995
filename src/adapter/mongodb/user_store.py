"""MongoDB implementation of UserStore."""

import uuid
from logging import getLogger

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from adapter.mongodb import USERS_COLLECTION_NAME
from domain.model.errors import DuplicateError, UserNotFoundError
from domain.model.user import UserRecord, normalize_email

logger = getLogger(__name__)

# Server codes for an existing index with the same name or keys but other options
_INDEX_CONFLICT_CODES = {85, 86}


class MongoUserStore:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for the users collection, replacing conflicting ones."""
        try:
            self._create_index([('email', 1)], 'idx_users_email', unique=True)
            self._create_index([('first_login_time', -1)], 'idx_users_first_login')
            return True
        except PyMongoError as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    def _create_index(self, keys: list, name: str, **kwargs) -> None:
        try:
            self.collection.create_index(keys, name=name, **kwargs)
        except OperationFailure as e:
            if e.code not in _INDEX_CONFLICT_CODES:
                raise
            logger.warning(f"Replacing conflicting index: {name}")
            self.collection.drop_index(name)
            self.collection.create_index(keys, name=name, **kwargs)

    @staticmethod
    def _to_document(user: UserRecord) -> dict:
        doc = user.to_dict()
        doc['_id'] = doc.pop('id')
        # Native dates so the collection can be sorted and queried by time
        doc['first_login_time'] = user.first_login_time
        doc['recent_login_time'] = user.recent_login_time
        return doc

    @staticmethod
    def _to_domain(doc: dict) -> UserRecord:
        """Convert MongoDB document to UserRecord domain model."""
        return UserRecord.from_dict({**doc, 'id': doc['_id']})

    # ── write operations ─────────────────────────────────────

    def store_user(self, user: UserRecord) -> None:
        """Insert a new user or update the existing one with the same id.

        Check-then-write is not atomic; a concurrent insert of the same
        email fails on the unique index and surfaces as DuplicateError.
        """
        doc = self._to_document(user)
        user_id = doc['_id']
        try:
            if not self.user_exists_by_email(user.email) and not self._id_exists(user_id):
                self.collection.insert_one(doc)
                logger.info("User created", extra={"userId": user_id, "email": user.email})
                return

            # Known email, or a known id whose email changed
            result = self.collection.update_one({'_id': user_id}, {'$set': doc})
            if result.matched_count == 0:
                raise DuplicateError(f"Email already registered: {user.email}")
        except DuplicateKeyError as e:
            logger.warning("User store conflict", extra={"userId": user_id, "email": user.email})
            raise DuplicateError(f"Email already registered: {user.email}") from e
        except PyMongoError as e:
            logger.error("Failed to store user", extra={"userId": user_id, "error": str(e)})
            raise

    def _id_exists(self, user_id: str) -> bool:
        return self.collection.count_documents({'_id': user_id}, limit=1) > 0

    # ── read operations ──────────────────────────────────────

    def _find_one(self, query: dict) -> UserRecord:
        try:
            doc = self.collection.find_one(query)
        except PyMongoError as e:
            logger.error("Failed to get user", extra={"query": str(query), "error": str(e)})
            raise
        if doc is None:
            raise UserNotFoundError()
        return self._to_domain(doc)

    def get_user_by_id(self, user_id: uuid.UUID) -> UserRecord:
        return self._find_one({'_id': str(user_id)})

    def get_user_by_email(self, email: str) -> UserRecord:
        return self._find_one({'email': normalize_email(email)})

    def user_exists_by_email(self, email: str) -> bool:
        return self.collection.count_documents({'email': normalize_email(email)}, limit=1) > 0

    def get_user_count(self) -> int:
        return self.collection.count_documents({})

    def users_exist(self) -> bool:
        return self.collection.find_one({}, {'_id': 1}) is not None
