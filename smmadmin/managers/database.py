"""Database manager for smmadmin."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from smmadmin.models import Brand, BrandDocument, Post, PostStatus, User
from smmadmin.exceptions import DatabaseError
from smmadmin.utils.dates import format_timestamp, parse_timestamp, utcnow


SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schema.sql"

# Expected schema version - update this when schema.sql changes
EXPECTED_VERSION = 1

BRAND_JSON_COLUMNS = (
    "wordpress_credentials",
    "linkedin_credentials",
    "instagram_credentials",
    "facebook_credentials",
)

BRAND_LANGUAGE_COLUMNS = (
    "telegram_languages",
    "wordpress_languages",
    "linkedin_languages",
    "tiktok_languages",
    "instagram_languages",
    "facebook_languages",
)

BRAND_COLUMNS = (
    "name",
    "description",
    "telegram_channel",
    "tiktok_credentials",
) + BRAND_JSON_COLUMNS + BRAND_LANGUAGE_COLUMNS

POST_COLUMNS = (
    "title",
    "body",
    "image_path",
    "video_path",
    "platform",
    "language",
    "schedule_at",
    "status",
    "created_by_id",
    "last_error",
    "short_text",
    "long_text",
    "caption",
    "hashtags",
    "is_generating",
)


def _load_json(value: Optional[str], default=None):
    if value is None or value == "":
        return default
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        logging.error(f"💥 Error decoding JSON column value: {value[:100]}")
        return default


class DatabaseManager:
    """Manages SQLite storage for users, brands, documents, posts and the global token."""

    def __init__(self, db_path: str):
        """Initialize the database manager.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path

        # Store datetimes as sortable UTC strings
        sqlite3.register_adapter(datetime, format_timestamp)

        self.setup_database()

    def setup_database(self):
        """Apply schema.sql and verify the schema version."""
        try:
            with self._get_connection() as conn:
                conn.executescript(SCHEMA_PATH.read_text())

                cursor = conn.execute("SELECT version FROM db_version WHERE id = 1")
                result = cursor.fetchone()
                if not result:
                    logging.warning("⚠️ Database version record not found!")
                    raise DatabaseError("Database version information missing")

                db_version = result[0]
                if db_version != EXPECTED_VERSION:
                    logging.error(
                        f"💥 Database schema version mismatch! Expected: {EXPECTED_VERSION}, Found: {db_version}"
                    )
                    raise DatabaseError(
                        f"Database schema version mismatch. Expected v{EXPECTED_VERSION}, found v{db_version}"
                    )

                logging.debug(f"✅ Database schema version {db_version} verified")
        except (sqlite3.Error, OSError) as e:
            logging.error(f"💥 Database setup error: {e}")
            raise DatabaseError(f"Failed to set up database schema: {e}")

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Open a SQLite connection scoped to one unit of work.

        Commits on success, rolls back on error, and always closes.

        Raises:
            DatabaseError: If connection fails
        """
        try:
            conn = sqlite3.connect(self.db_path)
            conn.execute("PRAGMA foreign_keys = ON")
            conn.row_factory = sqlite3.Row
        except sqlite3.Error as e:
            logging.error(f"💥 Database connection error: {e}")
            raise DatabaseError(f"Failed to connect to database: {e}")

        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # Global token

    def get_global_token(self) -> Optional[str]:
        """Read the shared Meta token.

        Raises:
            DatabaseError: If the query fails
        """
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT token FROM global_tokens WHERE id = 1"
                ).fetchone()
                return row["token"] if row else None
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to read global token: {e}")

    def upsert_global_token(self, token: str) -> None:
        """Create or replace the shared Meta token in one atomic statement.

        Raises:
            DatabaseError: If the write fails
        """
        now = utcnow()
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO global_tokens (id, token, created_at, updated_at)
                    VALUES (1, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        token = excluded.token,
                        updated_at = excluded.updated_at
                    """,
                    (token, now, now),
                )
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to store global token: {e}")

    def get_global_token_updated_at(self) -> Optional[datetime]:
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT updated_at FROM global_tokens WHERE id = 1"
                ).fetchone()
                return parse_timestamp(row["updated_at"]) if row else None
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to read global token: {e}")

    # Users

    def create_user(self, email: str, password_hash: str, name: Optional[str] = None) -> User:
        """Insert a user.

        Raises:
            DatabaseError: If the insert fails (including duplicate email)
        """
        created_at = utcnow()
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "INSERT INTO users (email, password_hash, name, created_at) VALUES (?, ?, ?, ?)",
                    (email, password_hash, name, created_at),
                )
                user_id = cursor.lastrowid
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to create user: {e}")
        return User(id=user_id, email=email, password_hash=password_hash, name=name, created_at=created_at)

    def get_user_by_email(self, email: str) -> Optional[User]:
        try:
            with self._get_connection() as conn:
                row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to load user: {e}")
        if not row:
            return None
        return User(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            name=row["name"],
            created_at=parse_timestamp(row["created_at"]),
        )

    # Brands

    def _row_to_brand(self, row: sqlite3.Row) -> Brand:
        values: Dict[str, Any] = {
            "id": row["id"],
            "name": row["name"],
            "description": row["description"],
            "telegram_channel": row["telegram_channel"],
            "tiktok_credentials": row["tiktok_credentials"],
            "created_at": parse_timestamp(row["created_at"]),
        }
        for column in BRAND_JSON_COLUMNS:
            values[column] = _load_json(row[column])
        for column in BRAND_LANGUAGE_COLUMNS:
            values[column] = _load_json(row[column], default=[])
        return Brand(**values)

    def _encode_brand_fields(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        encoded = {}
        for column, value in fields.items():
            if column not in BRAND_COLUMNS:
                raise DatabaseError(f"Unknown brand column: {column}")
            if column in BRAND_JSON_COLUMNS:
                value = json.dumps(value) if value is not None else None
            elif column in BRAND_LANGUAGE_COLUMNS:
                value = json.dumps(list(value or []))
            encoded[column] = value
        return encoded

    def create_brand(self, **fields) -> Brand:
        """Insert a brand.

        Args:
            **fields: Brand columns (credentials as dicts, languages as lists)

        Returns:
            The stored Brand
        """
        encoded = self._encode_brand_fields(fields)
        encoded["created_at"] = utcnow()
        columns = ", ".join(encoded)
        placeholders = ", ".join("?" for _ in encoded)
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    f"INSERT INTO brands ({columns}) VALUES ({placeholders})",
                    tuple(encoded.values()),
                )
                brand_id = cursor.lastrowid
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to create brand: {e}")
        return self.get_brand(brand_id)

    def get_brand(self, brand_id: int) -> Optional[Brand]:
        try:
            with self._get_connection() as conn:
                row = conn.execute("SELECT * FROM brands WHERE id = ?", (brand_id,)).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to load brand {brand_id}: {e}")
        return self._row_to_brand(row) if row else None

    def list_brands(self) -> List[Brand]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute("SELECT * FROM brands ORDER BY id DESC").fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to list brands: {e}")
        return [self._row_to_brand(row) for row in rows]

    def update_brand(self, brand_id: int, **fields) -> bool:
        """Update brand columns.

        Returns:
            True if a brand row was updated
        """
        if not fields:
            return False
        encoded = self._encode_brand_fields(fields)
        assignments = ", ".join(f"{column} = ?" for column in encoded)
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    f"UPDATE brands SET {assignments} WHERE id = ?",
                    tuple(encoded.values()) + (brand_id,),
                )
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to update brand {brand_id}: {e}")

    def delete_brand(self, brand_id: int) -> bool:
        """Delete a brand together with its documents and posts.

        Returns:
            True if the brand existed
        """
        try:
            with self._get_connection() as conn:
                conn.execute("DELETE FROM brand_documents WHERE brand_id = ?", (brand_id,))
                conn.execute("DELETE FROM posts WHERE brand_id = ?", (brand_id,))
                cursor = conn.execute("DELETE FROM brands WHERE id = ?", (brand_id,))
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to delete brand {brand_id}: {e}")

    # Documents

    def _row_to_document(self, row: sqlite3.Row) -> BrandDocument:
        return BrandDocument(
            id=row["id"],
            brand_id=row["brand_id"],
            filename=row["filename"],
            original_name=row["original_name"],
            mime=row["mime"],
            uploaded_at=parse_timestamp(row["uploaded_at"]),
        )

    def add_document(
        self, brand_id: int, filename: str, original_name: str, mime: Optional[str] = None
    ) -> BrandDocument:
        uploaded_at = utcnow()
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO brand_documents (brand_id, filename, original_name, mime, uploaded_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (brand_id, filename, original_name, mime, uploaded_at),
                )
                document_id = cursor.lastrowid
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to record document: {e}")
        return BrandDocument(
            id=document_id,
            brand_id=brand_id,
            filename=filename,
            original_name=original_name,
            mime=mime,
            uploaded_at=uploaded_at,
        )

    def list_documents(self, brand_id: int) -> List[BrandDocument]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM brand_documents WHERE brand_id = ? ORDER BY uploaded_at DESC, id DESC",
                    (brand_id,),
                ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to list documents: {e}")
        return [self._row_to_document(row) for row in rows]

    def delete_documents(self, brand_id: int) -> int:
        try:
            with self._get_connection() as conn:
                cursor = conn.execute("DELETE FROM brand_documents WHERE brand_id = ?", (brand_id,))
                return cursor.rowcount
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to delete documents: {e}")

    # Posts

    def _row_to_post(self, row: sqlite3.Row) -> Post:
        return Post(
            id=row["id"],
            brand_id=row["brand_id"],
            status=PostStatus(row["status"]),
            title=row["title"],
            body=row["body"],
            image_path=row["image_path"],
            video_path=row["video_path"],
            platform=row["platform"],
            language=row["language"],
            schedule_at=parse_timestamp(row["schedule_at"]),
            created_by_id=row["created_by_id"],
            created_at=parse_timestamp(row["created_at"]),
            last_error=row["last_error"],
            short_text=row["short_text"],
            long_text=row["long_text"],
            caption=row["caption"],
            hashtags=_load_json(row["hashtags"], default=[]),
            is_generating=bool(row["is_generating"]),
        )

    def _encode_post_fields(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        encoded = {}
        for column, value in fields.items():
            if column not in POST_COLUMNS:
                raise DatabaseError(f"Unknown post column: {column}")
            if column == "status":
                value = PostStatus(value).value
            elif column == "hashtags":
                value = json.dumps(list(value or []))
            elif column == "is_generating":
                value = int(bool(value))
            encoded[column] = value
        return encoded

    def create_post(self, brand_id: int, **fields) -> Post:
        """Insert a post for a brand.

        Args:
            brand_id: Owning brand
            **fields: Post columns

        Returns:
            The stored Post
        """
        encoded = self._encode_post_fields(fields)
        encoded["brand_id"] = brand_id
        encoded["created_at"] = utcnow()
        columns = ", ".join(encoded)
        placeholders = ", ".join("?" for _ in encoded)
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    f"INSERT INTO posts ({columns}) VALUES ({placeholders})",
                    tuple(encoded.values()),
                )
                post_id = cursor.lastrowid
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to create post: {e}")
        return self.get_post(post_id)

    def get_post(self, post_id: int) -> Optional[Post]:
        try:
            with self._get_connection() as conn:
                row = conn.execute("SELECT * FROM posts WHERE id = ?", (post_id,)).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to load post {post_id}: {e}")
        return self._row_to_post(row) if row else None

    def list_posts(self, brand_id: int) -> List[Post]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM posts WHERE brand_id = ? ORDER BY created_at DESC, id DESC",
                    (brand_id,),
                ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to list posts: {e}")
        return [self._row_to_post(row) for row in rows]

    def update_post(self, post_id: int, **fields) -> bool:
        """Update post columns.

        Returns:
            True if a post row was updated
        """
        if not fields:
            return False
        encoded = self._encode_post_fields(fields)
        assignments = ", ".join(f"{column} = ?" for column in encoded)
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    f"UPDATE posts SET {assignments} WHERE id = ?",
                    tuple(encoded.values()) + (post_id,),
                )
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to update post {post_id}: {e}")

    def get_due_posts(self, now: datetime) -> List[Post]:
        """Scheduled posts whose publish time is at or before ``now``."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT * FROM posts
                    WHERE status = ? AND schedule_at IS NOT NULL AND schedule_at <= ?
                    ORDER BY schedule_at ASC, id ASC
                    """,
                    (PostStatus.SCHEDULED.value, now),
                ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to query due posts: {e}")
        return [self._row_to_post(row) for row in rows]
