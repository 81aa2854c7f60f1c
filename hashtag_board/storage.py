from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from .errors import StorageError
from .normalize import post_from_record
from .post import Post, User
from .storage_schema import initialize_sqlite


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _json_dumps(value: Any) -> str:
    return json.dumps(
        value,
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    )


def _as_path(value: str | Path) -> str:
    return str(value)


class BoardStore:
    """
    Local document store for users and posts.

    Posts come back through the same ingestion path as any stored document, so
    legacy rows without hashtags get them from their category.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.row_factory = sqlite3.Row

    @classmethod
    def open(cls, path: str | Path) -> "BoardStore":
        db_path = _as_path(path)
        if db_path != ":memory:":
            p = Path(db_path)
            p.parent.mkdir(parents=True, exist_ok=True)

        try:
            conn = sqlite3.connect(db_path)
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Failed to open sqlite database: {db_path}: {e}") from e

        try:
            initialize_sqlite(conn)
        except Exception as e:
            conn.close()
            raise StorageError(f"Failed to initialize sqlite schema: {e}") from e

        return cls(conn)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "BoardStore":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def create_user(self, *, uid: str | None = None, created_at: str | None = None) -> User:
        user_id = (uid or uuid.uuid4().hex).strip()
        if not user_id:
            raise ValueError("uid must be non-empty")

        ts = (created_at or _utc_now_iso()).strip()

        try:
            with self._conn:
                self._conn.execute(
                    "INSERT OR IGNORE INTO users(uid, nickname, created_at) VALUES (?, NULL, ?)",
                    (user_id, ts),
                )
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Failed to create user: {e}") from e

        user = self.get_user(user_id)
        if user is None:
            raise StorageError("Failed to read user after insert")
        return user

    def get_user(self, uid: str) -> User | None:
        user_id = (uid or "").strip()
        if not user_id:
            raise ValueError("uid must be non-empty")

        row = self._conn.execute(
            "SELECT uid, nickname FROM users WHERE uid = ?",
            (user_id,),
        ).fetchone()
        if row is None:
            return None

        return User(
            uid=str(row["uid"]),
            nickname=str(row["nickname"]) if row["nickname"] is not None else None,
        )

    def nickname_taken(self, nickname: str, *, exclude_uid: str | None = None) -> bool:
        row = self._conn.execute(
            "SELECT uid FROM users WHERE nickname = ?",
            (nickname,),
        ).fetchone()
        if row is None:
            return False
        return exclude_uid is None or str(row["uid"]) != exclude_uid

    def set_user_nickname(self, uid: str, nickname: str) -> User:
        user_id = (uid or "").strip()
        name = (nickname or "").strip()
        if not user_id or not name:
            raise ValueError("uid and nickname must be non-empty")

        try:
            with self._conn:
                cur = self._conn.execute(
                    "UPDATE users SET nickname = ? WHERE uid = ?",
                    (name, user_id),
                )
        except sqlite3.IntegrityError as e:
            raise StorageError(f"Nickname is already in use: {name}") from e
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Failed to set nickname: {e}") from e

        if cur.rowcount == 0:
            raise StorageError(f"Unknown user: {user_id}")
        return User(uid=user_id, nickname=name)

    def add_post(
        self,
        *,
        text: str,
        hashtags: Sequence[str],
        nickname: str | None = None,
        user_id: str | None = None,
        post_id: str | None = None,
        created_at: str | None = None,
    ) -> Post:
        return self._insert_post(
            post_id=post_id,
            text=text,
            nickname=nickname,
            hashtags_json=_json_dumps(list(hashtags)),
            category_id=None,
            created_at=created_at,
            user_id=user_id,
        )

    def add_legacy_post(
        self,
        *,
        text: str,
        category_id: str,
        nickname: str | None = None,
        user_id: str | None = None,
        post_id: str | None = None,
        created_at: str | None = None,
    ) -> Post:
        """Store a post in the pre-hashtag shape, with only a category."""
        return self._insert_post(
            post_id=post_id,
            text=text,
            nickname=nickname,
            hashtags_json=None,
            category_id=category_id,
            created_at=created_at,
            user_id=user_id,
        )

    def _insert_post(
        self,
        *,
        post_id: str | None,
        text: str,
        nickname: str | None,
        hashtags_json: str | None,
        category_id: str | None,
        created_at: str | None,
        user_id: str | None,
    ) -> Post:
        pid = (post_id or uuid.uuid4().hex).strip()
        if not pid:
            raise ValueError("post_id must be non-empty")

        ts = (created_at or _utc_now_iso()).strip()

        try:
            with self._conn:
                self._conn.execute(
                    """
                    INSERT INTO posts(
                      post_id, text, nickname, hashtags_json, category_id, created_at, user_id
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """.strip(),
                    (pid, text, nickname, hashtags_json, category_id, ts, user_id),
                )
        except sqlite3.IntegrityError as e:
            raise StorageError(f"Post already exists: {pid}") from e
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Failed to add post: {e}") from e

        post = self.get_post(pid)
        if post is None:
            raise StorageError("Failed to read post after insert")
        return post

    def get_post(self, post_id: str) -> Post | None:
        row = self._conn.execute(
            """
            SELECT post_id, text, nickname, hashtags_json, category_id, created_at, user_id
            FROM posts
            WHERE post_id = ?
            """.strip(),
            (post_id,),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_post(row)

    def list_posts(self, *, limit: int | None = None) -> list[Post]:
        """
        Return posts oldest first.

        With `limit`, only the most recent `limit` posts are returned, still oldest first.
        """
        if limit is not None and limit <= 0:
            return []

        sql = """
        SELECT seq, post_id, text, nickname, hashtags_json, category_id, created_at, user_id
        FROM posts
        ORDER BY seq DESC
        """.strip()
        params: tuple[Any, ...] = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (int(limit),)

        rows = self._conn.execute(sql, params).fetchall()
        out: list[Post] = []
        for r in reversed(rows):
            post = self._row_to_post(r)
            if post is not None:
                out.append(post)
        return out

    def post_count(self) -> int:
        row = self._conn.execute("SELECT COUNT(1) AS n FROM posts").fetchone()
        return int(row["n"]) if row is not None else 0

    def legacy_post_count(self) -> int:
        row = self._conn.execute(
            "SELECT COUNT(1) AS n FROM posts WHERE hashtags_json IS NULL AND category_id IS NOT NULL"
        ).fetchone()
        return int(row["n"]) if row is not None else 0

    def _row_to_post(self, row: sqlite3.Row) -> Post | None:
        record: dict[str, Any] = {
            "id": row["post_id"],
            "text": row["text"],
            "nickname": row["nickname"],
            "createdAt": row["created_at"],
            "userId": row["user_id"],
        }

        raw = (row["hashtags_json"] or "").strip()
        if raw:
            try:
                record["hashtags"] = json.loads(raw)
            except Exception as e:
                raise StorageError(f"Stored hashtags_json could not be parsed: {e}") from e
        if row["category_id"] is not None:
            record["categoryId"] = row["category_id"]

        return post_from_record(record)
