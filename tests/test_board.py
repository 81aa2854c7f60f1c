from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from hashtag_board.board import LocalAuth, create_post, validate_nickname
from hashtag_board.config_schema import LimitsConfig
from hashtag_board.errors import AuthError, PostError
from hashtag_board.post import NewPost
from hashtag_board.run_log import RunLogger
from hashtag_board.storage import BoardStore


def _signed_in(store: BoardStore, nickname: str = "taro") -> LocalAuth:
    auth = LocalAuth(store)
    auth.sign_in_anonymously()
    auth.set_nickname(nickname)
    return auth


class TestLocalAuth(unittest.TestCase):
    def test_sign_in_and_nickname(self) -> None:
        with BoardStore.open(":memory:") as store:
            auth = LocalAuth(store)
            self.assertIsNone(auth.current_user())

            user = auth.sign_in_anonymously()
            self.assertEqual(auth.current_user(), user)

            named = auth.set_nickname("  taro ")
            self.assertEqual(named.nickname, "taro")
            self.assertEqual(named.uid, user.uid)

    def test_taken_nickname_gets_suffix(self) -> None:
        with BoardStore.open(":memory:") as store:
            _signed_in(store, "taro")
            second = _signed_in(store, "taro")
            third = _signed_in(store, "taro")

            user2 = second.current_user()
            user3 = third.current_user()
            assert user2 is not None and user3 is not None
            self.assertEqual(user2.nickname, "taro2")
            self.assertEqual(user3.nickname, "taro3")

    def test_suffixed_nickname_fits_the_limit(self) -> None:
        name = "a" * 20
        with BoardStore.open(":memory:") as store:
            _signed_in(store, name)
            second = _signed_in(store, name).current_user()
            third = _signed_in(store, name).current_user()

            assert second is not None and third is not None
            self.assertEqual(second.nickname, "a" * 19 + "2")
            self.assertEqual(third.nickname, "a" * 19 + "3")
            self.assertEqual(validate_nickname(second.nickname), second.nickname)

    def test_renaming_to_own_nickname_keeps_it(self) -> None:
        with BoardStore.open(":memory:") as store:
            auth = _signed_in(store, "taro")
            self.assertEqual(auth.set_nickname("taro").nickname, "taro")

    def test_requires_sign_in(self) -> None:
        with BoardStore.open(":memory:") as store:
            with self.assertRaises(AuthError):
                LocalAuth(store).set_nickname("taro")
            with self.assertRaises(AuthError):
                LocalAuth(store).resume("unknown")

    def test_resume_existing_user(self) -> None:
        with BoardStore.open(":memory:") as store:
            uid = _signed_in(store, "taro").current_user().uid  # type: ignore[union-attr]
            auth = LocalAuth(store)
            self.assertEqual(auth.resume(uid).nickname, "taro")

    def test_validate_nickname(self) -> None:
        self.assertEqual(validate_nickname(" hanako "), "hanako")
        with self.assertRaises(AuthError):
            validate_nickname("   ")
        with self.assertRaises(AuthError):
            validate_nickname("x" * 21)
        self.assertEqual(validate_nickname("x" * 21, max_chars=30), "x" * 21)


class TestCreatePost(unittest.TestCase):
    def test_attaches_extracted_and_explicit_hashtags(self) -> None:
        with BoardStore.open(":memory:") as store:
            auth = _signed_in(store)
            post = create_post(
                NewPost(text="  Hello #Fun #文化祭  ", hashtags=("#fun", "Extra")),
                auth=auth,
                sink=store,
            )

            self.assertEqual(post.text, "Hello #Fun #文化祭")
            self.assertEqual(post.hashtags, ("fun", "文化祭", "extra"))
            self.assertEqual(post.nickname, "taro")
            self.assertEqual([p.post_id for p in store.list_posts()], [post.post_id])

    def test_requires_nickname(self) -> None:
        with BoardStore.open(":memory:") as store:
            auth = LocalAuth(store)
            with self.assertRaises(PostError):
                create_post(NewPost(text="hi"), auth=auth, sink=store)

            auth.sign_in_anonymously()
            with self.assertRaises(PostError):
                create_post(NewPost(text="hi"), auth=auth, sink=store)

    def test_rejects_blank_and_long_text(self) -> None:
        with BoardStore.open(":memory:") as store:
            auth = _signed_in(store)
            with self.assertRaises(PostError):
                create_post(NewPost(text="   "), auth=auth, sink=store)
            with self.assertRaises(PostError):
                create_post(NewPost(text="x" * 501), auth=auth, sink=store)
            self.assertEqual(store.post_count(), 0)

    def test_rejects_invalid_hashtags_without_storing(self) -> None:
        with BoardStore.open(":memory:") as store:
            auth = _signed_in(store)
            text = " ".join(f"#t{i}" for i in range(11))

            with self.assertRaises(PostError) as ctx:
                create_post(NewPost(text=text), auth=auth, sink=store)
            self.assertIn("At most 10 hashtags are allowed", str(ctx.exception))

            with self.assertRaises(PostError):
                create_post(
                    NewPost(text="ok", hashtags=("a" * 51,)),
                    auth=auth,
                    sink=store,
                )
            self.assertEqual(store.post_count(), 0)

    def test_custom_limits(self) -> None:
        with BoardStore.open(":memory:") as store:
            auth = _signed_in(store)
            limits = LimitsConfig(hashtag_max_count=1, post_max_chars=20)

            with self.assertRaises(PostError):
                create_post(NewPost(text="#a #b"), auth=auth, sink=store, limits=limits)
            post = create_post(NewPost(text="#a"), auth=auth, sink=store, limits=limits)
            self.assertEqual(post.hashtags, ("a",))

    def test_logs_created_and_rejected_posts(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            log_path = Path(td) / "board.log"
            with BoardStore.open(":memory:") as store, RunLogger.open(log_path) as log:
                auth = _signed_in(store)
                create_post(NewPost(text="#ok"), auth=auth, sink=store, logger=log)
                with self.assertRaises(PostError):
                    create_post(
                        NewPost(text="fine", hashtags=("", "x" * 60)),
                        auth=auth,
                        sink=store,
                        logger=log,
                    )

            records = [
                json.loads(line)
                for line in log_path.read_text(encoding="utf-8").splitlines()
                if line.strip()
            ]
            events = [r["event"] for r in records]
            self.assertEqual(events, ["post_created", "post_rejected"])
            self.assertEqual(records[0]["data"]["hashtags"], ["ok"])


if __name__ == "__main__":
    unittest.main()
