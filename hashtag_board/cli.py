from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Sequence

from .board import LocalAuth, PostSource, create_post
from .config import config_sha256, load_config
from .config_schema import AppConfig
from .errors import AuthError, ConfigError, PostError, StorageError
from .hashtags import process_hashtags_from_text
from .post import NewPost
from .run_log import RunLogger
from .stats import (
    analyze_hashtag_trends,
    calculate_hashtag_stats,
    filter_posts_by_hashtag,
    get_co_occurring_hashtags,
    get_hashtag_suggestions,
    get_popular_hashtags,
    recent_popular_hashtags,
)
from .storage import BoardStore


@dataclass(frozen=True)
class _Context:
    config: AppConfig
    store: BoardStore
    posts: PostSource
    log: RunLogger


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file (defaults are used when omitted).",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="Path to the board SQLite database (overrides storage.db_path).",
    )
    parser.add_argument(
        "--log",
        default=None,
        help="Path to the JSONL activity log (defaults to the database path with .log).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hashtag_board")

    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser(
        "extract",
        help="Extract and validate hashtags from text without storing anything.",
    )
    extract.add_argument("text", help="Post text to scan for hashtags.")
    extract.add_argument("--config", default=None, help="Path to YAML config file.")
    extract.set_defaults(_handler=_cmd_extract)

    sign_in = subparsers.add_parser("sign-in", help="Create an anonymous user.")
    _add_common_options(sign_in)
    sign_in.set_defaults(_handler=_with_board(_cmd_sign_in))

    nickname = subparsers.add_parser("nickname", help="Set a user's nickname.")
    _add_common_options(nickname)
    nickname.add_argument("--user", required=True, help="User id from sign-in.")
    nickname.add_argument("name", help="Requested nickname.")
    nickname.set_defaults(_handler=_with_board(_cmd_nickname))

    post = subparsers.add_parser("post", help="Create a post.")
    _add_common_options(post)
    post.add_argument("--user", required=True, help="User id from sign-in.")
    post.add_argument(
        "--hashtag",
        action="append",
        default=[],
        help="Extra hashtag to attach (repeatable).",
    )
    post.add_argument("text", help="Post text; #hashtags in it are extracted.")
    post.set_defaults(_handler=_with_board(_cmd_post))

    list_cmd = subparsers.add_parser("list", help="List posts, oldest first.")
    _add_common_options(list_cmd)
    list_cmd.add_argument("--hashtag", default="", help="Only posts with a matching hashtag.")
    list_cmd.add_argument("--limit", type=int, default=None, help="Only the most recent N posts.")
    list_cmd.set_defaults(_handler=_with_board(_cmd_list))

    stats = subparsers.add_parser("stats", help="Hashtag usage counts.")
    _add_common_options(stats)
    stats.set_defaults(_handler=_with_board(_cmd_stats))

    popular = subparsers.add_parser("popular", help="Most used hashtags.")
    _add_common_options(popular)
    popular.add_argument("--limit", type=int, default=None)
    popular.add_argument(
        "--recent",
        action="store_true",
        help="Only consider the most recent posts (stats.recent_window).",
    )
    popular.set_defaults(_handler=_with_board(_cmd_popular))

    trends = subparsers.add_parser("trends", help="Hashtag usage summary.")
    _add_common_options(trends)
    trends.set_defaults(_handler=_with_board(_cmd_trends))

    related = subparsers.add_parser("related", help="Hashtags used together with a hashtag.")
    _add_common_options(related)
    related.add_argument("hashtag")
    related.set_defaults(_handler=_with_board(_cmd_related))

    suggest = subparsers.add_parser("suggest", help="Hashtag suggestions for a query.")
    _add_common_options(suggest)
    suggest.add_argument("query", nargs="?", default="")
    suggest.add_argument("--limit", type=int, default=None)
    suggest.set_defaults(_handler=_with_board(_cmd_suggest))

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _print_json(value: Any) -> None:
    print(json.dumps(value, ensure_ascii=False, sort_keys=True))


def _with_board(handler: Callable[[argparse.Namespace, _Context], int]) -> Callable[[argparse.Namespace], int]:
    def _run(args: argparse.Namespace) -> int:
        cfg = load_config(args.config)
        db_path = Path(args.db or cfg.storage.db_path)
        log_path = Path(args.log) if args.log else db_path.with_name(db_path.name + ".log")

        with RunLogger.open(log_path, command=args.command) as log:
            log.command_started(
                db_path=db_path,
                config_path=args.config,
                config_sha256=config_sha256(cfg),
            )
            try:
                with BoardStore.open(db_path) as store:
                    code = handler(args, _Context(config=cfg, store=store, posts=store, log=log))
                log.command_completed(exit_code=code)
                return code
            except Exception as e:
                log.command_failed(e)
                raise

    return _run


def _cmd_extract(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    result = process_hashtags_from_text(
        args.text,
        max_count=cfg.limits.hashtag_max_count,
        max_length=cfg.limits.hashtag_max_length,
    )

    print(f"hashtags={json.dumps(list(result.hashtags), ensure_ascii=False)}")
    print(f"is_valid={str(result.is_valid).lower()}")
    for err in result.errors:
        print(f"error={err}")

    return 0 if result.is_valid else 4


def _cmd_sign_in(args: argparse.Namespace, ctx: _Context) -> int:
    auth = LocalAuth(ctx.store, nickname_max_chars=ctx.config.limits.nickname_max_chars)
    user = auth.sign_in_anonymously()
    ctx.log.info("signed_in", user_id=user.uid)

    print(f"uid={user.uid}")
    return 0


def _cmd_nickname(args: argparse.Namespace, ctx: _Context) -> int:
    auth = LocalAuth(ctx.store, nickname_max_chars=ctx.config.limits.nickname_max_chars)
    auth.resume(args.user)
    user = auth.set_nickname(args.name)
    ctx.log.info(
        "nickname_set",
        user_id=user.uid,
        requested=args.name,
        nickname=user.nickname,
    )

    print(f"uid={user.uid}")
    print(f"nickname={user.nickname}")
    return 0


def _cmd_post(args: argparse.Namespace, ctx: _Context) -> int:
    auth = LocalAuth(ctx.store, nickname_max_chars=ctx.config.limits.nickname_max_chars)
    auth.resume(args.user)

    post = create_post(
        NewPost(text=args.text, hashtags=tuple(args.hashtag or ())),
        auth=auth,
        sink=ctx.store,
        limits=ctx.config.limits,
        logger=ctx.log,
    )

    print(f"post_id={post.post_id}")
    print(f"hashtags={json.dumps(list(post.hashtags), ensure_ascii=False)}")
    return 0


def _cmd_list(args: argparse.Namespace, ctx: _Context) -> int:
    posts = ctx.posts.list_posts(limit=args.limit)
    for post in filter_posts_by_hashtag(posts, args.hashtag):
        _print_json(
            {
                "id": post.post_id,
                "text": post.text,
                "nickname": post.nickname,
                "hashtags": list(post.hashtags),
                "created_at": post.created_at,
            }
        )
    return 0


def _cmd_stats(args: argparse.Namespace, ctx: _Context) -> int:
    for stat in calculate_hashtag_stats(ctx.posts.list_posts()):
        _print_json({"hashtag": stat.hashtag, "count": stat.count, "posts": list(stat.posts)})
    return 0


def _cmd_popular(args: argparse.Namespace, ctx: _Context) -> int:
    limit = args.limit if args.limit is not None else ctx.config.stats.popular_limit
    posts = ctx.posts.list_posts()

    if args.recent:
        ranked = recent_popular_hashtags(posts, limit, window=ctx.config.stats.recent_window)
    else:
        ranked = get_popular_hashtags(posts, limit)

    for item in ranked:
        _print_json(asdict(item))
    return 0


def _cmd_trends(args: argparse.Namespace, ctx: _Context) -> int:
    summary = analyze_hashtag_trends(ctx.posts.list_posts())

    print(f"total_hashtags={summary.total_hashtags}")
    print(f"unique_hashtags={summary.unique_hashtags}")
    print(f"average_hashtags_per_post={summary.average_hashtags_per_post:.2f}")
    print(f"most_popular={summary.most_popular or ''}")
    print(f"least_used={json.dumps(list(summary.least_used), ensure_ascii=False)}")
    return 0


def _cmd_related(args: argparse.Namespace, ctx: _Context) -> int:
    for item in get_co_occurring_hashtags(ctx.posts.list_posts(), args.hashtag):
        _print_json(asdict(item))
    return 0


def _cmd_suggest(args: argparse.Namespace, ctx: _Context) -> int:
    limit = args.limit if args.limit is not None else ctx.config.stats.suggestion_limit
    for item in get_hashtag_suggestions(ctx.posts.list_posts(), args.query, limit):
        _print_json(asdict(item))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except (StorageError, PostError, AuthError) as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
