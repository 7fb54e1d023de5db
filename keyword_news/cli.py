"""
keyword-news — command line front end for the keyword news feed.

Usage:
  keyword-news feed [--mode all|recommended|subscribe|bookmarks|deep]
                    [--search TEXT | --keyword KW] [--group-by date|hour]
  keyword-news bookmark NEWS_ID
  keyword-news vote NEWS_ID up|down
  keyword-news comment NEWS_ID TEXT
  keyword-news insight NEWS_ID
  keyword-news watch [--interval SECONDS]

Configuration comes from the environment / .env (see keyword_news.config).
Without Supabase credentials bookmarks are kept in a local JSON file and
votes/comments are unavailable.
"""

import argparse
import sys
import threading
from dataclasses import dataclass

from . import __version__
from .bookmarks import BookmarkState, LocalBookmarkStore, RemoteBookmarkStore
from .config import GROUP_BY_CHOICES, Settings, load_env_file, load_settings
from .errors import ConfigError, RemoteCallError
from .feed import fetch_feed, variant_for
from .gemini import GeminiClient
from .identity import resolve_user_id
from .insights import InsightAggregator
from .records import NewsRecord
from .state import AppState
from .store import bookmarks_collection, comments_collection, get_supabase, metrics_collection
from .views import VIEW_ALL, VIEW_MODES, format_group_header


@dataclass
class Services:
    settings: Settings
    user_id: str
    bookmarks: BookmarkState
    insights: InsightAggregator | None


def build_services(settings: Settings) -> Services:
    supabase = get_supabase(settings.supabase_url, settings.supabase_key) if settings.has_supabase else None
    if supabase is None:
        print("⚠️  SUPABASE_URL / SUPABASE_KEY not set — using local bookmarks, insights disabled.",
              file=sys.stderr)
    user_id = resolve_user_id(supabase, settings.supabase_auth_token)

    if supabase is not None:
        bookmarks = BookmarkState(RemoteBookmarkStore(bookmarks_collection(supabase, settings.app_id, user_id)))
        writer = GeminiClient(settings.gemini_api_key, settings.gemini_model,
                              base_delay=settings.retry_base_delay) if settings.has_gemini else None
        insights = InsightAggregator(
            metrics_collection(supabase, settings.app_id),
            comments_collection(supabase, settings.app_id),
            writer=writer,
            vote_rpc=settings.insight_vote_rpc,
        )
    else:
        bookmarks = BookmarkState(LocalBookmarkStore(settings.bookmarks_path))
        insights = None

    bookmarks.refresh()
    return Services(settings=settings, user_id=user_id, bookmarks=bookmarks, insights=insights)


def load_state(services: Services, view_mode: str = VIEW_ALL) -> AppState:
    state = AppState().with_view_mode(view_mode).with_bookmarks(services.bookmarks.ids)
    state, ticket = state.begin_fetch()
    result = fetch_feed(services.settings, variant_for(state.view_mode))
    state = state.commit_fetch(ticket, result)
    if services.insights is not None:
        services.insights.refresh()
        state = state.with_metrics(services.insights.all_metrics).with_comments(services.insights.all_comments)
    return state


def find_record(state: AppState, news_id: str) -> NewsRecord | None:
    return next((r for r in state.records if r.id == news_id), None)


def render_state(state: AppState, services: Services, granularity: str) -> None:
    latest = state.latest()
    if latest:
        print(f"업데이트: {latest.date} {latest.time}")
    if state.error:
        print(f"⚠️  {state.error}")

    groups = state.grouped(granularity)
    if not groups:
        print("표시할 뉴스가 없습니다.")
        return

    for key, items in groups.items():
        print(f"\n## {format_group_header(key)}")
        for news in items:
            star = "★" if news.id in state.bookmarks else "☆"
            print(f"{star} {news.title}")
            if news.summary:
                print(f"    {news.summary}")
            meta = [part for part in (news.keyword, news.source, f"{news.date} {news.time}") if part]
            print(f"    {' · '.join(meta)}")
            if news.url:
                print(f"    🔗 {news.url}")
            if services.insights is not None:
                m = state.metrics.get(news.id)
                n_comments = sum(1 for c in state.comments if c.news_id == news.id)
                if m or n_comments:
                    up, down = (m.upvotes, m.downvotes) if m else (0, 0)
                    print(f"    👍 {up}  👎 {down}  💬 {n_comments}")
            print(f"    id: {news.id}")


# --- commands ---

def cmd_feed(args, services: Services) -> int:
    state = load_state(services, args.mode)
    if args.search:
        state = state.with_search(args.search)
    elif args.keyword:
        state = state.with_keyword(args.keyword)
    render_state(state, services, args.group_by or services.settings.group_by)
    return 0


def cmd_bookmark(args, services: Services) -> int:
    before = args.news_id in services.bookmarks
    now = services.bookmarks.toggle(args.news_id)
    if now == before:
        print(f"❌ Bookmark unchanged for {args.news_id}.")
        return 1
    print(f"{'★ Bookmarked' if now else '☆ Removed bookmark'}: {args.news_id}")
    return 0


def _require_insights(services: Services):
    if services.insights is None:
        print("❌ Insights need SUPABASE_URL and SUPABASE_KEY.", file=sys.stderr)
    return services.insights


def cmd_vote(args, services: Services) -> int:
    insights = _require_insights(services)
    if insights is None:
        return 1
    metric = insights.vote(args.news_id, args.direction)
    if metric is None:
        return 1
    print(f"👍 {metric.upvotes}  👎 {metric.downvotes}  ({args.news_id})")
    return 0


def cmd_comment(args, services: Services) -> int:
    insights = _require_insights(services)
    if insights is None:
        return 1
    record = find_record(load_state(services), args.news_id)
    title = record.title if record else args.news_id
    try:
        comment, reply = insights.add_comment(args.news_id, args.text, services.user_id, title=title)
    except RemoteCallError as e:
        print(f"💬 Comment saved, but the AI reply failed: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ Comment failed: {e}", file=sys.stderr)
        return 1
    print(f"💬 {comment.text}")
    if reply:
        print(f"🤖 {reply.text}")
    return 0


def cmd_insight(args, services: Services) -> int:
    insights = _require_insights(services)
    if insights is None:
        return 1
    record = find_record(load_state(services), args.news_id)
    if record is None:
        print(f"❌ No news item with id {args.news_id}.", file=sys.stderr)
        return 1
    print(f"✍️ {record.title}")
    print(insights.generate_insight(record))
    for c in insights.comments_for(record.id):
        print(f"  {'🤖' if c.role == 'ai' else '💬'} [{c.timestamp}] {c.text}")
    return 0


def cmd_watch(args, services: Services) -> int:
    """Follow bookmark changes from the store until interrupted."""
    store = services.bookmarks.store
    if not isinstance(store, RemoteBookmarkStore):
        print("❌ watch needs SUPABASE_URL and SUPABASE_KEY.", file=sys.stderr)
        return 1
    stop = threading.Event()
    try:
        for rows in store.collection.snapshots(interval=args.interval, stop_event=stop):
            ids = services.bookmarks.sync(row["news_id"] for row in rows if row.get("news_id"))
            print(f"🔄 {len(ids)} bookmark(s): {', '.join(sorted(ids)) or '-'}")
    except KeyboardInterrupt:
        stop.set()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="keyword-news", description="Keyword news feed")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("feed", help="Show the grouped news feed")
    p.add_argument("--mode", choices=VIEW_MODES, default=VIEW_ALL)
    search = p.add_mutually_exclusive_group()
    search.add_argument("--search", default="")
    search.add_argument("--keyword", default="")
    p.add_argument("--group-by", choices=GROUP_BY_CHOICES, default=None)
    p.set_defaults(func=cmd_feed)

    p = sub.add_parser("bookmark", help="Toggle a bookmark")
    p.add_argument("news_id")
    p.set_defaults(func=cmd_bookmark)

    p = sub.add_parser("vote", help="Up/down vote an insight")
    p.add_argument("news_id")
    p.add_argument("direction", choices=("up", "down"))
    p.set_defaults(func=cmd_vote)

    p = sub.add_parser("comment", help="Comment on a news item and get an AI reply")
    p.add_argument("news_id")
    p.add_argument("text")
    p.set_defaults(func=cmd_comment)

    p = sub.add_parser("insight", help="Generate an AI insight for a news item")
    p.add_argument("news_id")
    p.set_defaults(func=cmd_insight)

    p = sub.add_parser("watch", help="Follow bookmark changes")
    p.add_argument("--interval", type=float, default=5.0)
    p.set_defaults(func=cmd_watch)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    load_env_file()
    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"❌ ERROR: {e}", file=sys.stderr)
        return 2
    services = build_services(settings)
    return args.func(args, services)


if __name__ == "__main__":
    sys.exit(main())
