import os
import sys
import asyncio
import argparse
import logging
import logging.config

from moodboard_client.api.client import MoodboardAPI
from moodboard_client.core.config import ENV, Settings
from moodboard_client.views.board_list import BoardListView
from moodboard_client.views.board_view import BoardView

logger = logging.getLogger("moodboard_client")


def configure_logging():
    # Load logging config if present
    if os.path.exists("logging.conf"):
        logging.config.fileConfig("logging.conf", disable_existing_loggers=False)
        return
    logging.basicConfig(
        level=logging.DEBUG if ENV == "development" else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
        force=True,
    )


async def list_boards(api: MoodboardAPI, settings: Settings) -> int:
    view = BoardListView(api, settings)
    if not await view.mount():
        logger.error("❌ Could not load boards")
        return 1
    for board in view.state.boards:
        print(f"{board.id}\t{board.title}")
    return 0


async def watch_board(api: MoodboardAPI, settings: Settings, board_id: int) -> int:
    view = BoardView(api, board_id, settings)
    await view.mount()
    await view.wait_idle()
    print(view.state.title)
    for item in view.state.items:
        status = "ready" if item.is_resolved else "processing"
        print(f"  {item.id}\t{item.type}\t{status}\t{item.content or ''}")
    view.unmount()
    return 0


async def cluster_board(api: MoodboardAPI, settings: Settings, board_id: int) -> int:
    view = BoardView(api, board_id, settings)
    await view.mount()
    outcome = await view.compute_clusters()
    view.unmount()
    if outcome is None or not outcome.converged:
        logger.warning(f"⚠️ No labelled clusters for board {board_id} yet, try again later")
        return 1
    for cluster in view.state.clusters:
        print(f"{cluster.label} ({len(cluster.items)} items)")
    return 0


async def run(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    api = MoodboardAPI.from_url(args.api_url or settings.api_url)
    try:
        if args.command == "boards":
            return await list_boards(api, settings)
        if args.command == "watch":
            return await watch_board(api, settings, args.board_id)
        return await cluster_board(api, settings, args.board_id)
    finally:
        await api.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="moodboard", description="Moodboard API client")
    parser.add_argument("--api-url", help="Override MOODBOARD_API_URL")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("boards", help="List boards")
    watch = sub.add_parser("watch", help="Wait for a board's items to finish processing")
    watch.add_argument("board_id", type=int)
    cluster = sub.add_parser("cluster", help="Compute and print clusters for a board")
    cluster.add_argument("board_id", type=int)
    return parser


def main(argv=None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("🛑 Stopped.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
