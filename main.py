"""
main.py — command-line front end for Study Share.

    python main.py list papers [--mine]
    python main.py view     papers <item-id> <file-path> [--title T]
    python main.py download notes  <item-id> <file-path> [--title T] [--out DIR]
    python main.py open     papers <item-id> <file-path> [--title T]

Configuration comes from the environment (or .env):
    STUDY_SHARE_API_URL   base URL of the API (default http://localhost:8000)
    STUDY_SHARE_TOKEN     bearer token; omit to act anonymously
    DOWNLOAD_ROOT         default download directory
"""
import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv
from rich.progress import BarColumn, DownloadColumn, Progress, TransferSpeedColumn
from rich.table import Table

from studyshare.broker_client import BrokerClient
from studyshare.errors import StudyShareError
from studyshare.retrieval import RetrievalPipeline
from studyshare.utils import console, setup_logging

load_dotenv()

log = logging.getLogger("study_share.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="study-share", description="Study Share papers & notes")
    parser.add_argument("--api-url", default=os.getenv("STUDY_SHARE_API_URL", "http://localhost:8000"))
    parser.add_argument("--token", default=os.getenv("STUDY_SHARE_TOKEN"))
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("list", help="List approved items (or your own with --mine)")
    ls.add_argument("bucket", choices=["papers", "notes"])
    ls.add_argument("--mine", action="store_true")

    for name, help_text in (
        ("view", "Preview the first pages in the terminal"),
        ("download", "Save the PDF to disk"),
        ("open", "Open the PDF in a browser tab"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("bucket", choices=["papers", "notes"])
        p.add_argument("item_id")
        p.add_argument("file_path")
        p.add_argument("--title", default=None)
        if name == "download":
            p.add_argument("--out", type=Path, default=None)

    return parser


def _print_listing(rows: list) -> None:
    table = Table("id", "title", "subject", "status", "downloads")
    for r in rows:
        table.add_row(r["id"], r.get("title") or "", r.get("subject") or "", r["status"], str(r["downloads"]))
    console.print(table)


async def run(args: argparse.Namespace) -> int:
    async with BrokerClient(args.api_url, args.token) as broker, httpx.AsyncClient(timeout=60.0) as http:
        if args.command == "list":
            try:
                _print_listing(await broker.list_records(args.bucket, mine=args.mine))
            except StudyShareError as exc:
                console.print(f"[red]{exc.message}[/red]")
                return 1
            return 0

        pipeline = RetrievalPipeline(broker, http, download_root=getattr(args, "out", None))
        title = args.title or Path(args.file_path).stem

        if args.command == "view":
            ok = await pipeline.view(args.bucket, args.file_path, args.item_id, title)
            if not ok and pipeline.preview.offer_new_context:
                console.print("[dim]Tip: try `open` to view it in your browser instead.[/dim]")

        elif args.command == "download":
            with Progress("[progress.description]{task.description}", BarColumn(),
                          DownloadColumn(), TransferSpeedColumn(), console=console) as progress:
                task = progress.add_task(title, total=None)
                path = await pipeline.download(
                    args.bucket, args.file_path, args.item_id, f"{title}.pdf",
                    progress=lambda done, total: progress.update(task, completed=done, total=total),
                )
            ok = path is not None
            if ok:
                console.print(f"[green]Downloaded[/green] {path}")

        else:
            ok = await pipeline.open_external(args.bucket, args.file_path, args.item_id, title) is not None

        await pipeline.aclose()

    if not ok:
        console.print(f"[red]{pipeline.state.error or 'Something went wrong.'}[/red]")
        return 1
    return 0


def main() -> None:
    args = build_parser().parse_args()
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
