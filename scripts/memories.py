#!/usr/bin/env python3
"""Inspect and edit the companion's memories.

Usage examples:
    # Everything, newest first
    uv run python scripts/memories.py list

    # What would be recalled for a message
    uv run python scripts/memories.py search "dinner tonight" --top-k 5

    # Add a memory by hand (skipped if a near-duplicate exists)
    uv run python scripts/memories.py add "Allergic to peanuts" --category fact --importance 9

    # Fix or remove one
    uv run python scripts/memories.py edit 3f2a... "Allergic to peanuts and cashews"
    uv run python scripts/memories.py delete 3f2a...
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Allow running from project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.config import settings
from src.errors import ValidationError
from src.memory.models import CATEGORIES
from src.memory.retrieval import retrieve
from src.memory.store import MemoryStore


async def cmd_list(store: MemoryStore, _args: argparse.Namespace) -> int:
    memories = await store.list_all()
    if not memories:
        print("No memories stored.")
        return 0
    for m in memories:
        print(f"{m.id}  [{m.category:<10}] {m.importance:>2}  {m.content}")
    print(f"\n{len(memories)} memories")
    return 0


async def cmd_search(store: MemoryStore, args: argparse.Namespace) -> int:
    results = retrieve(
        await store.list_all(),
        args.query,
        top_k=args.top_k,
        min_score=settings.retrieval_min_score,
    )
    if not results:
        print("No relevant memories.")
        return 0
    for m in results:
        print(f"{m.score:.3f}  [{m.category}] {m.content}")
    return 0


async def cmd_add(store: MemoryStore, args: argparse.Namespace) -> int:
    memory_id = await store.add_unique(args.content, args.category, args.importance)
    if memory_id is None:
        print("Skipped: a similar memory already exists.")
        return 1
    print(f"Added {memory_id}")
    return 0


async def cmd_edit(store: MemoryStore, args: argparse.Namespace) -> int:
    if not await store.update(args.id, args.content):
        print(f"Memory not found: {args.id}", file=sys.stderr)
        return 1
    print("Updated.")
    return 0


async def cmd_delete(store: MemoryStore, args: argparse.Namespace) -> int:
    if not await store.delete(args.id):
        print(f"Memory not found: {args.id}", file=sys.stderr)
        return 1
    print("Deleted.")
    return 0


COMMANDS = {
    "list": cmd_list,
    "search": cmd_search,
    "add": cmd_add,
    "edit": cmd_edit,
    "delete": cmd_delete,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage companion memories")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List all memories")

    search = sub.add_parser("search", help="Rank memories against a query")
    search.add_argument("query")
    search.add_argument("--top-k", type=int, default=settings.retrieval_top_k)

    add = sub.add_parser("add", help="Add a memory")
    add.add_argument("content")
    add.add_argument("--category", choices=CATEGORIES, default="general")
    add.add_argument("--importance", type=int, default=5)

    edit = sub.add_parser("edit", help="Replace a memory's content")
    edit.add_argument("id")
    edit.add_argument("content")

    delete = sub.add_parser("delete", help="Delete a memory")
    delete.add_argument("id")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    store = MemoryStore.get()
    try:
        code = asyncio.run(COMMANDS[args.command](store, args))
    except ValidationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        code = 2
    sys.exit(code)


if __name__ == "__main__":
    main()
