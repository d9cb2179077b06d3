"""CLI commands for the memory store.

Provides subcommands for importing transcripts, inspecting what would be
retrieved, listing records due for verification and running decay.
"""

import argparse
import os
import sys
from pathlib import Path

from groq import Groq

from .config import MemoryConfig, load_config
from .logging import configure_logger
from .memory import MemoryExtractor, MemoryManager, MemoryStore, default_registry
from .memory.models import Memory


def _get_config() -> MemoryConfig:
    """Load config from disk, applying environment overrides."""
    config = load_config()
    db_path = os.environ.get("HEARTH_DB_PATH")
    if db_path:
        config.db_path = Path(db_path).expanduser()
    return config


def _get_manager(config: MemoryConfig | None = None) -> MemoryManager:
    """Create a MemoryManager over the configured database."""
    config = config or _get_config()
    store = MemoryStore(config.db_path)
    store.init_db()

    llm_client = None
    api_key = os.environ.get("GROQ_API_KEY")
    if config.model_detector and api_key:
        llm_client = Groq(api_key=api_key)

    extractor = MemoryExtractor(config, registry=default_registry(config, llm_client))
    event_logger = configure_logger(config.log_dir)
    return MemoryManager(store, config=config, extractor=extractor, event_logger=event_logger)


def _format_scope(persona_id: str | None) -> str:
    return persona_id if persona_id else "shared"


def _print_memories(memories: list[Memory]) -> None:
    """Print records as a table."""
    print(f"\n{'ID':<10} {'Type':<16} {'Scope':<12} {'Imp':>3} {'Str':>5}  Content")
    print("-" * 80)

    for memory in memories:
        content = memory.content
        if len(content) > 40:
            content = content[:37] + "..."
        print(
            f"{memory.id[:8]:<10} {memory.type.value:<16} "
            f"{_format_scope(memory.persona_id):<12} {memory.importance:>3} "
            f"{memory.strength:>5.2f}  {content}"
        )


def cmd_import(args: argparse.Namespace) -> int:
    """Import a pasted transcript file."""
    path = Path(args.file)
    if not path.exists():
        print(f"Error: File not found: {path}")
        return 1

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error: Cannot read {path}: {e}")
        return 1

    manager = _get_manager()
    try:
        report = manager.import_transcript(
            text,
            args.owner,
            args.persona,
            assistant_names=tuple(args.assistant_name or ()),
        )
    finally:
        manager.store.close()

    print(f"Imported {len(report.inserted)} new memories, updated {len(report.updated)}.")
    if report.flagged:
        print(f"Flagged {len(report.flagged)} for verification.")
    if report.failures:
        print(f"Error: {report.failures} record(s) could not be saved.")
        return 1
    return 0


def cmd_retrieve(args: argparse.Namespace) -> int:
    """Show what would be injected into the next response."""
    manager = _get_manager()
    try:
        memories = manager.retrieve(args.owner, args.persona, args.budget)
    finally:
        manager.store.close()

    if not memories:
        print("No memories found.")
        return 0

    if args.prompt:
        print(manager.format_for_prompt(memories))
        return 0

    _print_memories(memories)
    print(f"\nTotal: {len(memories)} memory(ies)")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """List records worth reconfirming with the user."""
    manager = _get_manager()
    try:
        memories = manager.needs_verification(args.owner, args.persona, args.limit)
    finally:
        manager.store.close()

    if not memories:
        print("Nothing to verify.")
        return 0

    _print_memories(memories)
    print(f"\nTotal: {len(memories)} memory(ies) to verify")
    return 0


def cmd_decay(args: argparse.Namespace) -> int:
    """Run the decay pass."""
    manager = _get_manager()
    try:
        lowered = manager.run_decay(owner=args.owner)
    finally:
        manager.store.close()

    print(f"Decayed {lowered} memory(ies).")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """List stored records of an owner."""
    manager = _get_manager()
    try:
        if args.persona:
            memories = manager.store.list_scoped(args.owner, args.persona)
        else:
            memories = manager.store.list_owner(args.owner)
    finally:
        manager.store.close()

    if not memories:
        print("No memories found.")
        return 0

    _print_memories(memories)
    print(f"\nTotal: {len(memories)} memory(ies)")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the memory CLI."""
    parser = argparse.ArgumentParser(
        prog="hearth",
        description="Manage companion memories",
    )

    subparsers = parser.add_subparsers(dest="command", help="Sub-command help")

    # import command
    import_parser = subparsers.add_parser("import", help="Import a pasted transcript")
    import_parser.add_argument("file", help="Transcript text file")
    import_parser.add_argument("--owner", required=True, help="User to import for")
    import_parser.add_argument("--persona", help="Persona scope (shared if omitted)")
    import_parser.add_argument(
        "--assistant-name",
        action="append",
        help="Speaker label used for the assistant (repeatable)",
    )

    # retrieve command
    retrieve_parser = subparsers.add_parser("retrieve", help="Show memories for the next response")
    retrieve_parser.add_argument("--owner", required=True, help="User to retrieve for")
    retrieve_parser.add_argument("--persona", help="Active persona")
    retrieve_parser.add_argument("-n", "--budget", type=int, default=10, help="Maximum records")
    retrieve_parser.add_argument(
        "--prompt",
        action="store_true",
        help="Print the formatted prompt block instead of a table",
    )

    # verify command
    verify_parser = subparsers.add_parser("verify", help="List memories to reconfirm")
    verify_parser.add_argument("--owner", required=True, help="User to check")
    verify_parser.add_argument("--persona", help="Active persona")
    verify_parser.add_argument("-n", "--limit", type=int, default=3, help="Maximum records")

    # decay command
    decay_parser = subparsers.add_parser("decay", help="Run the decay pass")
    decay_parser.add_argument("--owner", help="Restrict to one user")

    # list command
    list_parser = subparsers.add_parser("list", help="List stored memories")
    list_parser.add_argument("--owner", required=True, help="User to list")
    list_parser.add_argument("--persona", help="Shared + this persona only")

    return parser


def run_cli(argv: list[str] | None = None) -> int:
    """Run the CLI with given arguments.

    Args:
        argv: Command-line arguments. Uses sys.argv[1:] if None.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "import": cmd_import,
        "retrieve": cmd_retrieve,
        "verify": cmd_verify,
        "decay": cmd_decay,
        "list": cmd_list,
    }

    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(run_cli())
