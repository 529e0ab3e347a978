#!/usr/bin/env python3
"""
Eliza - Main Entry Point
========================

This is the main entry point for the Eliza conversation engine.
It provides a command-line interface for chatting with a script
and for inspecting or converting scripts.

Usage:
    python main.py                          # Chat with the bundled script
    python main.py --script my_script.txt   # Chat with another script
    python main.py --sleep                  # Delay replies like a typist
    python main.py --test "I am sad"        # Print replies without a session
    python main.py --export-yaml out.yaml   # Convert a script to YAML
    python main.py --help                   # Show help
"""

import sys
import argparse
import random
from pathlib import Path
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from core.config import load_config, Config
from core.logging import setup_logging, get_logger
from core.exceptions import ElizaError
from rules.script import ElizaScript, load_script, save_script
from services.responder import ResponseEngine

logger = get_logger("main")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Eliza - script-driven conversational agent",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                              Chat with the bundled script
  python main.py --script doctor.yaml         Chat with a YAML script
  python main.py --sleep                      Delay replies by 1.5-2 seconds
  python main.py --seed 7 --test "I am sad"   Reproducible one-off replies
  python main.py --export-yaml doctor.yaml    Convert the script to YAML
        """
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--test",
        nargs="+",
        metavar="MESSAGE",
        help="Reply to each message in turn and exit"
    )
    mode_group.add_argument(
        "--export-yaml",
        type=str,
        metavar="PATH",
        help="Write the loaded script as YAML and exit"
    )

    parser.add_argument(
        "--script",
        type=str,
        metavar="PATH",
        help="Conversation script (text or .yaml)"
    )
    parser.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="Path to configuration file"
    )
    parser.add_argument(
        "--sleep",
        action="store_true",
        help="Delay each reply as if it were being typed"
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed the random source for reproducible conversations"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Write the debug log file as JSON lines"
    )

    return parser.parse_args(argv)


def build_engine(config: Config) -> ResponseEngine:
    """Load the configured script and wrap it in an engine."""
    rng = random.Random(config.engine.seed)
    script_path = config.engine.resolve_script_path()
    script = load_script(str(script_path), rng)
    return ResponseEngine(script, config.engine, rng)


def run_test_messages(engine: ResponseEngine, messages: List[str]) -> None:
    """Reply to each message and show where the reply came from."""
    print(f"Eliza: {engine.get_welcome_message()}")
    for message in messages:
        result = engine.respond(message)
        print(f">>{message}")
        print(f"Eliza: {result.response}")
        detail = result.source.value
        if result.keyword:
            detail += f", keyword '{result.keyword}' in '{result.sentence}'"
        if result.typo:
            detail += ", typo"
        print(f"  ({detail})")
        if not engine.is_active():
            break


def run_export(script: ElizaScript, path: str) -> None:
    """Save the script as YAML."""
    save_script(script, path)
    print(f"✓ Script written to {path}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)

        # Apply command-line overrides
        if args.script:
            config.engine.script_path = args.script
        if args.seed is not None:
            config.engine.seed = args.seed
        if args.sleep:
            config.console.sleep_enabled = True
        if args.debug:
            config.debug = True
        if args.log_json:
            config.log_json = True

        setup_logging(
            log_dir=config.log_dir if config.debug else None,
            log_level="DEBUG" if config.debug else "WARNING",
            json_format=config.log_json,
            console_output=True
        )

        engine = build_engine(config)

        if args.export_yaml:
            run_export(engine.script, args.export_yaml)
        elif args.test:
            run_test_messages(engine, args.test)
        else:
            from ui.terminal.app import run_console
            run_console(engine, config.console)

        return 0

    except ElizaError as e:
        print(f"\nError: {e}", file=sys.stderr)
        print("Now terminating.", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 0


if __name__ == "__main__":
    sys.exit(main())
