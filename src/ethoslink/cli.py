#!/usr/bin/env python3
"""
ethoslink CLI — Run reputation intents from the command line.

Commands:
    normalize - Classify an identifier
    execute   - Run one intent: ethoslink execute user_profile userkey=cookedzera
    intents   - List supported intents

Lists are passed comma-separated: userkeys=vitalik,cookedzera
"""

import argparse
import asyncio
import json
import sys
from typing import Optional


def _output(data: dict, args: argparse.Namespace, human_fn=None):
    """Output data as JSON or pretty-printed."""
    if getattr(args, 'json', False):
        print(json.dumps(data, indent=2, default=str))
    elif human_fn:
        human_fn(data)
    else:
        print(json.dumps(data, indent=2, default=str))


def _parse_params(pairs: list[str]) -> dict:
    params = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got {pair!r}")
        params[key.strip()] = value.strip()
    return params


# ─── Commands ──────────────────────────────────────────────────────

def cmd_normalize(args):
    """Classify a raw identifier."""
    from ethoslink.identity import normalize

    result = normalize(args.identifier).to_dict()

    def human(d):
        print(f"Input:   {d['rawInput']!r}")
        print(f"Kind:    {d['kind']}")
        print(f"Value:   {d['normalizedValue']}")
        print(f"Userkey: {d['userkey']}")

    _output(result, args, human)
    return result


def cmd_execute(args):
    """Run one intent and print the envelope."""
    from ethoslink.config import EngineConfig
    from ethoslink.dispatcher import IntentDispatcher
    from ethoslink.log import setup_logging

    config = EngineConfig.from_env()
    setup_logging(args.log_level or config.log_level)
    params = _parse_params(args.params)

    async def run():
        async with IntentDispatcher(config) as dispatcher:
            return await dispatcher.execute(args.intent, params)

    result = asyncio.run(run()).to_dict()

    def human(d):
        mark = "✅" if d["success"] else "❌"
        source = "live directory" if d["isRealData"] else "fallback data"
        print(f"{mark} {d['message']}")
        if d["success"]:
            print(f"   Source: {source}")
            print(json.dumps(d["data"], indent=2, default=str))

    _output(result, args, human)
    return result


def cmd_intents(args):
    """List supported intents."""
    from ethoslink.dispatcher import Intent

    result = {"intents": [i.value for i in Intent]}

    def human(d):
        for name in d["intents"]:
            print(f"  {name}")

    _output(result, args, human)
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ethoslink",
        description="ethoslink — Web3 reputation query CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--json", action="store_true", help="Machine-readable JSON output")

    sub = parser.add_subparsers(dest="command", help="Available commands")

    p = sub.add_parser("normalize", help="Classify an identifier")
    p.add_argument("identifier", help="Address, ENS name, username or prefixed id")

    p = sub.add_parser("execute", help="Run one intent")
    p.add_argument("intent", help="Intent name (see `ethoslink intents`)")
    p.add_argument("params", nargs="*", help="Parameters as key=value")
    p.add_argument("--log-level", default=None, help="Override ETHOSLINK_LOG_LEVEL")
    # Also accepted after the intent; SUPPRESS keeps a leading --json intact.
    p.add_argument("--json", action="store_true", default=argparse.SUPPRESS, help="Machine-readable JSON output")

    sub.add_parser("intents", help="List supported intents")

    return parser


def main(argv: Optional[list[str]] = None) -> Optional[dict]:
    """CLI entry point. Returns result dict for testing."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "normalize": cmd_normalize,
        "execute": cmd_execute,
        "intents": cmd_intents,
    }

    try:
        return commands[args.command](args)
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
