"""CLI entrypoint for dispatching and searching cross-chain messages."""

from __future__ import annotations

import argparse
import dataclasses
import json
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from courier.config import CourierConfig, load_config
from courier.core.dispatch import MailboxSender, prepare_dispatch
from courier.core.encoding import UnconstrainedPolicy, build_query_variables
from courier.core.matching_list import MatchingList
from courier.core.search import ElementSearchOutcome, perform_search, reportable_outcomes
from courier.core.utils import get_logger

LOGGER = get_logger("courier.cli")


def _env(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dispatch and search cross-chain messages")
    parser.add_argument("--config", type=Path, help="Path to a JSON config file (default: ./config.json)")
    parser.add_argument("-w", "--wallet", help="Private key to sign with (default: $PRIVATE_KEY)")
    parser.add_argument("-m", "--mailbox", help="Mailbox contract address (default: $MAILBOX_ADDRESS)")
    parser.add_argument("-u", "--url", help="RPC URL (default: $RPC_URL)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Dispatch a message")
    send.add_argument("-d", "--domain", required=True, help="Destination domain id")
    send.add_argument("-a", "--address", required=True, help="Recipient address (hex or base58)")
    send.add_argument("-b", "--message", required=True, help="Message bytes in hexadecimal format")
    send.add_argument("--dry-run", action="store_true", help="Simulate the dispatch without sending")

    search = subparsers.add_parser("search", help="Query dispatched messages matching a list")
    search.add_argument("-l", "--list", dest="matching_list", help="Matching list as JSON")
    search.add_argument("--graphql-url", help="GraphQL endpoint (default: $GRAPHQL_URL)")
    search.add_argument("--stop-on-empty", action="store_true", default=None, help="Stop reporting at the first empty element")
    search.add_argument(
        "--unconstrained",
        choices=[policy.value for policy in UnconstrainedPolicy],
        help="Whether a match-everything list issues one query or none",
    )

    inspect = subparsers.add_parser("inspect", help="Show how a matching list is parsed and encoded")
    inspect.add_argument("-l", "--list", dest="matching_list", required=True, help="Matching list as JSON")

    return parser.parse_args(argv)


def _search_config(config: CourierConfig, args: argparse.Namespace) -> CourierConfig:
    overrides = {}
    graphql_url = args.graphql_url or _env("GRAPHQL_URL")
    if graphql_url:
        overrides["graphql_url"] = graphql_url
    if args.stop_on_empty is not None:
        overrides["stop_on_empty"] = args.stop_on_empty
    if args.unconstrained:
        overrides["unconstrained"] = UnconstrainedPolicy(args.unconstrained)
    if args.matching_list is not None:
        overrides["matching_list"] = MatchingList.parse(args.matching_list)
    if not overrides:
        return config
    return dataclasses.replace(config, search=dataclasses.replace(config.search, **overrides))


def _print_outcomes(outcomes: Sequence[ElementSearchOutcome]) -> None:
    for outcome in outcomes:
        print(f"Element {outcome.index}: {json.dumps(dict(outcome.variables))}")
        if not outcome.ok:
            print(f"  ❌ {outcome.error}")
        elif outcome.is_empty:
            print("  No messages found")
        else:
            print(json.dumps([message.to_dict() for message in outcome.messages], indent=2))


def run_send(config: CourierConfig, args: argparse.Namespace) -> None:
    private_key = args.wallet or _env("PRIVATE_KEY")
    if not private_key:
        raise ValueError("PRIVATE_KEY environment variable or --wallet not set")

    request = prepare_dispatch(args.domain, args.address, args.message)
    sender = MailboxSender(
        rpc_url=args.url or _env("RPC_URL"),
        private_key=private_key,
        mailbox_address=args.mailbox or _env("MAILBOX_ADDRESS"),
        config=config,
    )
    if args.dry_run:
        sender.execute_dry_run(request)
    else:
        print(f"Transaction sent: {sender.execute_send(request)}")


def run_search(config: CourierConfig, args: argparse.Namespace) -> int:
    config = _search_config(config, args)
    matching_list = config.search.matching_list
    LOGGER.info("Searching with matching list %s", matching_list)

    outcomes = perform_search(config=config, matching_list=matching_list)
    _print_outcomes(reportable_outcomes(outcomes, stop_on_empty=config.search.stop_on_empty))
    return 1 if any(not outcome.ok for outcome in outcomes) else 0


def run_inspect(config: CourierConfig, args: argparse.Namespace) -> None:
    matching_list = MatchingList.parse(args.matching_list)
    print(f"Matching list: {matching_list}")
    for index, payload in enumerate(build_query_variables(matching_list, unconstrained=config.search.unconstrained)):
        print(f"Payload {index}: {json.dumps(payload)}")


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = _parse_args(argv)

    try:
        config = load_config(args.config)
        if args.command == "send":
            run_send(config, args)
        elif args.command == "search":
            sys.exit(run_search(config, args))
        else:
            run_inspect(config, args)
    except Exception as exc:
        print(f"\n❌ Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover - CLI entry
    main()
