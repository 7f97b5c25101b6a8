#!/usr/bin/env python3
"""
Render a gas.js tracking tag from command-line options or a target profile.
"""
import argparse
import pathlib
import sys
from typing import Any, Dict, List, Optional, Sequence

SRC_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from utils.helpers import ensure_output_directory  # noqa: E402
from utils.targets import (  # noqa: E402
    DEFAULT_TARGETS_CONFIG,
    build_tag_from_profile,
    resolve_target_profile,
)


def parse_accounts(values: Optional[List[str]]) -> Dict[Any, str] | None:
    """Turn `UA-...` / `name=UA-...` arguments into an `add_account` batch."""
    if not values:
        return None
    accounts: Dict[Any, str] = {}
    for index, value in enumerate(values):
        name, sep, account_id = value.partition("=")
        if sep:
            name = name.strip()
            if name in accounts:
                raise ValueError(f"Account name '{name}' given more than once.")
            accounts[name] = account_id.strip()
        else:
            accounts[index] = value.strip()
    return accounts


def parse_calls(values: Optional[List[str]]) -> List[Any]:
    """Turn `_method` / `_method=value` arguments into a `register_calls` batch."""
    calls: List[Any] = []
    for value in values or []:
        method, sep, option = value.partition("=")
        if sep:
            calls.append((method.strip(), option))
        else:
            calls.append(method.strip())
    return calls


def render_tag(args: argparse.Namespace) -> str:
    """Build the tag described by parsed CLI arguments and return its text."""
    # Only several domains switch on cross-domain tracking.
    domains = args.domain[0] if args.domain and len(args.domain) == 1 else args.domain
    profile = resolve_target_profile(
        parse_accounts(args.account),
        domains,
        args.target_key,
        args.config_path,
    )
    if args.defaults:
        profile["defaults"] = True
    if args.script_url:
        profile["script_url"] = args.script_url

    builder = build_tag_from_profile(profile)
    extra_calls = parse_calls(args.call)
    if extra_calls:
        builder.register_calls(extra_calls)
    return builder.render()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Render a gas.js (Google Analytics on Steroids) tracking tag.",
    )
    parser.add_argument(
        "--account",
        action="append",
        help="GA account id, optionally named: UA-XXXXX-1 or custom=UA-XXXXX-2. Repeatable.",
    )
    parser.add_argument(
        "--domain",
        action="append",
        help="Tracked domain, e.g. .example.com. Repeat for cross-domain tracking.",
    )
    parser.add_argument(
        "--call",
        action="append",
        help="Extra gas method call: _method or _method=value. Repeatable.",
    )
    parser.add_argument(
        "--defaults",
        action="store_true",
        help="Include the recommended tracking calls (page views, forms, downloads, ...).",
    )
    parser.add_argument(
        "--script-url",
        help="Override the gas.js script location.",
    )
    parser.add_argument(
        "--target-key",
        help="Target key defined in the YAML mapping for account/domain lookup.",
    )
    parser.add_argument(
        "--config-path",
        help=(
            "Path to the target configuration YAML. "
            f"Defaults to {DEFAULT_TARGETS_CONFIG} when --target-key is used."
        ),
    )
    parser.add_argument(
        "--output",
        help="Optional path to write the tag to. Defaults to printing to stdout.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None):
    """CLI entry point."""
    args = parse_args(argv)

    try:
        tag = render_tag(args)

        if args.output:
            ensure_output_directory(args.output)
            with open(args.output, "w", encoding="utf-8") as handle:
                handle.write(tag)
            print(f"Wrote gas tag to {args.output}")
        else:
            print(tag)
    except Exception as error:
        print(f"Error: {error}")
        raise


if __name__ == "__main__":
    main()
