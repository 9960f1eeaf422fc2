#!/usr/bin/env python3
"""
API Tester

Sends a fixed number of GET requests to a URL from several threads and
prints every call result followed by the average response time and the
number of requests per second.
"""

import argparse
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config import (
    DEFAULT_NUM_THREADS,
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_SLEEP_TIME_MS,
    DEFAULT_TOTAL_CALLS,
    RunConfig,
    default_connect_timeout,
    load_headers_from_env,
)
from .console import RED, RESET, YELLOW
from .runner import run_load_test

# Load environment variables from .env file
load_dotenv()

HELP_FLAGS = ("-?", "--help")


class UsageError(Exception):
    """Bad command line; the message is shown above the help text."""


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)

    def _get_option_tuples(self, option_string):
        # Flags only match by their full name; allow_abbrev alone does not
        # stop single-dash prefixes on every Python release
        return []


def integer(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f'"{value}" is not a valid integer.')


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="api-tester",
        description="API Tester - Measure response time and throughput of an HTTP endpoint",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
        epilog="""
Examples:
  %(prog)s http://localhost:8080/health
  %(prog)s https://api.example.com/users -totalCalls 500 -numThreads 5
  %(prog)s http://localhost:8080/ -sleepTime 50 -reuseConnects
  %(prog)s http://localhost:8080/ -requestTimeOut 2000 -keepConnectsOpen

Headers can be added through API_KEY, BEARER_TOKEN and CUSTOM_HEADERS
(a JSON object), read from the environment or a .env file.
        """
    )

    parser.add_argument("url", nargs="?", help="Server URL (must start with http)")
    parser.add_argument("-totalCalls", dest="total_calls", type=integer, default=DEFAULT_TOTAL_CALLS,
                        help=f"Total number of calls across all threads (default: {DEFAULT_TOTAL_CALLS})")
    parser.add_argument("-numThreads", dest="num_threads", type=integer, default=DEFAULT_NUM_THREADS,
                        help=f"Number of threads (default: {DEFAULT_NUM_THREADS})")
    parser.add_argument("-sleepTime", dest="sleep_time", type=integer, default=DEFAULT_SLEEP_TIME_MS,
                        help="Sleep time in milliseconds between calls within a thread "
                             f"(default: {DEFAULT_SLEEP_TIME_MS})")
    parser.add_argument("-requestTimeOut", dest="request_timeout", type=integer,
                        default=DEFAULT_REQUEST_TIMEOUT_MS,
                        help=f"HTTP request timeout in milliseconds (default: {DEFAULT_REQUEST_TIMEOUT_MS})")
    parser.add_argument("-connectTimeOut", dest="connect_timeout", type=integer, default=None,
                        help="Idle connection timeout in milliseconds "
                             "(default: 3x requestTimeOut, %d)" % default_connect_timeout(DEFAULT_REQUEST_TIMEOUT_MS))
    parser.add_argument("-reuseConnects", dest="reuse_connections", action="store_true",
                        help="Send 'Connection: keep-alive' and reuse pooled connections")
    parser.add_argument("-keepConnectsOpen", dest="keep_connections_open", action="store_true",
                        help="Never read or close response bodies (exhausts the pool, not advised)")
    parser.add_argument("-?", "--help", action="help",
                        help="Display this help message")

    return parser


def parse_config(argv: List[str]) -> RunConfig:
    """
    Turn command line arguments into a RunConfig.

    Raises:
        UsageError: On any missing or invalid argument
    """
    parser = build_parser()
    args, unknown = parser.parse_known_args(argv)

    for arg in unknown:
        print(f"{YELLOW}Warning: Ignoring unknown argument '{arg}'{RESET}")

    if not args.url or not args.url.startswith("http"):
        raise UsageError(f'"{args.url or ""}" is not a valid URL')

    connect_timeout = args.connect_timeout
    if connect_timeout is None:
        connect_timeout = default_connect_timeout(args.request_timeout)

    try:
        return RunConfig(
            url=args.url,
            total_calls=args.total_calls,
            num_threads=args.num_threads,
            sleep_time_ms=args.sleep_time,
            request_timeout_ms=args.request_timeout,
            connect_timeout_ms=connect_timeout,
            reuse_connections=args.reuse_connections,
            keep_connections_open=args.keep_connections_open,
            headers=load_headers_from_env(),
        )
    except ValueError as e:
        raise UsageError(str(e))


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()

    if not argv:
        print(f"{RED}Error: No command line argument provided.{RESET}")
        parser.print_help()
        return 1

    if any(arg in HELP_FLAGS for arg in argv):
        parser.print_help()
        return 0

    try:
        config = parse_config(argv)
    except UsageError as e:
        print(f"{RED}Error: {e}{RESET}")
        parser.print_help()
        return 1

    run_load_test(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
