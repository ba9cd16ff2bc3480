"""Client commands for a running udp-logger daemon (start the daemon with main.py).

Usage:
    python -m udplog.cli send "disk almost full"
    python -m udplog.cli tail --search error
"""

import argparse
import os
import socket
import sys

import requests
from dotenv import load_dotenv


def default_base_url() -> str:
    """Base URL of the local query endpoint, from environment variables."""
    load_dotenv()
    host = os.getenv('HTTP_HOST', '0.0.0.0')
    if host in ('0.0.0.0', '::', ''):
        host = '127.0.0.1'
    return f"http://{host}:{os.getenv('HTTP_PORT', '8080')}"


def cmd_send(args):
    """Send a single datagram to a udp-logger instance."""
    load_dotenv()
    host = args.host or '127.0.0.1'
    port = args.port or int(os.getenv('UDP_PORT', '514'))
    family = socket.AF_INET6 if ':' in host else socket.AF_INET
    with socket.socket(family, socket.SOCK_DGRAM) as sock:
        sent = sock.sendto(args.message.encode('utf-8'), (host, port))
    print(f"Sent {sent} bytes to {host}:{port}")


def cmd_tail(args):
    """Print retained records, optionally filtered."""
    base_url = (args.url or default_base_url()).rstrip('/')
    params = {'search': args.search} if args.search else {}
    response = requests.get(f"{base_url}/api/logs", params=params, timeout=args.timeout)
    response.raise_for_status()
    data = response.json()

    lines = data.get('lines', [])
    if not lines:
        print("(no matching records)" if args.search else "(no records)")
        return
    for line in lines:
        print(line)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog='udplog',
        description='Collect log lines over UDP and browse the most recent ones',
    )
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # send
    send_parser = subparsers.add_parser(
        'send',
        help='Send one message as a UDP datagram',
    )
    send_parser.add_argument(
        'message',
        help='Message text',
    )
    send_parser.add_argument(
        '--host',
        default=None,
        help='Destination host (default: 127.0.0.1)',
    )
    send_parser.add_argument(
        '--port', '-p',
        type=int,
        default=None,
        help='Destination port (default: UDP_PORT or 514)',
    )

    # tail
    tail_parser = subparsers.add_parser(
        'tail',
        help='Print the records currently retained by a running daemon',
    )
    tail_parser.add_argument(
        '--search', '-s',
        default='',
        help='Only show records containing this text (case-insensitive)',
    )
    tail_parser.add_argument(
        '--url',
        default=None,
        help='Base URL of the daemon (default: from HTTP_HOST/HTTP_PORT)',
    )
    tail_parser.add_argument(
        '--timeout',
        type=float,
        default=5.0,
        help='Request timeout in seconds',
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        'send': cmd_send,
        'tail': cmd_tail,
    }

    try:
        commands[args.command](args)
    except requests.RequestException as e:
        print(f"Query endpoint error: {e}", file=sys.stderr)
        print("Check --url or the HTTP_HOST/HTTP_PORT environment variables.", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
