"""ui-inventory — Crop UI evidence from screenshots and trace style tokens.

Usage: ui-inventory <command> <source> [options]

Commands live in ui_inventory/commands/, listed in ui_inventory.registry.
Each command module's docstring is its documentation.
Run `ui-inventory help <command>` for full module docs.

Configuration / .env loading:
  Defaults for --format, --quality, --max-dim, --max-depth and --transport
  come from UI_INVENTORY_* environment variables (see ui_inventory.core.env).
  OS environment variables are always used first. If a variable is not set,
  ui-inventory looks for a .env file starting from the current directory and
  walking up, stopping at the nearest .git boundary.
  Use --env-file to override the .env location explicitly.
"""

import argparse
import os
import sys

from ui_inventory import registry
from ui_inventory.core import transport
from ui_inventory.core.crop import FORMATS
from ui_inventory.core.env import Settings, load_env
from ui_inventory.core.report import format_json, format_text
from ui_inventory.core.types import Report


def _short_doc(name: str, fallback: str) -> str:
    doc = registry.doc(name)
    return doc.splitlines()[0] if doc else fallback


def _build_parser() -> argparse.ArgumentParser:
    commands = registry.discover()

    epilog = (
        'Examples:\n'
        '  ui-inventory crop page.png --rect 10,10,100,50 --scale 2\n'
        '  ui-inventory crop page.png --rect 10,10,100,50 --scale 2 --max-dim 150\n'
        '  ui-inventory trace capture.json --property color\n'
        '  ui-inventory capture page.png --record button.json --record card.json --json\n'
        '  ui-inventory help crop\n'
        '\n'
        'Settings env vars (set in .env or environment):\n'
        '  UI_INVENTORY_FORMAT=image/webp   UI_INVENTORY_QUALITY=0.8\n'
        '  UI_INVENTORY_MAX_DIM=1200        UI_INVENTORY_MAX_DEPTH=6\n'
        '  UI_INVENTORY_TRANSPORT=buffer\n'
    )
    parser = argparse.ArgumentParser(
        prog='ui-inventory',
        description='Crop UI evidence from screenshots and trace style tokens.',
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        '--env-file',
        metavar='PATH',
        default=None,
        help='Path to .env file (default: walk up from cwd to .git boundary)',
    )
    sub = parser.add_subparsers(dest='command', help='Command to run')

    for name, cmd in sorted(commands.items()):
        p = sub.add_parser(name, help=_short_doc(name, cmd.help))
        p.add_argument('source', help='Screenshot image (crop, capture) or capture-record JSON (trace)')
        p.add_argument('-o', '--out-dir', default='ui-inventory-out', help='Directory for encoded crops')
        p.add_argument('--rect', metavar='L,T,W,H', help='Crop rect in CSS pixels (crop)')
        p.add_argument('-s', '--scale', type=float, default=None, help='CSS-to-device pixel scale')
        p.add_argument('-f', '--format', default=None, choices=sorted(FORMATS), help='Target MIME type')
        p.add_argument('-q', '--quality', type=float, default=None, help='Lossy quality, 0..1')
        p.add_argument('-m', '--max-dim', type=int, default=None, help='Longest side of the encoded crop')
        p.add_argument(
            '-t', '--transport', default=None, choices=transport.available(), help='Payload codec for --json'
        )
        p.add_argument('-r', '--record', action='append', help='Capture-record JSON (capture; repeatable)')
        p.add_argument('-p', '--property', help='Trace only this style property (trace)')
        p.add_argument('-d', '--max-depth', type=int, default=None, help='Max steps per token trace')
        p.add_argument('-j', '--json', action='store_true', help='Output JSON instead of text')

    # `help` subcommand — prints full module docstring for a command
    help_parser = sub.add_parser('help', help='Print full docs for a command')
    help_parser.add_argument('topic', nargs='?', help='Command name')

    return parser


def _print_help(topic: str | None) -> None:
    """Print full module docstring for a command."""
    commands = registry.discover()

    if topic is None:
        print('Available commands:\n')
        for name, cmd in sorted(commands.items()):
            print(f'  {name:<10} {_short_doc(name, cmd.help)}')
        print('\nRun: ui-inventory help <command> for full docs.')
        return

    if topic not in commands:
        print(f'Unknown command: {topic}', file=sys.stderr)
        print(f'Available: {", ".join(sorted(commands))}', file=sys.stderr)
        sys.exit(1)

    doc = registry.doc(topic)
    print(doc if doc else f'(No module docs for {topic!r})')


def _apply_settings(args: argparse.Namespace, settings: Settings) -> None:
    """Fill options the user did not pass from settings."""
    if args.format is None:
        args.format = settings.target_format
    if args.quality is None:
        args.quality = settings.quality
    if args.max_dim is None:
        args.max_dim = settings.max_dim
    if args.max_depth is None:
        args.max_depth = settings.max_depth
    if args.transport is None:
        args.transport = settings.transport


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    # Load .env before anything else — OS env vars always win
    env_path = load_env(env_file=getattr(args, 'env_file', None))
    if env_path:
        print(f'ui-inventory: loaded {env_path}', file=sys.stderr)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == 'help':
        _print_help(getattr(args, 'topic', None))
        return

    if not os.path.isfile(args.source):
        print(f'Error: file not found: {args.source}', file=sys.stderr)
        sys.exit(1)

    try:
        _apply_settings(args, Settings.from_env())
        report = Report(source=args.source)
        registry.get(args.command).execute(args.source, report, args)
    except (KeyError, ValueError, OSError) as e:
        print(f'Error: {e}', file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(format_json(report))
    else:
        print(format_text(report))

    # Non-zero exit after output so the report is visible even on failure
    if report.fail_count:
        sys.exit(1)


if __name__ == '__main__':
    main()
