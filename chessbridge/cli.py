"""
Command Line Interface for the UCI Engine Bridge
"""

import argparse
import json
import logging
import sys

from .config import BridgeSettings, configure_logging
from .dispatcher import BridgeDispatcher
from .errors import BridgeError

logger = logging.getLogger(__name__)


def cmd_serve(args, settings: BridgeSettings) -> int:
    """Run the web server"""
    import uvicorn

    from .web_app import create_app

    app = create_app(settings)
    logger.info(f"Engine directory: {settings.engine_dir}")
    logger.info(f"Starting UCI Engine Bridge on http://{settings.host}:{settings.port}")

    uvicorn.run(app, host=settings.host, port=settings.port,
                log_level=settings.log_level.lower())
    return 0


def cmd_engines(args, settings: BridgeSettings) -> int:
    """List engines"""
    engines = BridgeDispatcher(settings).list_engines()

    if not engines:
        print(f"No engines found in {settings.engine_dir}")
        return 0

    for name in engines:
        print(name)
    print(f"Total: {len(engines)} engines")
    return 0


def cmd_analyse(args, settings: BridgeSettings) -> int:
    """Run one request and print the JSON response"""
    payload = {
        "fen": args.fen,
        "movetime": args.movetime,
        "turn": args.turn,
        "engine": args.engine,
    }
    if args.clock:
        wtime, btime, winc, binc = args.clock
        payload["timing"] = {
            "mode": "clock", "wtime": wtime, "btime": btime, "winc": winc, "binc": binc
        }

    response = BridgeDispatcher(settings).handle(payload)
    print(json.dumps(response, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chessbridge",
        description="UCI Engine Bridge",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('--engine-dir', help='Directory holding engine binaries')
    parser.add_argument('--log-level', help='Logging level (default: INFO)')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Serve command
    parser_serve = subparsers.add_parser('serve', help='Run the HTTP bridge')
    parser_serve.add_argument('--host', help='Bind address')
    parser_serve.add_argument('--port', type=int, help='Bind port')

    # Engines command
    subparsers.add_parser('engines', help='List available engines')

    # Analyse command
    parser_analyse = subparsers.add_parser('analyse', help='Ask an engine for its best move')
    parser_analyse.add_argument('fen', help='Position in FEN')
    parser_analyse.add_argument('--engine', help='Engine name (default: configured default)')
    parser_analyse.add_argument('--turn', choices=['w', 'b'], help='Side to move (default: from FEN)')
    parser_analyse.add_argument('--movetime', type=int, help='Fixed search time (ms)')
    parser_analyse.add_argument('--clock', type=int, nargs=4,
                                metavar=('WTIME', 'BTIME', 'WINC', 'BINC'),
                                help='Search on a clock instead (ms)')

    return parser


def main(argv=None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    settings = BridgeSettings.from_env().with_overrides(
        engine_dir=args.engine_dir,
        log_level=args.log_level.upper() if args.log_level else None,
        host=getattr(args, 'host', None),
        port=getattr(args, 'port', None),
    )
    configure_logging(settings.log_level)

    commands = {
        'serve': cmd_serve,
        'engines': cmd_engines,
        'analyse': cmd_analyse,
    }

    try:
        return commands[args.command](args, settings)
    except BridgeError as e:
        logger.error(f"{e.message}{': ' + e.detail if e.detail else ''}")
        print(json.dumps(e.to_dict(), indent=2))
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
