"""
Entry point for RoomChat.
Parses the command line and starts the terminal client.
"""

import argparse
import sys

from RoomChat import __version__
from RoomChat.config import config


def parse(argv=None):
    parser = argparse.ArgumentParser(prog='roomchat', description='RoomChat terminal client')
    parser.add_argument('server', nargs='?', default=config.DEFAULT_SERVER_ADDRESS,
                        help=f'WebSocket URL of the chat server (default: {config.DEFAULT_SERVER_ADDRESS})')
    parser.add_argument('--room', default=config.DEFAULT_ROOM,
                        help=f'Room to join on connect (default: {config.DEFAULT_ROOM})')
    parser.add_argument('--env', choices=['development', 'production', 'testing'], default=None,
                        help='Logging environment (default: $ROOMCHAT_ENV or development)')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default=None,
                        help='Override the log level of the environment')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse(argv)

    # Imported late so --help works without a terminal library
    from RoomChat.start.client import client

    return client(server_url=args.server, room=args.room, env=args.env, log_level=args.log_level)


if __name__ == '__main__':
    sys.exit(main())
