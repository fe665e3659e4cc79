"""
Proactive message command - send bot-initiated messages into Microsoft Teams.

Usage:
    proactive-cmd sendUserMessage --app-id ID --app-password SECRET \\
        --service-url https://smba.trafficmanager.net/amer/ \\
        --conversation-id "a:1abc..." --message "Your report is ready" --notify

    proactive-cmd createThread --app-id ID --app-password SECRET \\
        -s https://smba.trafficmanager.net/amer/ -C "19:channel@thread.skype" -m "Kickoff"

    proactive-cmd sendChannelThread --app-id ID --app-password SECRET \\
        -s https://smba.trafficmanager.net/amer/ -c "19:channel@thread.skype;messageid=123" -m "Update"

Exit codes: 0 on success, 1 on a failed send, 2 on invalid arguments.
"""
import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config import Settings
from .services.proactive_messaging import create_proactive_messaging_service

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def non_blank(value: str) -> str:
    """argparse type rejecting empty or whitespace-only strings."""
    if not value or not value.strip():
        raise argparse.ArgumentTypeError("cannot be null or empty")
    return value


def parse_bool(value: str) -> bool:
    """argparse type for --notify true/false values."""
    normalized = value.strip().lower()
    if normalized in ("true", "1", "yes", "on"):
        return True
    if normalized in ("false", "0", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected a boolean, got {value!r}")


def _add_credential_options(parser: argparse.ArgumentParser) -> None:
    app_id = os.getenv('MICROSOFT_APP_ID')
    app_password = os.getenv('MICROSOFT_APP_PASSWORD')

    parser.add_argument(
        '--app-id',
        type=non_blank,
        default=app_id,
        required=not app_id,
        help='Microsoft App ID of the bot (default: $MICROSOFT_APP_ID)'
    )
    parser.add_argument(
        '--app-password',
        type=non_blank,
        default=app_password,
        required=not app_password,
        help='Microsoft App Password of the bot (default: $MICROSOFT_APP_PASSWORD)'
    )
    parser.add_argument(
        '--service-url', '-s',
        type=non_blank,
        required=True,
        help='Bot Connector service URL for the tenant, e.g. https://smba.trafficmanager.net/amer/'
    )


def _add_message_options(parser: argparse.ArgumentParser, notify: bool) -> None:
    parser.add_argument(
        '--message', '-m',
        type=non_blank,
        required=True,
        help='Text of the message'
    )
    if notify:
        parser.add_argument(
            '--notify',
            type=parse_bool,
            nargs='?',
            const=True,
            default=False,
            help='Alert the recipient with a notification (optionally --notify true|false)'
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='proactive-cmd',
        description='Send proactive messages to Microsoft Teams conversations',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  MICROSOFT_APP_ID / MICROSOFT_APP_PASSWORD   default bot credentials
  MICROSOFT_APP_TENANT_ID                     token tenant (default: botframework.com)
  LOG_LEVEL                                   default log level (INFO)
  Resilience tuning: TRANSIENT_RETRY_COUNT, CIRCUIT_FAILURE_THRESHOLD, ...
        """
    )
    parser.add_argument(
        '--log-level',
        default=os.getenv('LOG_LEVEL', 'INFO').upper(),
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging verbosity (default: $LOG_LEVEL or INFO)'
    )

    commands = parser.add_subparsers(dest='command', metavar='COMMAND')
    commands.required = True

    send_user = commands.add_parser(
        'sendUserMessage',
        help='Send a message to the conversation coordinates'
    )
    _add_credential_options(send_user)
    send_user.add_argument(
        '--conversation-id', '-c',
        type=non_blank,
        required=True,
        help='Conversation ID of the user chat'
    )
    _add_message_options(send_user, notify=True)

    create_thread = commands.add_parser(
        'createThread',
        help='Create a new thread in a channel'
    )
    _add_credential_options(create_thread)
    create_thread.add_argument(
        '--channel-id', '-C',
        type=non_blank,
        required=True,
        help='Teams channel ID to start the thread in'
    )
    _add_message_options(create_thread, notify=False)

    send_thread = commands.add_parser(
        'sendChannelThread',
        help='Send a message to a channel thread'
    )
    _add_credential_options(send_thread)
    send_thread.add_argument(
        '--conversation-id', '-c',
        type=non_blank,
        required=True,
        help='Conversation ID of the channel thread'
    )
    _add_message_options(send_thread, notify=True)

    return parser


async def run_command(args: argparse.Namespace, settings: Settings) -> str:
    """Dispatch parsed arguments to the messaging service; returns the created resource ID."""
    service = create_proactive_messaging_service(settings)

    if args.command == 'sendUserMessage':
        response = await service.send_to_user(
            args.app_id, args.app_password, args.service_url,
            args.conversation_id, args.message, notify=args.notify
        )
    elif args.command == 'sendChannelThread':
        response = await service.send_to_thread(
            args.app_id, args.app_password, args.service_url,
            args.conversation_id, args.message, notify=args.notify
        )
    elif args.command == 'createThread':
        response = await service.create_channel_thread(
            args.app_id, args.app_password, args.service_url,
            args.channel_id, args.message
        )
    else:
        raise ValueError(f"Unknown command: {args.command}")

    return response.id or ""


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run one command and return the process exit code."""
    load_dotenv('.env.local')

    args = build_parser().parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    try:
        settings = Settings.from_env()
        resource_id = asyncio.run(run_command(args, settings))
    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return 1

    print(resource_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
