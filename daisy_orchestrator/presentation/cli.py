"""
CLI presentation layer - terminal chat front-end for the orchestrator client.
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
from typing import Optional, TextIO

from dotenv import load_dotenv

from .. import __version__
from ..application.orchestrator_client import OrchestratorClient
from ..domain.errors import OrchestratorError
from ..domain.models.events import render_marker
from ..infrastructure.auth import select_credential_supplier
from ..infrastructure.config.settings import AppSettings, load_settings
from ..utils import setup_logging, truncate_text


class ChatCLI:
    """CLI interface for chat interactions."""

    def __init__(
        self,
        client: OrchestratorClient,
        out: TextIO = sys.stdout,
        logger: Optional[logging.Logger] = None
    ):
        self._client = client
        self._out = out
        self._logger = logger or logging.getLogger(__name__)

    def interactive_mode(self) -> None:
        """Run interactive chat mode."""
        self._print_welcome()

        while True:
            try:
                user_input = input("You: ").strip()
            except KeyboardInterrupt:
                self._print("\n\n⚠️ Use 'quit' or 'exit' to leave the chat")
                continue
            except EOFError:
                break

            if not user_input:
                continue
            if user_input.lower() in ('quit', 'exit'):
                break
            if self._handle_cli_commands(user_input):
                continue
            self.single_message(user_input)

        self._print("👋 Goodbye!")

    def single_message(self, message: str) -> bool:
        """Stream one answer to the terminal; returns False when the send failed."""
        self._out.write("Assistant: ")
        self._out.flush()
        try:
            for event in self._client.send(message):
                self._out.write(render_marker(event))
                self._out.flush()
        except OrchestratorError as e:
            self._print(f"\n❌ {e.message}")
            return False
        except KeyboardInterrupt:
            # Abandoning the generator releases the response
            self._print("\n⏹️ Interrupted")
            return False
        self._print("")
        return True

    def _handle_cli_commands(self, user_input: str) -> bool:
        """Handle built-in CLI commands."""
        command = user_input.lower()

        if command == '/new':
            session_id = self._client.start_new_session()
            self._print(f"✅ New session: {session_id}")
            return True
        if command == '/history':
            history = self._client.history
            if not history:
                self._print("No conversation history")
            for i, turn in enumerate(history, 1):
                self._print(f"  {i}. {turn.role.value}: {truncate_text(turn.content, 150)}")
            return True
        if command == '/config':
            self._print(json.dumps(self._client.describe(), indent=2))
            return True

        return False

    def _print_welcome(self) -> None:
        """Print welcome message with agent details."""
        info = self._client.describe()
        self._print("🌼 DaisyAI - Interactive Mode")
        self._print(f"🤖 Agent: {info['display_name']}")
        self._print(f"🧵 Session: {info['session_id']}")
        self._print("💡 Commands: 'quit'/'exit' to exit, '/new' for a new session, '/history', '/config'")
        self._print("-" * 60)

    def _print(self, text: str) -> None:
        print(text, file=self._out, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Chat with the DaisyAI orchestrator agent",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                        # Interactive mode
  %(prog)s --message "Who are the top streaming artists?"
  %(prog)s --backend-url http://localhost:8080/chat --token dev-token
        """
    )
    parser.add_argument('--message',
                        help='Single message mode (non-interactive)')
    parser.add_argument('--token',
                        help='Bearer token to use instead of ambient service credentials')
    parser.add_argument('--backend-url',
                        help='Full backend URL (overrides project/location/engine settings)')
    parser.add_argument('--no-pseudo-stream',
                        action='store_true',
                        help='Print single (non-streamed) responses in one piece')
    parser.add_argument('--log-level',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Set logging level')
    parser.add_argument('--version',
                        action='version',
                        version=f'%(prog)s {__version__}')
    return parser


def apply_args(settings: AppSettings, args: argparse.Namespace) -> AppSettings:
    """Fold command-line overrides into the settings object."""
    if args.backend_url:
        settings.backend.backend_url = args.backend_url
    if args.token:
        settings.auth.access_token = args.token
    if args.no_pseudo_stream:
        settings.conversation.pseudo_stream_enabled = False
    if args.log_level:
        settings.log_level = args.log_level
    return settings


def main(argv: Optional[list] = None) -> None:
    """Main entry point for the DaisyAI chat CLI."""
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = apply_args(load_settings(), args)

    setup_logging(settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)

    missing = settings.validate_required_settings()
    if missing:
        print(f"❌ Error: missing configuration: {', '.join(missing)}")
        sys.exit(1)

    credentials = select_credential_supplier(settings.auth, user_id=settings.conversation.default_user_id)
    try:
        with OrchestratorClient(settings, credentials) as client:
            logger.info(f"Initialized DaisyAI client for {settings.backend.url}")
            cli = ChatCLI(client)
            if args.message:
                ok = cli.single_message(args.message)
                sys.exit(0 if ok else 1)
            cli.interactive_mode()
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        sys.exit(0)


if __name__ == "__main__":
    main()
