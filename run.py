#!/usr/bin/env python3
"""
PagePilot
Entry point for the classification service and the interactive console.

Usage:
    python run.py                          # Interactive console (simulated site)
    python run.py --text "go to products"  # Classify and apply one utterance
    python run.py --serve                  # Start the classification service
    python run.py --oracle off             # Keyword matching only
    python run.py --remote http://host:3001  # Classify through a running service
"""
import sys
import argparse
import json

from pagepilot.core.config import Config
from pagepilot.core.logger import init_logger, get_logger


def parse_args():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="PagePilot - speech-driven page navigation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py                                   # Interactive console
  python run.py --text "sort by price low to high"
  python run.py --serve --port 3001               # HTTP service
  python run.py --oracle off                      # No language model
        """
    )

    parser.add_argument(
        "--text",
        type=str,
        default=None,
        help="Handle a single utterance and exit"
    )

    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the classification service"
    )

    parser.add_argument(
        "--host",
        type=str,
        default=Config.SERVICE_HOST,
        help=f"Service host (default: {Config.SERVICE_HOST})"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=Config.SERVICE_PORT,
        help=f"Service port (default: {Config.SERVICE_PORT})"
    )

    parser.add_argument(
        "--no-stt",
        action="store_true",
        help="Serve without loading the Whisper model (transcription disabled)"
    )

    parser.add_argument(
        "--oracle",
        type=str,
        default=Config.ORACLE_MODE,
        choices=["ollama", "openai", "off"],
        help=f"Language model backend (default: {Config.ORACLE_MODE})"
    )

    parser.add_argument(
        "--remote",
        type=str,
        default=None,
        metavar="URL",
        help="Classify through a running PagePilot service instead of locally"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=Config.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {Config.LOG_LEVEL})"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        default=Config.QUIET_MODE,
        help="Hide per-stage cascade logs"
    )

    return parser.parse_args()


def build_classifier(args):
    if args.remote:
        from pagepilot.client import ClassificationClient
        return ClassificationClient(base_url=args.remote)

    from pagepilot.brain import build_oracle
    from pagepilot.core.intent_classifier import IntentClassifier
    return IntentClassifier(build_oracle(args.oracle))


def run_service(args) -> int:
    logger = get_logger()
    from pagepilot.server import create_app, serve

    stt = None
    if not args.no_stt:
        try:
            from pagepilot.stt.stt_router import STTRouter
            stt = STTRouter()
        except Exception as e:
            logger.warning(f"[STT] transcription disabled: {e}")

    serve(create_app(build_classifier(args), stt), host=args.host, port=args.port)
    return 0


def build_session(args):
    """Wire classifier, dispatcher and the in-memory router together."""
    from pagepilot.core.destinations import DEFAULT_DESTINATIONS, HOME_DESTINATION_ID
    from pagepilot.core.dispatch_controller import DispatchController
    from pagepilot.core.orchestrator import PagePilot
    from pagepilot.views import ViewRouter

    router = ViewRouter()
    dispatcher = DispatchController(
        navigate=router.navigate,
        destinations=DEFAULT_DESTINATIONS,
        listener=print_outcome,
    )
    router.attach(dispatcher)
    router.navigate(HOME_DESTINATION_ID)
    pilot = PagePilot(build_classifier(args), dispatcher, DEFAULT_DESTINATIONS)
    return pilot, router


def print_outcome(outcome) -> None:
    print(f"  [{outcome.status.value}] {outcome.message}")


def print_view(router) -> None:
    print(f"  page: {router.current_id}")
    if router.current_view is not None:
        print("  " + json.dumps(router.current_view.read_state(), indent=2).replace("\n", "\n  "))


def run_console(args) -> int:
    pilot, router = build_session(args)

    if args.text:
        print_outcome(pilot.handle_utterance(args.text))
        print_view(router)
        return 0

    print("Type what you would say. '/path' navigates, ':state' shows the current page, ':quit' exits.")
    while True:
        try:
            line = input(f"[{router.current_id}]> ").strip()
        except EOFError:
            print()
            return 0

        if not line:
            continue
        if line in (":quit", ":q", "exit"):
            return 0
        if line == ":state":
            print_view(router)
            continue
        if line.startswith("/"):
            # Manual navigation, like clicking a link
            router.navigate_path(line)
            print_view(router)
            continue

        print_outcome(pilot.handle_utterance(line))


def main():
    """Main entry point"""
    args = parse_args()

    init_logger(args.log_level, quiet_mode=args.quiet)
    logger = get_logger()

    print("\n" + "=" * 60)
    print("  PagePilot")
    print("=" * 60)
    print(f"  Mode: {'service' if args.serve else 'console'}")
    if args.remote:
        print(f"  Classifier: remote ({args.remote})")
    else:
        print(f"  Oracle: {args.oracle}")
        if args.oracle == "ollama":
            print(f"  Model: {Config.OLLAMA_MODEL} ({Config.OLLAMA_BASE_URL})")
        elif args.oracle == "openai":
            print(f"  Model: {Config.OPENAI_MODEL} ({Config.OPENAI_BASE_URL})")
    print(f"  Grace period: {Config.get_grace_ms()}ms")
    print(f"  Log Level: {args.log_level}")
    print("=" * 60 + "\n")

    try:
        if args.serve:
            return run_service(args)
        return run_console(args)

    except KeyboardInterrupt:
        logger.info("\nShutdown requested by user")
        return 0

    except Exception as e:
        logger.error(f"Fatal error: {e}")
        import traceback
        logger.error(traceback.format_exc())
        return 1


if __name__ == "__main__":
    sys.exit(main())
