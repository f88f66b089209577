"""Command-line recorder: captures the microphone and streams chunks to a Session Scribe server."""

import argparse
import asyncio
import logging
import os
import signal
import sys
from collections.abc import Sequence

from app.recorder import ChunkRecorder, MicrophoneSource, SessionApiClient, create_session

logger = logging.getLogger("session_scribe")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Record a session and stream audio chunks for transcription.")
    parser.add_argument(
        "--base-url",
        default=os.getenv("SESSION_SCRIBE_URL", "http://localhost:8000"),
        help="Server base URL (default: $SESSION_SCRIBE_URL or http://localhost:8000)",
    )
    parser.add_argument(
        "--token", default=os.getenv("SESSION_SCRIBE_TOKEN"), help="Bearer token (default: $SESSION_SCRIBE_TOKEN)"
    )
    parser.add_argument("--session-id", help="Existing session to record into (a new one is created otherwise)")
    parser.add_argument(
        "--scenario",
        choices=["in_person", "call_center", "conference"],
        default="in_person",
        help="Scenario type for a new session",
    )
    parser.add_argument("--title", help="Title for a new session")
    parser.add_argument("--duration", type=float, default=None, help="Stop after N seconds (default: until Ctrl-C)")
    parser.add_argument("--chunk-seconds", type=float, default=3.0, help="Chunk length in seconds")
    parser.add_argument("--device", type=int, default=None, help="Input device index (default: system default)")
    parser.add_argument(
        "--suggestion-interval", type=float, default=None, help="Request suggestions every N seconds while recording"
    )
    parser.add_argument(
        "--complete", action="store_true", help="Mark the session completed and stitch its audio when done"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _print_suggestions(suggestions: list[dict]) -> None:
    for item in suggestions:
        print(f"[{item['priority']}] {item['type']}: {item['content']}")


async def record(args: argparse.Namespace, stop_event: asyncio.Event | None = None) -> int:
    session_id = args.session_id
    if not session_id:
        session_id = await create_session(args.base_url, args.token, args.scenario, args.title)
        logger.info("Created session %s", session_id)

    # Ctrl-C ends the recording instead of cancelling the chunk requests in flight
    stop_event = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, stop_event.set)
        handles_sigint = True
    except (NotImplementedError, RuntimeError):
        handles_sigint = False

    try:
        async with SessionApiClient(args.base_url, args.token, session_id) as api:
            recorder = ChunkRecorder(
                MicrophoneSource(device=args.device),
                api,
                chunk_duration=args.chunk_seconds,
                suggestion_interval=args.suggestion_interval,
                on_suggestions=_print_suggestions,
            )
            try:
                async with recorder:
                    try:
                        await asyncio.wait_for(stop_event.wait(), timeout=args.duration)
                    except asyncio.TimeoutError:
                        pass
            finally:
                # Captured audio is uploaded before the client closes
                await recorder.wait_pending()

            if args.complete:
                await api.complete_session()
                audio = await api.get_session_audio()
                print(f"Session audio ({audio['chunk_count']} chunks): {audio['audio_url']}")
    finally:
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not args.token:
        parser.error("a bearer token is required (--token or $SESSION_SCRIBE_TOKEN)")

    try:
        return asyncio.run(record(args))
    except KeyboardInterrupt:
        logger.info("Recording interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
