"""Main application entry point for dualrec."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pubsub import pub
from rich.console import Console

from . import __version__
from .audio.pyaudio_provider import PyAudioCaptureProvider
from .config import DualRecConfig
from .models.events import SegmentEvent
from .services.command_handler import RecordingCommandHandler
from .services.event_publisher import SEGMENT_TOPIC
from .services.recording_session import RecordingSession
from .storage.file_manager import FileManager
from .ui.report_view import render_report, render_segment_event

logger = logging.getLogger(__name__)


class RecorderApp:
    """Wires configuration, the PyAudio provider and a recording session together."""

    def __init__(self, config_path: Optional[str] = None, log_level: Optional[str] = None):
        # Load configuration
        self.config = DualRecConfig(config_path)
        # Set up logging (command line overrides config)
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        self.console = Console()
        self.provider: Optional[PyAudioCaptureProvider] = None
        self.session: Optional[RecordingSession] = None
        self.handler: Optional[RecordingCommandHandler] = None

    def init(self, segment_duration: Optional[int] = None) -> None:
        logger.info("Initializing services...")
        if segment_duration:
            self.config.set('recording.segment_duration_seconds', segment_duration)

        recording_config = self.config.get_recording_config()
        logger.info(f"Audio settings: {recording_config.sample_rate}Hz, {recording_config.channels} channels, "
                    f"{recording_config.segment_duration_seconds}s segments")

        file_manager = FileManager(self.config.get_data_directory(), recording_config.file_extension)
        self.provider = PyAudioCaptureProvider(
            sample_rate=recording_config.sample_rate,
            channels=recording_config.channels,
            chunk_size=self.config.get('audio.chunk_size', 1024),
        )
        self.provider.open()

        self.session = RecordingSession(recording_config, file_manager)
        self.session.set_capture_context(self.provider)
        self.handler = RecordingCommandHandler(self.session)

        pub.subscribe(self._on_segment_event, SEGMENT_TOPIC)

    def _on_segment_event(self, event: SegmentEvent) -> None:
        render_segment_event(event, self.console)

    async def run(self, duration: int) -> Dict[str, Any]:
        """Record for duration seconds and return the stop() reply."""
        started = await self.handler.handle("start")
        if not started["success"]:
            return started

        self.console.print(f"🎙️ Recording session {started['session_id']} for {duration}s...")
        try:
            await asyncio.sleep(duration)
        finally:
            report = await self.handler.handle("stop")
        return report

    async def list_devices(self) -> Dict[str, Any]:
        return await self.handler.handle("devices")

    def cleanup(self) -> None:
        try:
            pub.unsubscribe(self._on_segment_event, SEGMENT_TOPIC)
        except Exception as e:
            logger.debug(f"Unsubscribe failed: {e}")
        if self.provider:
            self.provider.terminate()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    # Get log file path from config
    log_file_path = config.get('logging.file_path', 'data/logs/dualrec.log')
    console_output = config.get('logging.console_output', True)

    # Set up handlers
    handlers = []

    # File handler - always write to file
    if log_file_path:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("="*50)
    logger.info("dualrec starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


def main() -> None:
    """Main entry point for dualrec."""
    parser = argparse.ArgumentParser(
        description="dualrec - segmented microphone + system audio recorder"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in defaults)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--auto",
        action="store_true",
        help="Run in automatic mode: start recording, record for specified duration, then stop and exit"
    )

    parser.add_argument(
        "--duration",
        type=int,
        default=10,
        help="Duration in seconds for auto mode recording (default: 10)"
    )

    parser.add_argument(
        "--segment-duration",
        type=int,
        help="Segment length in seconds (overrides config)"
    )

    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List capture devices and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"dualrec v{__version__}"
    )

    args = parser.parse_args()
    if not (args.auto or args.list_devices):
        parser.error("choose --auto or --list-devices")

    app = RecorderApp(args.config, args.log_level)
    try:
        app.init(args.segment_duration)
        if args.list_devices:
            result = asyncio.run(app.list_devices())
            for device in result.get("devices", []):
                loopback = " (system audio)" if device["is_loopback"] else ""
                app.console.print(f"[{device['index']}] {device['name']}{loopback}")
        else:
            report = asyncio.run(app.run(args.duration))
            render_report(report, app.console)
            if not report.get("success"):
                sys.exit(1)
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except Exception as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)
    finally:
        app.cleanup()


if __name__ == "__main__":
    main()
