"""Command facade exposing a RecordingSession across a process boundary.

Every reply is a plain, JSON-safe dict. Errors never escape as exceptions;
they are returned as ``{"success": False, "error": ..., "code": ...}``.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from ..exceptions import InvalidParameter, NotRecording, RecordingError
from .recording_session import RecordingSession

logger = logging.getLogger(__name__)


class RecordingCommandHandler:
    """Dispatches named commands to a RecordingSession."""

    def __init__(self, session: RecordingSession):
        """Initialize command handler.

        Args:
            session: Session the commands operate on
        """
        self.session = session
        self._commands: Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]] = {
            "start": self._start,
            "stop": self._stop,
            "reset": self._reset,
            "status": self._status,
            "devices": self._devices,
            "cleanup": self._cleanup,
            "stats": self._stats,
        }

    @property
    def commands(self):
        return sorted(self._commands)

    async def handle(self, command: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a command and return its reply.

        Args:
            command: One of ``commands``
            payload: Command arguments; only `cleanup` reads one (`max_age_days`)

        Returns:
            JSON-safe reply dict
        """
        handler = self._commands.get(command)
        if handler is None:
            logger.warning(f"Unknown command: {command}")
            return {"success": False, "error": f"Unknown command: {command}", "code": "UnknownCommand"}

        logger.debug(f"Handling command: {command}")
        try:
            return await handler(payload or {})
        except RecordingError as e:
            logger.warning(f"Command '{command}' failed: {e}")
            return {"success": False, "error": str(e), "code": e.code}
        except Exception as e:
            logger.error(f"Command '{command}' failed unexpectedly: {e}")
            await self.session.reset()
            return {"success": False, "error": str(e), "code": type(e).__name__}

    async def _start(self, payload) -> Dict[str, Any]:
        return await self.session.start()

    async def _stop(self, payload) -> Dict[str, Any]:
        result = await self.session.stop()
        if not result.get("success"):
            result = dict(result, code=NotRecording.__name__)
        return result

    async def _reset(self, payload) -> Dict[str, Any]:
        await self.session.reset()
        return {"success": True}

    async def _status(self, payload) -> Dict[str, Any]:
        return dict(self.session.status(), success=True)

    async def _devices(self, payload) -> Dict[str, Any]:
        devices = await self.session.list_devices()
        return {"success": True, "devices": devices}

    async def _cleanup(self, payload) -> Dict[str, Any]:
        max_age_days = payload.get("max_age_days")
        if max_age_days is not None and (isinstance(max_age_days, bool) or not isinstance(max_age_days, int)):
            raise InvalidParameter(f"max_age_days must be an integer (got {max_age_days!r})")
        removed = self.session.cleanup_files(max_age_days)
        return {"success": True, "removed": removed}

    async def _stats(self, payload) -> Dict[str, Any]:
        return dict(self.session.storage_stats(), success=True)
