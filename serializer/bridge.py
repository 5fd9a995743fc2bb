"""
UiBridge: the UI-side end of the plugin message channel.

Responsibilities:
  - the plugin posts messages through post_message(); they queue in the outbox
  - a pump task drains the outbox, serving 'upload-request' messages through
    an async uploader and answering with 'upload-response'
  - the final 'selection-data' / 'error' message of a conversion is handed
    back to the caller of convert()
"""

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, Set

from pydantic import ValidationError

from serializer.base import SceneNode
from serializer.messages import (
    ConvertSelection,
    UploadRequest,
    UploadResponse,
    parse_ui_message,
)
from serializer.session import PluginSession

logger = logging.getLogger("figma_flutter.serializer.bridge")

Uploader = Callable[[str, str], Awaitable[str]]


class UiBridge:
    """Async message bus between a PluginSession and an uploader."""

    def __init__(self, uploader: Uploader) -> None:
        self._uploader = uploader
        # plugin -> UI
        self.outbox: asyncio.Queue = asyncio.Queue()
        # conversion results awaiting convert()
        self._results: asyncio.Queue = asyncio.Queue()
        self._upload_tasks: Set[asyncio.Task] = set()
        self.session: Optional[PluginSession] = None

    def connect(self, get_selection: Callable[[], Sequence[SceneNode]]) -> PluginSession:
        """Create the plugin-side session wired to this bridge."""
        self.session = PluginSession(self.post_message, get_selection)
        return self.session

    def post_message(self, message: Dict[str, Any]) -> None:
        """Plugin side sends a message to the UI."""
        self.outbox.put_nowait(message)

    async def convert(self, save_to_file: bool = False) -> Dict[str, Any]:
        """
        Run one 'convert-selection' round trip.

        Returns:
            The wire-format 'selection-data' or 'error' message.
        """
        if self.session is None:
            raise RuntimeError("UiBridge.connect() must be called before convert()")

        pump = asyncio.create_task(self._pump())
        try:
            await self.session.handle_message(ConvertSelection(save_to_file=save_to_file).to_wire())
            return await self._results.get()
        finally:
            pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump

    async def _pump(self) -> None:
        while True:
            message = await self.outbox.get()
            try:
                parsed = parse_ui_message(message)
            except ValidationError as e:
                logger.warning(f"Dropping invalid plugin message {message.get('kind')!r}: {e}")
                continue

            if isinstance(parsed, UploadRequest):
                task = asyncio.create_task(self._serve_upload(parsed))
                self._upload_tasks.add(task)
                task.add_done_callback(self._upload_tasks.discard)
            else:
                await self._results.put(message)

    async def _serve_upload(self, request: UploadRequest) -> None:
        try:
            filename = await self._uploader(request.name, request.data)
            if filename:
                response = UploadResponse(id=request.id, filename=filename)
            else:
                response = UploadResponse(id=request.id, error='Uploader returned no filename')
        except Exception as e:
            logger.warning(f"Upload of {request.name} failed: {e}")
            response = UploadResponse(id=request.id, error=str(e) or type(e).__name__)

        await self.session.handle_message(response.to_wire())
