"""
Image upload coordination across the plugin/UI boundary.

The plugin side cannot do network or file I/O itself. Each upload is posted
to the UI side as an 'upload-request' and parked in a pending table keyed by
request id; the matching 'upload-response' resolves it later.
"""

import asyncio
import itertools
import logging
from typing import Any, Callable, Dict, Optional

from serializer.messages import UploadRequest

logger = logging.getLogger("figma_flutter.serializer.uploads")

# Process-wide so ids never repeat across coordinators
_request_ids = itertools.count(1)

PostMessage = Callable[[Dict[str, Any]], None]


class UploadCoordinator:
    """
    Correlates upload requests with their asynchronous responses.

    Any number of requests may be outstanding at once. Each pending entry is
    resolved at most once and removed as soon as it resolves. There is no
    timeout: a request whose response never arrives waits forever.

    Args:
        post_message: Sends a wire-format message to the UI side.
    """

    def __init__(self, post_message: PostMessage):
        self._post_message = post_message
        self._pending: Dict[str, asyncio.Future] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, request_id: str) -> bool:
        return request_id in self._pending

    async def request_upload(self, name: str, data: str) -> Optional[str]:
        """
        Upload base64 image data through the UI side.

        Args:
            name: Suggested base name for the stored file
            data: Base64-encoded image bytes

        Returns:
            Stored filename, or None if the UI side reported an error.
        """
        request_id = f"upload-{next(_request_ids)}"
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        try:
            self._post_message(UploadRequest(id=request_id, name=name, data=data).to_wire())
            logger.debug(f"Upload requested: id={request_id}, name={name}, size={len(data)}")
            return await future
        finally:
            self._pending.pop(request_id, None)

    def resolve(self, request_id: str, filename: Optional[str] = None, error: Optional[str] = None) -> bool:
        """
        Deliver the response for one request.

        Returns:
            True if a pending request was resolved, False for unknown or
            already-resolved ids.
        """
        future = self._pending.pop(request_id, None)
        if future is None:
            logger.warning(f"Upload response for unknown request id {request_id}")
            return False

        if error is not None:
            logger.warning(f"Upload {request_id} failed: {error}")
        if not future.done():
            future.set_result(None if error is not None else filename)
        return True
