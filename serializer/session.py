"""Plugin-side message handling: one serialization pass per 'convert-selection'."""

import logging
from typing import Any, Callable, Dict, Sequence

from pydantic import ValidationError

from serializer.base import SceneNode
from serializer.messages import (
    ConvertSelection,
    ErrorMessage,
    SelectionData,
    UploadResponse,
    parse_plugin_message,
)
from serializer.tree import serialize_node
from serializer.uploads import PostMessage, UploadCoordinator

logger = logging.getLogger("figma_flutter.serializer.session")

EMPTY_SELECTION_MESSAGE = 'Please select a node to convert.'
FAILED_SELECTION_MESSAGE = 'Failed to process selection. Check the server logs.'


class PluginSession:
    """
    Message handler running inside the plugin sandbox.

    Args:
        post_message: Sends a wire-format message to the UI side.
        get_selection: Returns the currently selected nodes; only the first is converted.
    """

    def __init__(self, post_message: PostMessage, get_selection: Callable[[], Sequence[SceneNode]]):
        self._post_message = post_message
        self._get_selection = get_selection
        self.uploads = UploadCoordinator(post_message)

    async def handle_message(self, message: Dict[str, Any]) -> None:
        """Dispatch one message from the UI side. Unrecognized messages are logged and ignored."""
        try:
            parsed = parse_plugin_message(message)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid message {message.get('kind')!r}: {e}")
            request_id = message.get('id')
            if message.get('kind') == 'upload-response' and isinstance(request_id, str):
                # A malformed response still ends its request
                self.uploads.resolve(request_id, error=f"Invalid upload response: {e}")
            return

        if isinstance(parsed, UploadResponse):
            self.uploads.resolve(parsed.id, filename=parsed.filename, error=parsed.error)
        elif isinstance(parsed, ConvertSelection):
            await self.convert_selection(parsed.save_to_file)

    async def convert_selection(self, save_to_file: bool = False) -> None:
        """Serialize the first selected node and post 'selection-data', or post 'error'."""
        selection = self._get_selection()
        if not selection:
            self._post_message(ErrorMessage(message=EMPTY_SELECTION_MESSAGE).to_wire())
            return

        root = selection[0]
        assets = {}
        try:
            serialized = await serialize_node(root, assets, self.uploads)
        except Exception:
            logger.exception(f"Serialization of node {root.id} failed")
            self._post_message(ErrorMessage(message=FAILED_SELECTION_MESSAGE).to_wire())
            return

        logger.info(f"Serialized node {root.id} with {len(assets)} image asset(s)")
        self._post_message(SelectionData(
            data=serialized,
            assets=assets,
            context_image=serialized.get('contextImageFilename'),
            save_to_file=save_to_file
        ).to_wire())
