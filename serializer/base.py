"""
Shared building blocks for the node serializer.

Holds the MIXED sentinel, the SceneNode view that every extractor reads,
and the constants shared across extractors.
"""

import re
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_FONT_SIZE = 14
DEFAULT_FONT_NAME = {'family': 'Inter', 'style': 'Regular'}
DEFAULT_FONT_WEIGHT = 400
DEFAULT_TEXT_DECORATION = 'NONE'
DEFAULT_TEXT_CASE = 'ORIGINAL'
DEFAULT_LINE_HEIGHT = {'unit': 'AUTO'}
DEFAULT_LETTER_SPACING = {'unit': 'PIXELS', 'value': 0}

# Root screenshot and embedded images are exported at different scales
CONTEXT_EXPORT_SCALE = 1.5
ASSET_EXPORT_SCALE = 2

COMPONENT_TYPES = ('INSTANCE', 'COMPONENT', 'COMPONENT_SET')
FRAME_LIKE_TYPES = ('FRAME', 'COMPONENT', 'COMPONENT_SET', 'INSTANCE')

GRADIENT_PAINT_TYPES = ('GRADIENT_LINEAR', 'GRADIENT_RADIAL', 'GRADIENT_ANGULAR', 'GRADIENT_DIAMOND')
SHADOW_EFFECT_TYPES = ('DROP_SHADOW', 'INNER_SHADOW')
BLUR_EFFECT_TYPES = ('LAYER_BLUR', 'BACKGROUND_BLUR')

# Text properties that can vary per character
TEXT_RANGE_FIELDS = (
    'fontSize', 'fontName', 'fontWeight', 'fills',
    'textDecoration', 'textCase', 'lineHeight', 'letterSpacing',
)


# ---------------------------------------------------------------------------
# Mixed sentinel
# ---------------------------------------------------------------------------

class _Mixed:
    """Marker for a property with no single value across a range or composite."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'MIXED'

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MIXED = _Mixed()


def is_mixed(value: Any) -> bool:
    """Return True if value is the MIXED sentinel."""
    return value is MIXED


class ExportError(Exception):
    """Raised when a node cannot be rendered to a raster image."""


def safe_name(name: str) -> str:
    """Lowercase a node name and replace anything non-alphanumeric with '_'."""
    return re.sub(r'[^a-zA-Z0-9]', '_', name).lower()


Exporter = Callable[['SceneNode', str, float], Awaitable[bytes]]


# ---------------------------------------------------------------------------
# Scene node
# ---------------------------------------------------------------------------

class SceneNode(Mapping):
    """
    Read-only view of one design-tree node.

    Keys are the design tool's property names ('width', 'fills', 'layoutMode',
    'fontName', ...). A property the node does not support is simply absent,
    so capability checks read as ``'layoutMode' in node``. A property with no
    uniform value holds MIXED.

    Args:
        props: Node properties. 'children', when present, must be a list of SceneNode.
        exporter: Async callable ``(node, format, scale) -> bytes`` used by export_async.
        character_styles: For text nodes, one dict per character holding that
            character's values for TEXT_RANGE_FIELDS. Fields whose values differ
            across characters are stored as MIXED at the top level.
    """

    def __init__(
        self,
        props: Dict[str, Any],
        exporter: Optional[Exporter] = None,
        character_styles: Optional[List[Dict[str, Any]]] = None
    ):
        self._props = dict(props)
        self._exporter = exporter
        self._character_styles = character_styles
        if character_styles:
            self._mark_mixed_fields()

    def __getitem__(self, key: str) -> Any:
        return self._props[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._props)

    def __len__(self) -> int:
        return len(self._props)

    def __repr__(self) -> str:
        return f"SceneNode({self.type} {self.id!r} {self.name!r})"

    @property
    def id(self) -> str:
        return self._props['id']

    @property
    def name(self) -> str:
        return self._props.get('name', '')

    @property
    def type(self) -> str:
        return self._props.get('type', '')

    def _mark_mixed_fields(self) -> None:
        for field in TEXT_RANGE_FIELDS:
            values = [style[field] for style in self._character_styles if field in style]
            if not values:
                continue
            if any(value != values[0] for value in values[1:]):
                self._props[field] = MIXED
            elif field not in self._props:
                self._props[field] = values[0]

    def _char_value(self, field: str, index: int) -> Any:
        if self._character_styles and field in self._character_styles[index]:
            return self._character_styles[index][field]
        if field not in self._props:
            raise KeyError(f"Node {self.id} has no text property '{field}'")
        return self._props[field]

    # -- text range queries ------------------------------------------------

    def get_range(self, field: str, start: int, end: int) -> Any:
        """Value of a text property over characters [start, end), or MIXED if it varies."""
        length = len(self._props.get('characters', ''))
        if not 0 <= start < end <= length:
            raise ValueError(f"Invalid text range {start}..{end} for length {length}")

        first = self._char_value(field, start)
        for index in range(start + 1, end):
            if self._char_value(field, index) != first:
                return MIXED
        return first

    def get_range_font_size(self, start: int, end: int) -> Any:
        return self.get_range('fontSize', start, end)

    def get_range_font_name(self, start: int, end: int) -> Any:
        return self.get_range('fontName', start, end)

    def get_range_font_weight(self, start: int, end: int) -> Any:
        return self.get_range('fontWeight', start, end)

    def get_range_fills(self, start: int, end: int) -> Any:
        return self.get_range('fills', start, end)

    # -- export ------------------------------------------------------------

    async def export_async(self, format: str = 'PNG', scale: float = 1.0) -> bytes:
        """Render this node (and its subtree) to image bytes."""
        if self._exporter is None:
            raise ExportError(f"No exporter attached to node {self.id}")
        return await self._exporter(self, format, scale)
