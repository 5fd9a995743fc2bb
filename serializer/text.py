"""
Text extraction with styled-segment detection.

A styled segment is a maximal run of characters sharing font size, font name
and font weight. Segments are only attached when a text node has more than
one of them; a single uniform run is fully described by the top-level fields.
"""

import logging
from typing import Any, Dict, List, Tuple

from serializer.base import (
    DEFAULT_FONT_NAME,
    DEFAULT_FONT_SIZE,
    DEFAULT_FONT_WEIGHT,
    DEFAULT_LETTER_SPACING,
    DEFAULT_LINE_HEIGHT,
    DEFAULT_TEXT_CASE,
    DEFAULT_TEXT_DECORATION,
    SceneNode,
    is_mixed,
)
from serializer.paint import serialize_paints

logger = logging.getLogger("figma_flutter.serializer.text")

# (field, default used when the value is MIXED)
_RESOLVED_FIELDS = (
    ('fontSize', DEFAULT_FONT_SIZE),
    ('fontName', DEFAULT_FONT_NAME),
    ('fontWeight', DEFAULT_FONT_WEIGHT),
    ('textDecoration', DEFAULT_TEXT_DECORATION),
    ('textCase', DEFAULT_TEXT_CASE),
    ('lineHeight', DEFAULT_LINE_HEIGHT),
    ('letterSpacing', DEFAULT_LETTER_SPACING),
)


def _resolve(node: SceneNode, field: str, default: Any) -> Any:
    value = node.get(field, default)
    if is_mixed(value):
        return dict(default) if isinstance(default, dict) else default
    return value


def _probe(node: SceneNode, index: int) -> Tuple[Any, Any, Any]:
    """Font size, name and weight of the single character at index."""
    end = index + 1
    return (
        node.get_range_font_size(index, end),
        node.get_range_font_name(index, end),
        node.get_range_font_weight(index, end),
    )


def _same_run(seed: Tuple[Any, Any, Any], other: Tuple[Any, Any, Any]) -> bool:
    size, name, weight = seed
    next_size, next_name, next_weight = other
    if is_mixed(name) or is_mixed(next_name):
        return False
    # fontName is a dict; compared by value
    return size == next_size and name == next_name and weight == next_weight


def extract_styled_segments(node: SceneNode) -> List[Dict[str, Any]]:
    """
    Split a text node's characters into runs of uniform font size, name and weight.

    Each character is queried once and the results are reused while scanning,
    so the scan is linear in the text length. Runs whose seed character reports
    a MIXED size, name or weight are skipped.
    """
    characters = node.get('characters', '')
    length = len(characters)
    probes = [_probe(node, index) for index in range(length)]

    segments = []
    start = 0
    while start < length:
        seed = probes[start]
        end = start + 1
        while end < length and _same_run(seed, probes[end]):
            end += 1

        font_size, font_name, font_weight = seed
        if not (is_mixed(font_size) or is_mixed(font_name) or is_mixed(font_weight)):
            segment = {
                'characters': characters[start:end],
                'start': start,
                'end': end,
                'fontSize': font_size,
                'fontName': font_name,
                'fontWeight': font_weight
            }
            if 'fills' in node:
                fills = node.get_range_fills(start, start + 1)
                if not is_mixed(fills):
                    segment['fills'] = serialize_paints(fills)
            segments.append(segment)

        start = end

    return segments


def extract_text(node: SceneNode) -> Dict[str, Any]:
    """Extract text content, typography and (when non-uniform) styled segments."""
    text = {'characters': node.get('characters', '')}
    for field, default in _RESOLVED_FIELDS:
        text[field] = _resolve(node, field, default)

    text['textAlignHorizontal'] = node.get('textAlignHorizontal')
    text['textAlignVertical'] = node.get('textAlignVertical')

    for field in ('paragraphSpacing', 'paragraphIndent'):
        if field in node and not is_mixed(node[field]):
            text[field] = node[field]

    try:
        segments = extract_styled_segments(node)
    except Exception as e:
        logger.warning(f"Could not extract text segments for node {node.id}: {e}")
        segments = []

    if len(segments) > 1:
        text['styledSegments'] = segments

    return text
