"""
Figma REST API adapter.

Turns a node document from ``GET /v1/files/:key/nodes`` into a SceneNode tree
whose keys follow the plugin API property names the extractors read.
"""

import math
from typing import Any, Dict, List, Optional

from serializer.base import FRAME_LIKE_TYPES, MIXED, Exporter, SceneNode

# Figma's documented defaults for frame-like nodes; REST omits default values
_AUTO_LAYOUT_DEFAULTS = {
    'layoutMode': 'NONE',
    'primaryAxisSizingMode': 'AUTO',
    'counterAxisSizingMode': 'AUTO',
    'primaryAxisAlignItems': 'MIN',
    'counterAxisAlignItems': 'MIN',
    'itemSpacing': 0,
    'paddingTop': 0,
    'paddingRight': 0,
    'paddingBottom': 0,
    'paddingLeft': 0,
    'layoutWrap': 'NO_WRAP',
    'clipsContent': False,
}

_COPIED_FIELDS = (
    'fills', 'strokes', 'strokeWeight', 'strokeAlign', 'effects',
    'blendMode', 'isMask', 'clipsContent', 'cornerRadius',
    'layoutPositioning', 'layoutGrow', 'layoutAlign',
    'minWidth', 'maxWidth', 'minHeight', 'maxHeight',
)

_CORNER_KEYS = ('topLeftRadius', 'topRightRadius', 'bottomRightRadius', 'bottomLeftRadius')

# REST constraint names to plugin API names
_CONSTRAINT_NAMES = {
    'LEFT': 'MIN', 'TOP': 'MIN',
    'RIGHT': 'MAX', 'BOTTOM': 'MAX',
    'LEFT_RIGHT': 'STRETCH', 'TOP_BOTTOM': 'STRETCH',
    'CENTER': 'CENTER', 'SCALE': 'SCALE',
}

_TEXT_NODE_FIELDS = ('textAlignHorizontal', 'textAlignVertical', 'paragraphSpacing', 'paragraphIndent')


def _geometry(document: Dict[str, Any], parent_box: Optional[Dict[str, Any]]) -> Dict[str, float]:
    """Size plus position relative to the parent's coordinate space."""
    box = document.get('absoluteBoundingBox') or {}
    size = document.get('size') or {}
    geometry = {
        'width': size.get('x', box.get('width', 0)),
        'height': size.get('y', box.get('height', 0)),
    }

    transform = document.get('relativeTransform')
    if transform and len(transform) >= 2:
        geometry['x'] = transform[0][2]
        geometry['y'] = transform[1][2]
    elif parent_box:
        geometry['x'] = box.get('x', 0) - parent_box.get('x', 0)
        geometry['y'] = box.get('y', 0) - parent_box.get('y', 0)
    else:
        geometry['x'] = box.get('x', 0)
        geometry['y'] = box.get('y', 0)

    return geometry


def _line_height(style: Dict[str, Any]) -> Dict[str, Any]:
    unit = style.get('lineHeightUnit', 'INTRINSIC_%')
    if unit == 'PIXELS' and 'lineHeightPx' in style:
        return {'unit': 'PIXELS', 'value': style['lineHeightPx']}
    if unit == 'FONT_SIZE_%':
        return {'unit': 'PERCENT', 'value': style.get('lineHeightPercentFontSize', 100)}
    return {'unit': 'AUTO'}


def convert_type_style(style: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a REST TypeStyle into the plugin's per-character text properties."""
    converted = {}
    if 'fontSize' in style:
        converted['fontSize'] = style['fontSize']
    if 'fontFamily' in style:
        converted['fontName'] = {
            'family': style['fontFamily'],
            'style': style.get('fontStyle') or ('Italic' if style.get('italic') else 'Regular')
        }
    if 'fontWeight' in style:
        converted['fontWeight'] = style['fontWeight']
    converted['textDecoration'] = style.get('textDecoration', 'NONE')
    converted['textCase'] = style.get('textCase', 'ORIGINAL')
    converted['lineHeight'] = _line_height(style)
    converted['letterSpacing'] = {'unit': 'PIXELS', 'value': style.get('letterSpacing', 0)}
    return converted


def _character_styles(document: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
    """Per-character effective styles from characterStyleOverrides, or None if uniform."""
    overrides = document.get('characterStyleOverrides') or []
    if not any(overrides):
        return None

    base_style = document.get('style', {})
    table = document.get('styleOverrideTable', {})
    base_fills = document.get('fills', [])
    styles = []

    # Overrides are indexed by UTF-16 code unit; astral characters take two slots
    position = 0
    for char in document.get('characters', ''):
        override_id = overrides[position] if position < len(overrides) else 0
        position += 2 if ord(char) > 0xFFFF else 1
        override = table.get(str(override_id), {}) if override_id else {}
        char_style = convert_type_style({**base_style, **override})
        char_style['fills'] = override.get('fills', base_fills)
        styles.append(char_style)

    return styles


def _convert_constraints(constraints: Dict[str, Any]) -> Dict[str, Any]:
    return {
        axis: _CONSTRAINT_NAMES.get(value, value)
        for axis, value in constraints.items()
    }


def _corner_radii(document: Dict[str, Any]) -> Dict[str, Any]:
    radii = document.get('rectangleCornerRadii')
    if not radii or len(radii) != 4:
        return {}

    corners = dict(zip(_CORNER_KEYS, radii))
    uniform = all(radius == radii[0] for radius in radii[1:])
    corners['cornerRadius'] = radii[0] if uniform else MIXED
    return corners


def build_scene_tree(
    document: Dict[str, Any],
    exporter: Optional[Exporter] = None,
    components: Optional[Dict[str, Any]] = None,
    parent_box: Optional[Dict[str, Any]] = None
) -> SceneNode:
    """
    Build a SceneNode tree from a Figma REST node document.

    Text overrides arrive indexed by UTF-16 code unit and are re-indexed by
    code point, so range queries and segment offsets count Python characters.

    Args:
        document: Node JSON ('document' entry of a /nodes response)
        exporter: Attached to every node for raster export
        components: The response's 'components' map, used to name main components
        parent_box: Parent's absoluteBoundingBox, for position fallback

    Returns:
        SceneNode for document with all descendants attached.
    """
    node_type = document.get('type', '')
    props = {
        'id': document.get('id'),
        'name': document.get('name', ''),
        'type': node_type,
    }
    props.update(_geometry(document, parent_box))

    rotation = document.get('rotation')
    if rotation:
        # REST rotation is clockwise radians; the plugin API uses degrees
        props['rotation'] = -math.degrees(rotation)

    if node_type in FRAME_LIKE_TYPES:
        for field, default in _AUTO_LAYOUT_DEFAULTS.items():
            props[field] = document.get(field, default)

    for field in _COPIED_FIELDS:
        if field in document:
            props[field] = document[field]

    if 'constraints' in document:
        props['constraints'] = _convert_constraints(document['constraints'])

    if 'blendMode' in document:
        props['opacity'] = document.get('opacity', 1)

    props.update(_corner_radii(document))

    interactions = document.get('interactions', document.get('reactions'))
    if interactions is not None:
        props['reactions'] = interactions

    component_id = document.get('componentId')
    if component_id:
        component = (components or {}).get(component_id, {})
        props['mainComponent'] = {'id': component_id, 'name': component.get('name')}

    character_styles = None
    if node_type == 'TEXT':
        props['characters'] = document.get('characters', '')
        style = document.get('style', {})
        props.update(convert_type_style(style))
        for field in _TEXT_NODE_FIELDS:
            if field in style:
                props[field] = style[field]
        character_styles = _character_styles(document)

    if 'children' in document:
        box = document.get('absoluteBoundingBox')
        props['children'] = [
            build_scene_tree(child, exporter, components, box)
            for child in document['children']
        ]

    return SceneNode(props, exporter=exporter, character_styles=character_styles)
