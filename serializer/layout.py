"""Layout extraction: geometry plus auto-layout properties."""

from typing import Any, Dict

from serializer.base import is_mixed

# Each emitted only when the node has the matching capability
_OPTIONAL_LAYOUT_FIELDS = (
    'layoutWrap',
    'layoutPositioning',
    'layoutGrow',
    'layoutAlign',
    'constraints',
    'minWidth',
    'maxWidth',
    'minHeight',
    'maxHeight',
)


def _extract_auto_layout(node: Dict[str, Any]) -> Dict[str, Any]:
    """Auto-layout group: mode, sizing, alignment, spacing and padding."""
    return {
        'layoutMode': node['layoutMode'],
        'primaryAxisSizingMode': node.get('primaryAxisSizingMode'),
        'counterAxisSizingMode': node.get('counterAxisSizingMode'),
        'primaryAxisAlignItems': node.get('primaryAxisAlignItems'),
        'counterAxisAlignItems': node.get('counterAxisAlignItems'),
        'itemSpacing': node.get('itemSpacing', 0),
        'padding': {
            'top': node.get('paddingTop', 0),
            'right': node.get('paddingRight', 0),
            'bottom': node.get('paddingBottom', 0),
            'left': node.get('paddingLeft', 0)
        }
    }


def extract_layout(node: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract geometry and auto-layout properties from a node.

    Fields a node does not support are omitted rather than defaulted, so
    consumers can tell "not applicable" apart from "applicable with default".
    """
    layout = {
        'width': node['width'],
        'height': node['height'],
        'x': node['x'],
        'y': node['y']
    }

    rotation = node.get('rotation', 0)
    if rotation and not is_mixed(rotation):
        layout['rotation'] = rotation

    if 'layoutMode' in node and not is_mixed(node['layoutMode']):
        layout.update(_extract_auto_layout(node))

    for field in _OPTIONAL_LAYOUT_FIELDS:
        if field in node and not is_mixed(node[field]):
            layout[field] = node[field]

    return layout
