"""Style extraction: paints, effects, corners, opacity, blending and masking."""

from typing import Any, Dict, Union

from serializer.base import is_mixed
from serializer.paint import serialize_effects, serialize_paints

_CORNER_FIELDS = (
    ('topLeft', 'topLeftRadius'),
    ('topRight', 'topRightRadius'),
    ('bottomLeft', 'bottomLeftRadius'),
    ('bottomRight', 'bottomRightRadius'),
)

# Copied verbatim whenever the node supports them
_PASSTHROUGH_FIELDS = ('strokeAlign', 'opacity', 'blendMode', 'isMask', 'clipsContent')


def _extract_corner_radius(node: Dict[str, Any]) -> Union[float, Dict[str, float], None]:
    """Uniform radius as a scalar, per-corner radii as a dict."""
    if 'cornerRadius' in node and not is_mixed(node['cornerRadius']):
        return node['cornerRadius']

    if 'topLeftRadius' not in node:
        return None

    radii = {key: node.get(field, 0) for key, field in _CORNER_FIELDS}
    values = list(radii.values())
    if all(value == values[0] for value in values[1:]):
        return values[0]
    return radii


def extract_style(node: Dict[str, Any]) -> Dict[str, Any]:
    """Extract visual style from a node, skipping any MIXED property."""
    style = {}

    if 'fills' in node and not is_mixed(node['fills']):
        style['fills'] = serialize_paints(node['fills'])
    if 'strokes' in node and not is_mixed(node['strokes']):
        style['strokes'] = serialize_paints(node['strokes'])
    if 'strokeWeight' in node and not is_mixed(node['strokeWeight']):
        style['strokeWeight'] = node['strokeWeight']
    if 'effects' in node and not is_mixed(node['effects']):
        style['effects'] = serialize_effects(node['effects'])

    for field in _PASSTHROUGH_FIELDS:
        if field in node and not is_mixed(node[field]):
            style[field] = node[field]

    corner_radius = _extract_corner_radius(node)
    if corner_radius is not None:
        style['cornerRadius'] = corner_radius

    return style
