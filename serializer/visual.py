"""Visual weight and decoration flags for a node."""

import math
from typing import Any, Dict

from serializer.base import SHADOW_EFFECT_TYPES, is_mixed


def _list_property(node: Dict[str, Any], field: str) -> list:
    value = node.get(field)
    if is_mixed(value) or not isinstance(value, list):
        return []
    return value


def analyze_visual_context(node: Dict[str, Any]) -> Dict[str, Any]:
    """Relative visual weight (log area scaled by opacity) plus background/border/shadow flags."""
    area = node.get('width', 0) * node.get('height', 0)
    visual_weight = math.log(area + 1) / 10

    opacity = node.get('opacity')
    if opacity is not None and not is_mixed(opacity):
        visual_weight *= opacity

    fills = _list_property(node, 'fills')
    strokes = _list_property(node, 'strokes')
    effects = _list_property(node, 'effects')

    return {
        'visualWeight': visual_weight,
        'hasBackground': any(fill.get('visible') is not False for fill in fills),
        'hasBorder': len(strokes) > 0,
        'hasShadow': any(
            effect.get('type') in SHADOW_EFFECT_TYPES and effect.get('visible')
            for effect in effects
        )
    }
