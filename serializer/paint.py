"""Paint and effect codec: design-tool paints/effects to serializable dicts."""

from typing import Any, Dict, List, Optional

from serializer.base import BLUR_EFFECT_TYPES, GRADIENT_PAINT_TYPES, SHADOW_EFFECT_TYPES


def serialize_paint(paint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Serialize a fill or stroke. Unsupported paint kinds return None."""
    paint_type = paint.get('type')

    if paint_type == 'SOLID':
        return {
            'type': 'SOLID',
            'color': paint.get('color'),
            'opacity': paint.get('opacity', 1),
            'visible': paint.get('visible', True)
        }

    if paint_type in GRADIENT_PAINT_TYPES:
        return {
            'type': paint_type,
            'gradientStops': paint.get('gradientStops'),
            'gradientTransform': paint.get('gradientTransform'),
            'opacity': paint.get('opacity', 1),
            'visible': paint.get('visible', True)
        }

    if paint_type == 'IMAGE':
        # Pixel data travels separately through the upload bridge
        return {
            'type': 'IMAGE',
            'opacity': paint.get('opacity', 1),
            'scaleMode': paint.get('scaleMode'),
            'visible': paint.get('visible', True)
        }

    return None


def serialize_effect(effect: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Serialize a shadow or blur effect. Unsupported effect kinds return None."""
    effect_type = effect.get('type')

    if effect_type in SHADOW_EFFECT_TYPES:
        return {
            'type': effect_type,
            'color': effect.get('color'),
            'offset': effect.get('offset'),
            'radius': effect.get('radius'),
            'spread': effect.get('spread', 0),
            'visible': effect.get('visible'),
            'blendMode': effect.get('blendMode')
        }

    if effect_type in BLUR_EFFECT_TYPES:
        return {
            'type': effect_type,
            'radius': effect.get('radius'),
            'visible': effect.get('visible')
        }

    return None


def serialize_paints(paints: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Serialize a paint list, dropping unsupported kinds."""
    serialized = (serialize_paint(paint) for paint in paints)
    return [paint for paint in serialized if paint is not None]


def serialize_effects(effects: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Serialize an effect list, dropping unsupported kinds."""
    serialized = (serialize_effect(effect) for effect in effects)
    return [effect for effect in serialized if effect is not None]
