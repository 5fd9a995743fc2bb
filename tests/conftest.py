"""Shared test fixtures for serializer tests."""
import asyncio

import pytest

from serializer.base import SceneNode


def _build(desc, exporter=None):
    props = {'x': 0, 'y': 0, 'width': 100, 'height': 100, 'name': desc.get('id', 'node')}
    props.update({k: v for k, v in desc.items() if k not in ('children', 'character_styles')})
    if 'children' in desc:
        props['children'] = [_build(child, exporter) for child in desc['children']]
    return SceneNode(props, exporter=exporter, character_styles=desc.get('character_styles'))


@pytest.fixture
def make_node():
    """Build a SceneNode tree from nested dicts. Geometry defaults to 100x100 at 0,0."""
    def factory(desc, exporter=None):
        return _build(desc, exporter)
    return factory


@pytest.fixture
def fake_exporter():
    """
    Exporter factory returning b'png:<id>'.

    failing: node ids whose export raises
    delays: node id -> seconds to sleep before returning
    """
    def factory(failing=(), delays=None):
        delays = delays or {}

        async def export(node, fmt, scale):
            await asyncio.sleep(delays.get(node.id, 0))
            if node.id in failing:
                raise RuntimeError(f"render failed for {node.id}")
            return f"png:{node.id}@{scale}".encode()
        return export
    return factory


@pytest.fixture
def solid_fill():
    return {'type': 'SOLID', 'visible': True, 'color': {'r': 0.1, 'g': 0.6, 'b': 1}, 'opacity': 1}


@pytest.fixture
def image_fill():
    return {'type': 'IMAGE', 'visible': True, 'scaleMode': 'FILL', 'imageHash': 'abc123'}


@pytest.fixture
def button_frame(solid_fill):
    """Auto-layout frame shaped like a primary button."""
    return {
        'id': '1:2',
        'name': 'Primary Button',
        'type': 'FRAME',
        'width': 160,
        'height': 48,
        'x': 24,
        'y': 300,
        'layoutMode': 'HORIZONTAL',
        'primaryAxisSizingMode': 'FIXED',
        'counterAxisSizingMode': 'AUTO',
        'primaryAxisAlignItems': 'CENTER',
        'counterAxisAlignItems': 'CENTER',
        'itemSpacing': 8,
        'paddingTop': 8,
        'paddingRight': 16,
        'paddingBottom': 8,
        'paddingLeft': 16,
        'layoutWrap': 'NO_WRAP',
        'fills': [solid_fill],
        'strokes': [],
        'strokeWeight': 1,
        'strokeAlign': 'INSIDE',
        'effects': [{
            'type': 'DROP_SHADOW', 'visible': True, 'radius': 4, 'spread': 0,
            'color': {'r': 0, 'g': 0, 'b': 0, 'a': 0.25},
            'offset': {'x': 0, 'y': 2}, 'blendMode': 'NORMAL'
        }],
        'opacity': 1,
        'blendMode': 'PASS_THROUGH',
        'cornerRadius': 8,
        'topLeftRadius': 8,
        'topRightRadius': 8,
        'bottomLeftRadius': 8,
        'bottomRightRadius': 8,
        'clipsContent': True,
        'reactions': [],
    }


@pytest.fixture
def hello_world_text(solid_fill):
    """'Hello World' with 'Hello ' at weight 400 and 'World' at weight 700."""
    regular = {'fontSize': 16, 'fontName': {'family': 'Roboto', 'style': 'Regular'}, 'fontWeight': 400,
               'fills': [solid_fill]}
    bold = {'fontSize': 16, 'fontName': {'family': 'Roboto', 'style': 'Bold'}, 'fontWeight': 700,
            'fills': [solid_fill]}
    return {
        'id': '3:1',
        'name': 'Greeting',
        'type': 'TEXT',
        'width': 120,
        'height': 20,
        'characters': 'Hello World',
        'fills': [solid_fill],
        'fontSize': 16,
        'textAlignHorizontal': 'LEFT',
        'textAlignVertical': 'TOP',
        'character_styles': [dict(regular) for _ in range(6)] + [dict(bold) for _ in range(5)],
    }
