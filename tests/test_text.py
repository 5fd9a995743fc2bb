"""Tests for text extraction and styled segments."""
import pytest

from serializer.base import MIXED, SceneNode
from serializer.text import extract_styled_segments, extract_text


class TestTopLevelText:
    """Verify top-level fields resolve MIXED to documented defaults."""

    def test_uniform_text_has_no_segments(self, make_node, solid_fill):
        node = make_node({
            'id': '3:2', 'type': 'TEXT', 'characters': 'Sign in',
            'fontSize': 18, 'fontName': {'family': 'Roboto', 'style': 'Medium'}, 'fontWeight': 500,
            'fills': [solid_fill], 'textAlignHorizontal': 'CENTER', 'textAlignVertical': 'CENTER',
            'paragraphSpacing': 4, 'paragraphIndent': MIXED,
        })
        text = extract_text(node)
        assert text['characters'] == 'Sign in'
        assert text['fontSize'] == 18
        assert text['fontName'] == {'family': 'Roboto', 'style': 'Medium'}
        assert text['fontWeight'] == 500
        assert text['textAlignHorizontal'] == 'CENTER'
        assert text['paragraphSpacing'] == 4
        assert 'paragraphIndent' not in text
        assert 'styledSegments' not in text

    def test_mixed_fields_fall_back_to_defaults(self, make_node):
        node = make_node({
            'id': '3:3', 'type': 'TEXT', 'characters': '',
            'fontSize': MIXED, 'fontName': MIXED, 'fontWeight': MIXED,
            'textDecoration': MIXED, 'textCase': MIXED, 'lineHeight': MIXED, 'letterSpacing': MIXED,
        })
        text = extract_text(node)
        assert text['fontSize'] == 14
        assert text['fontName'] == {'family': 'Inter', 'style': 'Regular'}
        assert text['fontWeight'] == 400
        assert text['textDecoration'] == 'NONE'
        assert text['textCase'] == 'ORIGINAL'
        assert text['lineHeight'] == {'unit': 'AUTO'}
        assert text['letterSpacing'] == {'unit': 'PIXELS', 'value': 0}

    def test_default_dicts_are_not_shared(self, make_node):
        node = make_node({'id': '3:4', 'type': 'TEXT', 'characters': 'x', 'fontName': MIXED})
        extract_text(node)['fontName']['family'] = 'Changed'
        assert extract_text(node)['fontName']['family'] == 'Inter'


class TestStyledSegments:
    """Verify run detection over per-character styles."""

    def test_two_runs_offsets(self, make_node, hello_world_text):
        text = extract_text(make_node(hello_world_text))
        segments = text['styledSegments']
        assert len(segments) == 2
        assert (segments[0]['start'], segments[0]['end']) == (0, 6)
        assert (segments[1]['start'], segments[1]['end']) == (6, 11)
        assert segments[0]['characters'] == 'Hello '
        assert segments[1]['characters'] == 'World'
        assert segments[0]['fontWeight'] == 400
        assert segments[1]['fontWeight'] == 700
        assert segments[1]['fontName'] == {'family': 'Roboto', 'style': 'Bold'}
        assert segments[0]['fills'][0]['type'] == 'SOLID'

    def test_top_level_marks_mixed_weight(self, make_node, hello_world_text):
        node = make_node(hello_world_text)
        assert node['fontWeight'] is MIXED
        assert node['fontSize'] == 16
        # MIXED resolves to the default weight at the top level
        assert extract_text(node)['fontWeight'] == 400

    def test_font_name_compared_by_value(self, make_node):
        styles = [{'fontSize': 12, 'fontName': {'family': 'Inter', 'style': 'Regular'}, 'fontWeight': 400}
                  for _ in range(3)]
        node = make_node({'id': '3:5', 'type': 'TEXT', 'characters': 'abc', 'character_styles': styles})
        segments = extract_styled_segments(node)
        assert len(segments) == 1
        assert (segments[0]['start'], segments[0]['end']) == (0, 3)

    def test_size_change_splits_runs(self, make_node):
        name = {'family': 'Inter', 'style': 'Regular'}
        styles = [{'fontSize': size, 'fontName': name, 'fontWeight': 400} for size in (12, 12, 20, 12)]
        node = make_node({'id': '3:6', 'type': 'TEXT', 'characters': 'abcd', 'character_styles': styles})
        spans = [(s['start'], s['end']) for s in extract_styled_segments(node)]
        assert spans == [(0, 2), (2, 3), (3, 4)]

    def test_segments_without_fills_capability(self, make_node):
        name = {'family': 'Inter', 'style': 'Regular'}
        styles = [{'fontSize': 12, 'fontName': name, 'fontWeight': w} for w in (400, 700)]
        node = make_node({'id': '3:7', 'type': 'TEXT', 'characters': 'ab', 'character_styles': styles})
        segments = extract_styled_segments(node)
        assert len(segments) == 2
        assert all('fills' not in segment for segment in segments)

    def test_range_query_failure_drops_segments(self, hello_world_text):
        class BrokenRanges(SceneNode):
            def get_range(self, field, start, end):
                raise RuntimeError("range query failed")

        props = {k: v for k, v in hello_world_text.items() if k != 'character_styles'}
        props.update({'x': 0, 'y': 0})
        node = BrokenRanges(props, character_styles=hello_world_text['character_styles'])
        text = extract_text(node)
        assert text['characters'] == 'Hello World'
        assert 'styledSegments' not in text


class TestRangeQueries:
    """Verify SceneNode range query contract."""

    def test_mixed_over_multi_character_range(self, make_node, hello_world_text):
        node = make_node(hello_world_text)
        assert node.get_range_font_weight(0, 6) == 400
        assert node.get_range_font_weight(4, 8) is MIXED
        assert node.get_range_font_size(0, 11) == 16

    def test_invalid_range_raises(self, make_node, hello_world_text):
        node = make_node(hello_world_text)
        with pytest.raises(ValueError):
            node.get_range_font_size(5, 5)
        with pytest.raises(ValueError):
            node.get_range_font_size(10, 12)
