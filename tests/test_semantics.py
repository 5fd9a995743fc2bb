"""Tests for heuristic semantic classification."""
from serializer.semantics import SEMANTIC_RULES, classify


def _node(name, width=200, height=80, **extra):
    node = {'name': name, 'width': width, 'height': height}
    node.update(extra)
    return node


class TestRoleRules:
    """Verify keyword and shape rules, first match wins."""

    def test_primary_button(self):
        hints = classify(_node('Primary Button'), 1)
        assert hints == {'likelyRole': 'button', 'isInteractive': True, 'confidence': 0.9}

    def test_button_keywords(self):
        for name in ('btn-submit', 'CTA banner'):
            assert classify(_node(name), 1)['likelyRole'] == 'button'

    def test_input_keywords(self):
        for name in ('Email Input', 'TextField', 'password field'):
            hints = classify(_node(name), 1)
            assert hints['likelyRole'] == 'input'
            assert hints['isInteractive'] is True
            assert hints['confidence'] == 0.9

    def test_card_header_avatar(self):
        assert classify(_node('Product Card'), 1) == {'likelyRole': 'card', 'confidence': 0.85}
        assert classify(_node('AppBar'), 1)['likelyRole'] == 'header'
        assert classify(_node('NavBar'), 1)['likelyRole'] == 'header'
        assert classify(_node('User Profile'), 1) == {'likelyRole': 'avatar', 'confidence': 0.8}

    def test_first_match_wins(self):
        # 'button' outranks 'card'
        assert classify(_node('Card Button'), 1)['likelyRole'] == 'button'

    def test_icon_by_name_or_small_square(self):
        assert classify(_node('icon/search'), 2) == {'likelyRole': 'icon', 'confidence': 0.7}
        assert classify(_node('Vector', width=24, height=24), 2)['likelyRole'] == 'icon'
        assert classify(_node('Vector', width=48, height=48), 2)['likelyRole'] == 'icon'
        assert 'likelyRole' not in classify(_node('Vector', width=49, height=49), 2)

    def test_divider(self):
        hints = classify(_node('Divider', width=200, height=1), 1)
        assert hints == {'likelyRole': 'divider', 'isDecorative': True, 'confidence': 0.8}

    def test_divider_by_shape(self):
        assert classify(_node('Line 3', width=300, height=2), 1)['likelyRole'] == 'divider'
        assert classify(_node('Rule', width=1, height=120), 1)['likelyRole'] == 'divider'
        assert 'likelyRole' not in classify(_node('Rule', width=40, height=1), 1)

    def test_badge(self):
        for name in ('New Badge', 'tag', 'Filter Chip'):
            assert classify(_node(name), 1)['likelyRole'] == 'badge'

    def test_no_match(self):
        assert classify(_node('Frame 12'), 0) == {'confidence': 0}

    def test_rule_order(self):
        assert [rule.role for rule in SEMANTIC_RULES] == [
            'button', 'input', 'card', 'header', 'avatar', 'icon', 'divider', 'badge'
        ]


class TestOverrideFlags:
    """Verify override flags only ever add True."""

    def test_reactions_force_interactive(self):
        hints = classify(_node('Frame 12', reactions=[{'trigger': {'type': 'ON_CLICK'}}]), 1)
        assert hints['isInteractive'] is True
        assert 'likelyRole' not in hints

    def test_empty_reactions_do_nothing(self):
        assert 'isInteractive' not in classify(_node('Frame 12', reactions=[]), 1)

    def test_low_opacity_is_decorative(self):
        assert classify(_node('Frame 12', opacity=0.05), 1)['isDecorative'] is True
        assert 'isDecorative' not in classify(_node('Frame 12', opacity=0.1), 1)

    def test_background_names_are_decorative(self):
        for name in ('bg', 'Background Image', 'Modal Overlay'):
            assert classify(_node(name), 1)['isDecorative'] is True

    def test_flags_combine_with_role(self):
        hints = classify(_node('Button bg', opacity=0.05), 1)
        assert hints['likelyRole'] == 'button'
        assert hints['isInteractive'] is True
        assert hints['isDecorative'] is True
