"""
Heuristic semantic classification of design nodes.

Roles come from an ordered rule list evaluated top to bottom; the first rule
that matches sets the role. Interaction triggers, near-zero opacity and
background-like names then add flags on top without clearing any.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from serializer.base import is_mixed

# Size thresholds for shape-based guesses (tunable)
ICON_MAX_SIZE = 48
DIVIDER_MAX_THICKNESS = 2
DIVIDER_MIN_LENGTH = 50
DECORATIVE_OPACITY = 0.1

DECORATIVE_NAME_KEYWORDS = ('bg', 'background', 'overlay')


@dataclass(frozen=True)
class SemanticRule:
    """One role guess: keywords matched against the lowercased node name, plus an optional shape test."""
    role: str
    keywords: Tuple[str, ...]
    confidence: float
    interactive: bool = False
    decorative: bool = False
    shape_test: Optional[Callable[[Dict[str, Any]], bool]] = None

    def matches(self, name: str, node: Dict[str, Any]) -> bool:
        if any(keyword in name for keyword in self.keywords):
            return True
        return self.shape_test is not None and self.shape_test(node)


def _is_small_square(node: Dict[str, Any]) -> bool:
    width, height = node.get('width', 0), node.get('height', 0)
    return width == height and width <= ICON_MAX_SIZE


def _is_thin_line(node: Dict[str, Any]) -> bool:
    width, height = node.get('width', 0), node.get('height', 0)
    horizontal = height <= DIVIDER_MAX_THICKNESS and width > DIVIDER_MIN_LENGTH
    vertical = width <= DIVIDER_MAX_THICKNESS and height > DIVIDER_MIN_LENGTH
    return horizontal or vertical


SEMANTIC_RULES = (
    SemanticRule('button', ('button', 'btn', 'cta'), 0.9, interactive=True),
    SemanticRule('input', ('input', 'textfield', 'field'), 0.9, interactive=True),
    SemanticRule('card', ('card',), 0.85),
    SemanticRule('header', ('header', 'navbar', 'appbar'), 0.85),
    SemanticRule('avatar', ('avatar', 'profile'), 0.8),
    SemanticRule('icon', ('icon',), 0.7, shape_test=_is_small_square),
    SemanticRule('divider', ('divider', 'separator'), 0.8, decorative=True, shape_test=_is_thin_line),
    SemanticRule('badge', ('badge', 'tag', 'chip'), 0.8),
)


def classify(node: Dict[str, Any], depth: int) -> Dict[str, Any]:
    """
    Guess a node's UI role and interactivity/decorative flags.

    Args:
        node: Node to classify
        depth: Depth of the node in the serialized tree

    Returns:
        Dict with 'confidence' and, when set, 'likelyRole', 'isInteractive'
        and 'isDecorative'. Confidence stays 0 when no rule matches.
    """
    name = node.get('name', '').lower()
    hints = {'confidence': 0}

    for rule in SEMANTIC_RULES:
        if rule.matches(name, node):
            hints['likelyRole'] = rule.role
            hints['confidence'] = rule.confidence
            if rule.interactive:
                hints['isInteractive'] = True
            if rule.decorative:
                hints['isDecorative'] = True
            break

    reactions = node.get('reactions')
    if reactions and not is_mixed(reactions):
        hints['isInteractive'] = True

    opacity = node.get('opacity')
    if opacity is not None and not is_mixed(opacity) and opacity < DECORATIVE_OPACITY:
        hints['isDecorative'] = True

    if any(keyword in name for keyword in DECORATIVE_NAME_KEYWORDS):
        hints['isDecorative'] = True

    return hints
