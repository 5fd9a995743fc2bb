"""
Node-tree serializer for Figma-to-Flutter conversion.

Walks a selected design node, extracts layout/style/text/paint data into a
JSON-ready intermediate representation, annotates likely UI roles, and ships
embedded images through an upload bridge.
"""

from serializer.base import MIXED, ExportError, SceneNode, is_mixed
from serializer.bridge import UiBridge
from serializer.rest import build_scene_tree
from serializer.session import PluginSession
from serializer.tree import serialize_node
from serializer.uploads import UploadCoordinator

__all__ = [
    "MIXED",
    "ExportError",
    "SceneNode",
    "is_mixed",
    "UiBridge",
    "build_scene_tree",
    "PluginSession",
    "serialize_node",
    "UploadCoordinator",
]
