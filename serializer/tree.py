"""
Recursive node-tree serializer.

Composes metadata, semantic hints, visual context, layout, style and text for
every node of a subtree, and coordinates image export/upload on the way:
a context screenshot for the root and one asset per image-filled node.
"""

import asyncio
import base64
import logging
from typing import Any, Dict

from serializer.base import (
    ASSET_EXPORT_SCALE,
    COMPONENT_TYPES,
    CONTEXT_EXPORT_SCALE,
    SceneNode,
    is_mixed,
    safe_name,
)
from serializer.layout import extract_layout
from serializer.semantics import classify
from serializer.style import extract_style
from serializer.text import extract_text
from serializer.uploads import UploadCoordinator
from serializer.visual import analyze_visual_context

logger = logging.getLogger("figma_flutter.serializer.tree")


def _extract_metadata(node: SceneNode, depth: int, sibling_index: int, total_siblings: int) -> Dict[str, Any]:
    metadata = {
        'isComponent': node.type in COMPONENT_TYPES,
        'depth': depth,
        'siblingIndex': sibling_index,
        'totalSiblings': total_siblings
    }

    main_component = node.get('mainComponent') if node.type == 'INSTANCE' else None
    if main_component:
        metadata['mainComponentId'] = main_component.get('id')
        metadata['componentName'] = main_component.get('name')

    return metadata


def _has_image_fill(node: SceneNode) -> bool:
    fills = node.get('fills')
    if is_mixed(fills) or not isinstance(fills, list):
        return False
    return any(fill.get('type') == 'IMAGE' for fill in fills)


async def _export_base64(node: SceneNode, scale: float) -> str:
    png = await node.export_async(format='PNG', scale=scale)
    return base64.b64encode(png).decode('ascii')


async def _upload_context_image(node: SceneNode, uploads: UploadCoordinator) -> Any:
    """Screenshot of the whole selection. Returns the stored filename or None."""
    try:
        logger.info(f"[Context] Exporting root node \"{node.name}\"...")
        data = await _export_base64(node, CONTEXT_EXPORT_SCALE)
        logger.info(f"[Context] Uploading {len(data)} chars...")
        filename = await uploads.request_upload(f"context_{safe_name(node.name)}", data)
    except Exception as e:
        logger.warning(f"[Context] Export failed for \"{node.name}\": {e}")
        return None

    if filename:
        logger.info(f"[Context] Upload complete: {filename}")
    else:
        logger.warning("[Context] Upload returned no filename")
    return filename


async def _upload_image_asset(node: SceneNode, assets: Dict[str, Dict[str, str]], uploads: UploadCoordinator) -> None:
    """Export an image-filled node and record it in assets on success."""
    name = safe_name(node.name)
    try:
        logger.info(f"[Asset] Found image in node \"{node.name}\"")
        data = await _export_base64(node, ASSET_EXPORT_SCALE)
        filename = await uploads.request_upload(name, data)
    except Exception as e:
        logger.warning(f"[Asset] Failed to export node \"{node.name}\": {e}")
        return

    if filename:
        assets[node.id] = {'id': node.id, 'name': name, 'filename': filename}
        logger.info(f"[Asset] Upload complete: {filename}")
    else:
        logger.warning(f"[Asset] Upload failed for {name}")


async def serialize_node(
    node: SceneNode,
    assets: Dict[str, Dict[str, str]],
    uploads: UploadCoordinator,
    depth: int = 0,
    sibling_index: int = 0,
    total_siblings: int = 1
) -> Dict[str, Any]:
    """
    Serialize a node and its whole subtree.

    Export and upload failures are logged and leave the image out; they never
    fail the walk. Any other error in a child propagates and fails the parent.

    Args:
        node: Root of the subtree to serialize
        assets: Accumulator shared by the whole walk; image-filled nodes are
            added as ``assets[node.id] = {id, name, filename}``
        uploads: Coordinator used to ship exported images to the UI side
        depth: Depth of node; 0 marks the selection root
        sibling_index: Position of node among its siblings
        total_siblings: Number of siblings including node

    Returns:
        The serialized node. Children keep source order.
    """
    serialized = {
        'id': node.id,
        'name': node.name,
        'type': node.type,
        'metadata': _extract_metadata(node, depth, sibling_index, total_siblings),
        'semanticHints': classify(node, depth),
        'visualContext': analyze_visual_context(node),
        'layout': extract_layout(node),
        'style': extract_style(node)
    }

    if depth == 0:
        context_filename = await _upload_context_image(node, uploads)
        if context_filename:
            serialized['contextImageFilename'] = context_filename

    if node.type == 'TEXT':
        serialized['text'] = extract_text(node)

    if _has_image_fill(node):
        await _upload_image_asset(node, assets, uploads)

    if 'children' in node:
        children = node['children']
        total = len(children)
        # gather keeps argument order regardless of completion order
        serialized['children'] = list(await asyncio.gather(*(
            serialize_node(child, assets, uploads, depth + 1, index, total)
            for index, child in enumerate(children)
        )))

    return serialized
