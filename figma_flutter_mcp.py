#!/usr/bin/env python3
"""
Figma Flutter MCP Server - Model Context Protocol server for Figma-to-Flutter conversion.

This server provides tools to prepare Figma designs for Flutter code generation:
- Node tree serialization (layout, style, text runs, semantic hints)
- Context screenshot and image asset export/upload
- Temp upload storage for exported images
- Prompt assembly for a multimodal code generation model
"""

import os
import json
import re
import time
import base64
import random
import string
import logging
from typing import Optional, Dict, Any

import httpx
from pydantic import BaseModel, Field, field_validator, ConfigDict
from mcp.server.fastmcp import FastMCP

from serializer.base import ExportError, SceneNode
from serializer.bridge import UiBridge
from serializer.rest import build_scene_tree

# ============================================================================
# Constants
# ============================================================================

FIGMA_API_BASE = "https://api.figma.com/v1"
DEFAULT_TIMEOUT = 30.0
UPLOAD_DIR_DEFAULT_PATH = os.path.expanduser("~/.cache/figma-flutter-mcp/uploads")
FLUTTER_ASSET_DIR = "assets/images"

logger = logging.getLogger("figma_flutter.server")

# ============================================================================
# Initialize MCP Server
# ============================================================================

mcp = FastMCP("figma_flutter_mcp")

# ============================================================================
# Pydantic Input Models
# ============================================================================


def _normalize_file_key(v: Any) -> Any:
    # Extract file key from URL if full URL provided; runs before the length check
    if isinstance(v, str) and 'figma.com' in v:
        match = re.search(r'figma\.com/(?:design|file)/([a-zA-Z0-9]+)', v)
        if match:
            return match.group(1)
        raise ValueError("Could not extract file key from Figma URL")
    return v


class FigmaSerializeInput(BaseModel):
    """Input model for node serialization."""
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    file_key: str = Field(
        ...,
        description="Figma file key (from URL: figma.com/design/FILE_KEY/...)",
        min_length=10,
        max_length=50
    )
    node_id: str = Field(
        ...,
        description="Node ID of the selection to convert (e.g., '1:2' or '1-2')",
        min_length=1
    )
    save_to_file: bool = Field(
        default=False,
        description="Passed through to the result so the caller can persist the generated code"
    )

    @field_validator('file_key', mode='before')
    @classmethod
    def validate_file_key(cls, v: Any) -> Any:
        return _normalize_file_key(v)

    @field_validator('node_id')
    @classmethod
    def normalize_node_id(cls, v: str) -> str:
        # Convert 1-2 format to 1:2
        return v.replace('-', ':')


class FigmaPromptInput(FigmaSerializeInput):
    """Input model for Flutter prompt assembly."""
    widget_type: str = Field(
        default="StatelessWidget",
        description="Flutter widget base class for the generated widget"
    )
    use_provider: bool = Field(default=False, description="Ask for Provider-based state management")
    include_figma_data: bool = Field(
        default=True,
        description="Embed the serialized node tree in the prompt for exact measurements"
    )


class UploadImageInput(BaseModel):
    """Input model for image uploads."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., description="Base name for the stored file", min_length=1, max_length=200)
    data: str = Field(..., description="Base64-encoded PNG data", min_length=1)


class CleanupUploadsInput(BaseModel):
    """Input model for temp upload cleanup."""
    max_age_hours: float = Field(
        default=24,
        description="Delete uploads older than this many hours",
        gt=0,
        le=24 * 30
    )


# ============================================================================
# Helper Functions
# ============================================================================

def _get_upload_dir() -> str:
    """Get the directory holding temp uploads."""
    return os.environ.get("FIGMA_FLUTTER_UPLOAD_DIR", UPLOAD_DIR_DEFAULT_PATH)


def _get_figma_token() -> str:
    """Get Figma API token from environment."""
    token = os.environ.get("FIGMA_ACCESS_TOKEN") or os.environ.get("FIGMA_TOKEN")
    if not token:
        raise ValueError(
            "Figma API token not found. Set FIGMA_ACCESS_TOKEN or FIGMA_TOKEN environment variable. "
            "Get your token from: https://www.figma.com/developers/api#access-tokens"
        )
    return token


async def _make_figma_request(
    endpoint: str,
    method: str = "GET",
    params: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Make authenticated request to Figma API."""
    token = _get_figma_token()

    async with httpx.AsyncClient() as client:
        response = await client.request(
            method=method,
            url=f"{FIGMA_API_BASE}/{endpoint}",
            headers={"X-Figma-Token": token},
            params=params,
            timeout=DEFAULT_TIMEOUT
        )
        response.raise_for_status()
        return response.json()


async def _download_bytes(url: str) -> bytes:
    """Download a rendered image from Figma's image CDN."""
    async with httpx.AsyncClient() as client:
        response = await client.get(url, timeout=DEFAULT_TIMEOUT)
        response.raise_for_status()
        return response.content


def _handle_api_error(e: Exception) -> str:
    """Format API errors for user-friendly messages."""
    if isinstance(e, httpx.HTTPStatusError):
        status = e.response.status_code
        if status == 401:
            return "Error: Invalid Figma API token. Check your FIGMA_ACCESS_TOKEN environment variable."
        elif status == 403:
            return "Error: Access denied. You don't have permission to view this file."
        elif status == 404:
            return "Error: File or node not found. Check the file key and node ID."
        elif status == 429:
            return "Error: Rate limit exceeded. Please wait before making more requests."
        return f"Error: Figma API returned status {status}"
    elif isinstance(e, httpx.TimeoutException):
        return "Error: Request timed out. The file might be too large."
    elif isinstance(e, ValueError):
        return f"Error: {str(e)}"
    return f"Error: {type(e).__name__}: {str(e)}"


# ----------------------------------------------------------------------------
# Temp upload store
# ----------------------------------------------------------------------------

def _save_temp_upload(name: str, data: str) -> str:
    """Decode base64 image data into the upload directory and return the unique filename."""
    if not name or not data:
        raise ValueError("Missing name or data")

    upload_dir = _get_upload_dir()
    os.makedirs(upload_dir, exist_ok=True)

    # Timestamp plus random suffix keeps concurrent uploads of one name apart
    timestamp = int(time.time() * 1000)
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=6))
    safe = re.sub(r'[^a-zA-Z0-9\-_]', '_', name)
    filename = f"{safe}_{timestamp}_{suffix}.png"

    with open(os.path.join(upload_dir, filename), 'wb') as f:
        f.write(base64.b64decode(data))

    logger.info(f"Temp upload saved: {filename}")
    return filename


async def _upload_to_temp_store(name: str, data: str) -> str:
    """Uploader used by the bridge during serialization."""
    return _save_temp_upload(name, data)


def _cleanup_temp_uploads(max_age_hours: float = 24) -> int:
    """Delete temp uploads older than max_age_hours. Returns the number removed."""
    upload_dir = _get_upload_dir()
    if not os.path.isdir(upload_dir):
        return 0

    cutoff = time.time() - max_age_hours * 3600
    removed = 0
    for entry in os.listdir(upload_dir):
        path = os.path.join(upload_dir, entry)
        try:
            if os.path.isfile(path) and os.path.getmtime(path) < cutoff:
                os.remove(path)
                removed += 1
                logger.info(f"Cleaned up old temp file: {entry}")
        except OSError as e:
            logger.warning(f"Could not remove temp file {entry}: {e}")
    return removed


# ----------------------------------------------------------------------------
# Serialization pipeline
# ----------------------------------------------------------------------------

def _make_exporter(file_key: str):
    """Exporter rendering nodes through the Figma images endpoint."""
    async def export(node: SceneNode, fmt: str, scale: float) -> bytes:
        data = await _make_figma_request(
            f"images/{file_key}",
            params={"ids": node.id, "format": fmt.lower(), "scale": scale}
        )
        if data.get('err'):
            raise ExportError(f"Figma could not render node {node.id}: {data['err']}")
        url = (data.get('images') or {}).get(node.id)
        if not url:
            raise ExportError(f"Figma returned no image for node {node.id}")
        return await _download_bytes(url)

    return export


async def _fetch_scene_node(file_key: str, node_id: str) -> Optional[SceneNode]:
    """Fetch a node from Figma and wrap it as a SceneNode tree."""
    data = await _make_figma_request(
        f"files/{file_key}/nodes",
        params={"ids": node_id, "geometry": "paths"}
    )

    node_data = (data.get('nodes') or {}).get(node_id) or {}
    document = node_data.get('document')
    if not document:
        return None

    return build_scene_tree(
        document,
        exporter=_make_exporter(file_key),
        components=node_data.get('components', {})
    )


async def _convert_node(file_key: str, node_id: str, save_to_file: bool = False) -> Dict[str, Any]:
    """Run one convert-selection pass over a node. Returns the 'selection-data' or 'error' message."""
    root = await _fetch_scene_node(file_key, node_id)
    selection = [root] if root is not None else []

    bridge = UiBridge(_upload_to_temp_store)
    bridge.connect(lambda: selection)
    return await bridge.convert(save_to_file=save_to_file)


# ----------------------------------------------------------------------------
# Prompt assembly
# ----------------------------------------------------------------------------

def _asset_paths(assets: Dict[str, Dict[str, str]]) -> Dict[str, str]:
    """Map node ids to the Flutter asset path each image will be copied to."""
    return {
        node_id: f"{FLUTTER_ASSET_DIR}/{asset['filename']}"
        for node_id, asset in assets.items()
        if asset.get('filename')
    }


def _build_flutter_prompt(
    figma_data: Optional[Dict[str, Any]],
    widget_type: str = "StatelessWidget",
    use_provider: bool = False,
    asset_map: Optional[Dict[str, str]] = None
) -> Dict[str, str]:
    """Build system instruction and user prompt for Flutter code generation."""
    asset_map = asset_map or {}

    asset_instruction = ""
    if asset_map:
        asset_lines = [
            f"- Node ID \"{node_id}\" maps to `Image.asset('{path}')`"
            for node_id, path in asset_map.items()
        ]
        asset_instruction = "\n## ASSETS\n" + "\n".join(asset_lines) + "\n"

    state_instruction = (
        "- Manage state with the Provider package (ChangeNotifier + Consumer)\n"
        if use_provider else ""
    )

    system_instruction = "\n".join([
        "You are a Senior Flutter Engineer converting UI designs into production-ready Flutter code.",
        "",
        "## TASK",
        "Recreate the attached screenshot as Flutter code. When design JSON is provided, take exact",
        "measurements, colors, typography and spacing from it.",
        "",
        "## READING THE DESIGN JSON",
        "- `semanticHints.likelyRole` suggests the widget (button, input, card, header, avatar, icon, divider, badge)",
        "- `layout.layoutMode` HORIZONTAL/VERTICAL maps to Row/Column; NONE with several children maps to Stack",
        "- `layout.padding` and `layout.itemSpacing` are exact EdgeInsets and gaps",
        "- `style.cornerRadius` is a number (uniform) or an object (per corner)",
        "- `text.styledSegments` means RichText with one TextSpan per segment",
        "- Colors are {r, g, b} in the 0-1 range",
        asset_instruction,
        "## OUTPUT",
        f"- Generate a `{widget_type}` named `GeneratedWidget`",
        state_instruction + "- Return ONLY raw Dart code, no markdown fences and no explanations",
    ])

    user_prompt = (
        "Please analyze the UI screenshot provided and generate production-ready Flutter code "
        "that recreates this design with pixel-perfect accuracy."
    )
    if figma_data:
        user_prompt += (
            "\n\n## FIGMA DESIGN DATA (Use for Precise Measurements)\n\n"
            f"```json\n{json.dumps(figma_data, indent=2)}\n```\n"
        )

    return {"systemInstruction": system_instruction, "userPrompt": user_prompt}


# ============================================================================
# MCP Tools - Conversion
# ============================================================================

@mcp.tool(
    name="figma_serialize_node",
    annotations={
        "title": "Serialize Figma Node",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True
    }
)
async def figma_serialize_node(params: FigmaSerializeInput) -> str:
    """
    Serialize a Figma node tree into the Flutter conversion format.

    Walks the node and all its descendants, extracting:
    - Layout (geometry, auto-layout, constraints)
    - Style (fills, strokes, effects, corner radius, opacity, blend mode)
    - Text content with styled segments
    - Semantic hints (likely UI role, interactive/decorative flags)
    - Visual context (visual weight, background/border/shadow flags)

    A context screenshot of the node and every image fill are exported and stored
    as temp uploads; their filenames are returned alongside the tree.

    Args:
        params: FigmaSerializeInput containing:
            - file_key (str): Figma file key
            - node_id (str): Node ID to serialize
            - save_to_file (bool): Passed through to the result

    Returns:
        str: JSON 'selection-data' message (data, assets, contextImage, saveToFile)
             or an 'error' message
    """
    try:
        result = await _convert_node(params.file_key, params.node_id, params.save_to_file)
        return json.dumps(result, indent=2)

    except Exception as e:
        return _handle_api_error(e)


@mcp.tool(
    name="figma_build_flutter_prompt",
    annotations={
        "title": "Build Flutter Generation Prompt",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True
    }
)
async def figma_build_flutter_prompt(params: FigmaPromptInput) -> str:
    """
    Serialize a Figma node and assemble the prompt for a Flutter code generation model.

    Args:
        params: FigmaPromptInput containing:
            - file_key (str): Figma file key
            - node_id (str): Node ID to convert
            - widget_type (str): Flutter widget base class
            - use_provider (bool): Ask for Provider-based state
            - include_figma_data (bool): Embed the serialized tree

    Returns:
        str: JSON with systemInstruction, userPrompt, contextImage (temp upload
             filename) and assets (node ID -> Flutter asset path)
    """
    try:
        result = await _convert_node(params.file_key, params.node_id)
        if result.get('kind') == 'error':
            return f"Error: {result['message']}"

        if not result.get('contextImage'):
            return "Error: Context screenshot could not be exported for this node."

        asset_map = _asset_paths(result.get('assets', {}))
        prompt = _build_flutter_prompt(
            result['data'] if params.include_figma_data else None,
            widget_type=params.widget_type,
            use_provider=params.use_provider,
            asset_map=asset_map
        )
        prompt['contextImage'] = result['contextImage']
        prompt['assets'] = asset_map
        return json.dumps(prompt, indent=2)

    except Exception as e:
        return _handle_api_error(e)


# ============================================================================
# MCP Tools - Upload Store
# ============================================================================

@mcp.tool(
    name="figma_upload_image",
    annotations={
        "title": "Upload Image",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False
    }
)
async def figma_upload_image(params: UploadImageInput) -> str:
    """
    Store a base64 PNG in the temp upload directory.

    Args:
        params: UploadImageInput containing:
            - name (str): Base name for the stored file
            - data (str): Base64-encoded PNG data

    Returns:
        str: JSON with the unique stored filename
    """
    try:
        filename = _save_temp_upload(params.name, params.data)
        return json.dumps({"filename": filename}, indent=2)

    except Exception as e:
        return _handle_api_error(e)


@mcp.tool(
    name="figma_cleanup_uploads",
    annotations={
        "title": "Clean Up Temp Uploads",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": True,
        "openWorldHint": False
    }
)
async def figma_cleanup_uploads(params: CleanupUploadsInput) -> str:
    """
    Delete temp uploads older than the given age.

    Args:
        params: CleanupUploadsInput containing:
            - max_age_hours (float): Age threshold in hours (default 24)

    Returns:
        str: JSON with the number of removed files
    """
    try:
        removed = _cleanup_temp_uploads(params.max_age_hours)
        return json.dumps({"success": True, "removed": removed}, indent=2)

    except Exception as e:
        return _handle_api_error(e)


# ============================================================================
# Entry Point
# ============================================================================

def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
