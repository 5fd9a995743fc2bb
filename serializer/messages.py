"""
Messages exchanged between the plugin sandbox and the UI side.

Wire format uses camelCase keys and a 'kind' discriminator; dump with
``to_wire()`` and parse incoming plugin-side messages with ``parse_plugin_message()``.
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class BridgeMessage(BaseModel):
    """Base for every bridge message."""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class UploadRequest(BridgeMessage):
    """Plugin -> UI: upload one base64 PNG."""
    kind: Literal['upload-request'] = 'upload-request'
    id: str = Field(..., min_length=1)
    name: str
    data: str = Field(..., description="Base64-encoded PNG bytes")


class UploadResponse(BridgeMessage):
    """UI -> plugin: outcome of one upload request."""
    kind: Literal['upload-response'] = 'upload-response'
    id: str = Field(..., min_length=1)
    filename: Optional[str] = None
    error: Optional[str] = None

    @model_validator(mode='after')
    def check_outcome(self) -> 'UploadResponse':
        if (self.filename is None) == (self.error is None):
            raise ValueError("Exactly one of 'filename' or 'error' must be set")
        return self


class ConvertSelection(BridgeMessage):
    """UI -> plugin: serialize the current selection."""
    kind: Literal['convert-selection'] = 'convert-selection'
    save_to_file: bool = Field(default=False, alias='saveToFile')


class SelectionData(BridgeMessage):
    """Plugin -> UI: result of one serialization pass."""
    kind: Literal['selection-data'] = 'selection-data'
    data: Dict[str, Any]
    assets: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    context_image: Optional[str] = Field(default=None, alias='contextImage')
    save_to_file: bool = Field(default=False, alias='saveToFile')

    def to_wire(self) -> Dict[str, Any]:
        # Keep the tree untouched; only drop the optional top-level image
        wire = self.model_dump(by_alias=True)
        if wire['contextImage'] is None:
            del wire['contextImage']
        return wire


class ErrorMessage(BridgeMessage):
    """Plugin -> UI: user-visible failure."""
    kind: Literal['error'] = 'error'
    message: str


PluginInbound = Annotated[Union[UploadResponse, ConvertSelection], Field(discriminator='kind')]
UiInbound = Annotated[Union[UploadRequest, SelectionData, ErrorMessage], Field(discriminator='kind')]

_plugin_inbound = TypeAdapter(PluginInbound)
_ui_inbound = TypeAdapter(UiInbound)


def parse_plugin_message(message: Dict[str, Any]) -> Union[UploadResponse, ConvertSelection]:
    """Validate a message arriving at the plugin side. Raises pydantic.ValidationError."""
    return _plugin_inbound.validate_python(message)


def parse_ui_message(message: Dict[str, Any]) -> Union[UploadRequest, SelectionData, ErrorMessage]:
    """Validate a message arriving at the UI side. Raises pydantic.ValidationError."""
    return _ui_inbound.validate_python(message)
