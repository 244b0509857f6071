"""Image scroll request/response schemas."""
from typing import Optional
from pydantic import ConfigDict

from admin_panel.schemas.base import CamelModel


class ImgScrollData(CamelModel):
    """The whole image scroll document. Blocks are free-form objects."""
    index_part_list: list[dict] = []

    model_config = ConfigDict(extra="allow")


class ImgScrollResponse(CamelModel):
    success: bool = True
    message: str = ""
    data: Optional[ImgScrollData] = None


class StyleImageResponse(CamelModel):
    success: bool = True
    message: str = "Image uploaded"
    data: str
