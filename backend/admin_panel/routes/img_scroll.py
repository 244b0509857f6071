"""Image scroll API routes: content blocks and their style images."""
from typing import Optional

from fastapi import APIRouter, Body, Depends, UploadFile, File as FastAPIFile

from admin_panel.dependencies import Services, get_services
from admin_panel.errors import NoFilesError
from admin_panel.schemas.img_scroll import ImgScrollData, ImgScrollResponse, StyleImageResponse

router = APIRouter(prefix="/api/imgscroll", tags=["imgscroll"])


@router.get("", response_model=ImgScrollData)
async def get_data(services: Services = Depends(get_services)):
    return await services.img_scroll.get_data()


@router.put("", response_model=ImgScrollResponse)
async def update_data(
    body: ImgScrollData,
    services: Services = Depends(get_services),
):
    """Replace the whole image scroll document."""
    await services.img_scroll.update_data(body.to_document())
    return {"success": True, "message": "Updated"}


@router.post("/block", response_model=ImgScrollResponse)
async def add_block(
    block: dict = Body(...),
    services: Services = Depends(get_services),
):
    """Append a block; its indexPartId is assigned by the server."""
    data = await services.img_scroll.add_block(block)
    return {"success": True, "message": "Block added", "data": data}


@router.delete("/block/{index_part_id}", response_model=ImgScrollResponse)
async def delete_block(
    index_part_id: int,
    services: Services = Depends(get_services),
):
    """Delete a block together with its style images."""
    data = await services.img_scroll.delete_block(index_part_id)
    return {"success": True, "message": "Block deleted", "data": data}


@router.post("/upload/{index_part_id}/{style}", response_model=StyleImageResponse)
async def upload_style_image(
    index_part_id: int,
    style: str,
    image: Optional[UploadFile] = FastAPIFile(None),
    services: Services = Depends(get_services),
):
    """Store the image for one style of a block."""
    if image is None:
        raise NoFilesError("No image received")
    filename = await services.img_scroll.save_style_image(
        index_part_id,
        style,
        await image.read(),
        image.filename or "",
        image.content_type,
    )
    return {"success": True, "message": "Image uploaded", "data": filename}
