import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from app.api.dependencies import get_catalog
from app.core.exceptions import (
    AssetUploadFailed,
    AuthenticationMissing,
    CatalogError,
    OwnershipMismatch,
    RecordDeleteFailed,
    RecordLoadFailed,
    RecordWriteFailed,
    ValidationFailed,
)
from app.schemas.catalog import (
    CatalogResponse,
    DraftUpdate,
    OpenSessionRequest,
    PriceEntry,
    ProductResponse,
    SessionResponse,
)
from app.schemas.product import PendingImage
from app.services.catalog import DELETE_PROMPT, CatalogController
from app.services.share import ShareLink

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/catalog", tags=["catalog"])

ERROR_STATUS = {
    ValidationFailed: status.HTTP_422_UNPROCESSABLE_ENTITY,
    AuthenticationMissing: status.HTTP_401_UNAUTHORIZED,
    OwnershipMismatch: status.HTTP_403_FORBIDDEN,
    AssetUploadFailed: status.HTTP_502_BAD_GATEWAY,
    RecordWriteFailed: status.HTTP_502_BAD_GATEWAY,
    RecordLoadFailed: status.HTTP_502_BAD_GATEWAY,
    RecordDeleteFailed: status.HTTP_502_BAD_GATEWAY,
}


def raise_for_error(error: CatalogError) -> NoReturn:
    status_code = ERROR_STATUS.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    raise HTTPException(
        status_code=status_code,
        detail={"message": error.user_message, "errors": getattr(error, "errors", {})},
    )


def conflict(message: str) -> NoReturn:
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=message)


@router.get("/products", response_model=CatalogResponse)
async def list_products(
    q: Optional[str] = None,
    refresh: bool = False,
    controller: CatalogController = Depends(get_catalog),
):
    if refresh or not controller.loaded:
        await controller.load()
    return CatalogResponse.build(controller, controller.filter_products(q))


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: str,
    confirm: bool = False,
    controller: CatalogController = Depends(get_catalog),
):
    if controller.find(product_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    deleted = await controller.request_delete(product_id, confirm=lambda prompt: confirm)
    if deleted:
        return {"deleted": True}
    if not confirm:
        return {"deleted": False, "confirm": DELETE_PROMPT}
    raise_for_error(controller.error)


@router.get("/products/{product_id}/share", response_model=ShareLink)
async def share_product(product_id: str, controller: CatalogController = Depends(get_catalog)):
    link = controller.share(product_id)
    if link is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return link


@router.get("/session", response_model=SessionResponse)
async def get_session(controller: CatalogController = Depends(get_catalog)):
    return SessionResponse.build(controller.session)


@router.post("/session", response_model=SessionResponse)
async def open_session(data: OpenSessionRequest, controller: CatalogController = Depends(get_catalog)):
    if data.product_id is None:
        opened = controller.request_add()
    else:
        product = controller.find(data.product_id)
        if product is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        opened = controller.request_edit(product)
        if not opened and isinstance(controller.error, OwnershipMismatch):
            raise_for_error(controller.error)

    if not opened:
        conflict("A save is in progress")
    return SessionResponse.build(controller.session)


@router.patch("/session", response_model=SessionResponse)
async def update_session(data: DraftUpdate, controller: CatalogController = Depends(get_catalog)):
    session = controller.session
    # null means "leave unchanged", like an omitted field
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        if not session.update_field(field, value):
            conflict("No product form open for editing")
    return SessionResponse.build(session)


@router.post("/session/price", response_model=SessionResponse)
async def enter_price(data: PriceEntry, controller: CatalogController = Depends(get_catalog)):
    session = controller.session
    if session.draft is None or session.is_committing:
        conflict("No product form open for editing")
    session.enter_price(data.text)
    return SessionResponse.build(session)


@router.put("/session/image", response_model=SessionResponse)
async def select_image(file: UploadFile = File(...), controller: CatalogController = Depends(get_catalog)):
    content = await file.read()
    image = PendingImage(
        filename=file.filename or "upload",
        content=content,
        content_type=file.content_type or "application/octet-stream",
    )
    if not controller.session.select_image(image):
        conflict("No product form open for editing")
    return SessionResponse.build(controller.session)


@router.delete("/session/image", response_model=SessionResponse)
async def clear_image(controller: CatalogController = Depends(get_catalog)):
    if not controller.session.select_image(None):
        conflict("No product form open for editing")
    return SessionResponse.build(controller.session)


@router.post("/session/commit", response_model=ProductResponse)
async def commit_session(controller: CatalogController = Depends(get_catalog)):
    session = controller.session
    if session.is_committing:
        conflict("A save is already in progress")
    if session.draft is None:
        conflict("No product form is open")

    record = await controller.submit()
    if record is None:
        if session.error is not None:
            raise_for_error(session.error)
        if controller.error is not None:
            raise_for_error(controller.error)
        conflict("Save rejected")

    return ProductResponse.from_record(record)


@router.delete("/session", response_model=SessionResponse)
async def cancel_session(controller: CatalogController = Depends(get_catalog)):
    controller.close_session()
    return SessionResponse.build(controller.session)
