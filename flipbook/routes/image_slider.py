import logging

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlmodel import Session, select

from flipbook.config import settings
from flipbook.database import get_session
from flipbook.exceptions import NotFoundError, ValidationError
from flipbook.models.admin import Admin
from flipbook.models.slider_image import SliderImage
from flipbook.services import storage
from flipbook.utils.token import get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter()

IMAGE_URL_PREFIX = "/api/imageslider/uploads"


def _image_dict(image: SliderImage) -> dict:
    return {
        "id": image.id,
        "imageUrl": image.image_url,
        "originalName": image.original_name,
        "order": image.sort_order,
        "isActive": image.is_active,
        "createdAt": image.created_at,
    }


@router.post("/upload", status_code=status.HTTP_201_CREATED)
def upload_image(
    image: UploadFile = File(None),
    session: Session = Depends(get_session),
    admin: Admin = Depends(get_current_admin),
):
    if image is None:
        raise ValidationError("Image file is required")

    if not (image.content_type or "").startswith("image/"):
        raise ValidationError("Only image files are allowed")

    stored = storage.save_bytes(image.file.read(), settings.image_dir, image.filename, "jpg")

    try:
        slide = SliderImage(
            filename=stored.filename,
            original_name=image.filename or stored.filename,
            path=stored.path,
            size=stored.size,
            image_url=f"{settings.base_url.rstrip('/')}{IMAGE_URL_PREFIX}/{stored.filename}",
        )
        session.add(slide)
        session.commit()
        session.refresh(slide)
    except Exception:
        session.rollback()
        storage.remove_file(stored.path)
        logger.info("Deleted uploaded image due to error")
        raise

    logger.info(f"Slider image uploaded: {slide.id}")
    return {"message": "Image uploaded successfully", "image": _image_dict(slide)}


@router.get("/")
def list_images(session: Session = Depends(get_session)):
    images = session.exec(
        select(SliderImage)
        .where(SliderImage.is_active == True)
        .order_by(SliderImage.sort_order, SliderImage.created_at.desc())
    ).all()

    return {"images": [_image_dict(image) for image in images]}


@router.delete("/{image_id}")
def delete_image(
    image_id: int,
    session: Session = Depends(get_session),
    admin: Admin = Depends(get_current_admin),
):
    image = session.get(SliderImage, image_id)
    if not image:
        raise NotFoundError("Image not found")

    storage.remove_file(image.path)
    session.delete(image)
    session.commit()

    return {"message": "Image deleted successfully"}
