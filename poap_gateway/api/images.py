"""
Campaign Image API Endpoint

- POST /api/campaigns/{id}/image   multipart field "image" (png, jpeg, gif, webp; max 5MB)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from poap_gateway.api.common import get_owned_campaign, ok
from poap_gateway.config import settings
from poap_gateway.db.database import get_db
from poap_gateway.middleware.auth import AuthContext, authenticate
from poap_gateway.services.images import ImageValidationError, store_image
from poap_gateway.utils.storage import StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/campaigns", tags=["Images"])


@router.post("/{campaign_id}/image")
async def upload_campaign_image(
    campaign_id: str,
    image: Optional[UploadFile] = File(None),
    auth: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    campaign = get_owned_campaign(db, campaign_id, auth.organizer_id)

    if image is None or not image.filename:
        raise HTTPException(status_code=400, detail="No image attached")

    # Read one byte past the limit so oversize files fail without loading them whole
    data = await image.read(settings.MAX_IMAGE_BYTES + 1)
    try:
        image_url = store_image(data, image.filename, image.content_type)
    except ImageValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        logger.error(f"❌ Image storage failed for campaign {campaign.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to store image")

    campaign.image_url = image_url
    db.commit()

    return ok({"id": campaign.id, "imageUrl": campaign.image_url})
