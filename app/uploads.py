"""
Image uploads to Cloudinary's unsigned upload API.

Uploads are optional: callers record image URLs when an upload succeeds and
carry on without them when it fails.
"""
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

CLOUDINARY_UPLOAD_URL = 'https://api.cloudinary.com/v1_1/{cloud_name}/image/upload'


class ImageUploadError(Exception):
    """Raised when an image upload fails."""


def uploads_enabled() -> bool:
    return bool(getattr(settings, 'CLOUDINARY_CLOUD_NAME', '')) and bool(
        getattr(settings, 'CLOUDINARY_UPLOAD_PRESET', '')
    )


def upload_image(file_obj, folder: str = None) -> str:
    """
    Upload an image file and return its secure URL.

    Raises:
        ImageUploadError: uploads are disabled, the request failed, or the
            response carried no URL
    """
    if not uploads_enabled():
        raise ImageUploadError('Image uploads are not configured')

    url = CLOUDINARY_UPLOAD_URL.format(cloud_name=settings.CLOUDINARY_CLOUD_NAME)
    data = {
        'upload_preset': settings.CLOUDINARY_UPLOAD_PRESET,
        'folder': folder or settings.CLOUDINARY_FOLDER,
    }
    if settings.CLOUDINARY_API_KEY:
        data['api_key'] = settings.CLOUDINARY_API_KEY

    filename = getattr(file_obj, 'name', 'upload.jpg')
    try:
        response = requests.post(
            url,
            data=data,
            files={'file': (filename, file_obj)},
            timeout=settings.CLOUDINARY_TIMEOUT,
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("Cloudinary upload failed for %s: %s", filename, exc)
        raise ImageUploadError(str(exc)) from exc

    secure_url = payload.get('secure_url')
    if not secure_url:
        raise ImageUploadError('Upload response did not include a URL')

    logger.info("Uploaded %s to %s", filename, secure_url)
    return secure_url
