import logging

from rest_framework import status
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .uploads import upload_image, uploads_enabled, ImageUploadError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ('image/jpeg', 'image/png', 'image/webp')
MAX_IMAGE_SIZE = 10 * 1024 * 1024


class ImageUploadView(APIView):
    """
    POST /api/uploads/image/

    Upload an ID card or combined document image and return its URL. The
    returned URL is then passed to the sale endpoints.
    """
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        if not uploads_enabled():
            return Response({'error': 'Image uploads are not configured'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        image = request.FILES.get('image')
        if image is None:
            return Response({'error': 'No image provided', 'details': {'image': ['This field is required.']}},
                            status=status.HTTP_400_BAD_REQUEST)
        if image.content_type not in ALLOWED_IMAGE_TYPES:
            return Response({'error': f'Unsupported image type: {image.content_type}'},
                            status=status.HTTP_400_BAD_REQUEST)
        if image.size > MAX_IMAGE_SIZE:
            return Response({'error': 'Image is larger than 10 MB'}, status=status.HTTP_400_BAD_REQUEST)

        try:
            url = upload_image(image, folder=request.data.get('folder') or None)
        except ImageUploadError as e:
            logger.warning("Image upload by user %s failed: %s", request.user.pk, e)
            return Response({'error': 'Image upload failed'}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({'url': url}, status=status.HTTP_201_CREATED)
