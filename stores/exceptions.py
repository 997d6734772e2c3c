from rest_framework import status
from rest_framework.exceptions import APIException


class SlugConflict(APIException):
    """Raised when a unique slug could not be written after all retries."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Could not allocate a unique slug for this store. Please try again.'
    default_code = 'slug_conflict'
