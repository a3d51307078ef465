from django.core.exceptions import ValidationError
from PIL import Image, UnidentifiedImageError


_PIL_FORMATS = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}


def validate_max_size(file, max_bytes: int):
    size = getattr(file, "size", 0) or 0
    if size > max_bytes:
        raise ValidationError(f"File exceeds {max_bytes // (1024 * 1024)}MB.")


def validate_mime_and_magic(file, allowed: set[str]):
    mime = getattr(file, "content_type", "") or ""
    if mime not in allowed:
        raise ValidationError("File type not allowed.")
    # Magic bytes via Pillow's format sniffing
    pos = file.tell()
    try:
        with Image.open(file) as img:
            detected = _PIL_FORMATS.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        raise ValidationError("Invalid image content.")
    finally:
        file.seek(pos)
    if detected not in allowed:
        raise ValidationError("Invalid image content.")


def verify_image(file):
    pos = file.tell()
    try:
        img = Image.open(file)
        img.verify()
    except (UnidentifiedImageError, OSError):
        raise ValidationError("Corrupted or invalid image.")
    finally:
        file.seek(pos)


def validate_upload(file):
    from django.conf import settings
    validate_max_size(file, getattr(settings, "MAX_UPLOAD_BYTES", 2 * 1024 * 1024))
    validate_mime_and_magic(file, getattr(settings, "ALLOWED_IMAGE_MIME_TYPES", {"image/jpeg", "image/png"}))
    verify_image(file)
