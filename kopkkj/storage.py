import time
import uuid
from io import BytesIO

from flask import current_app
from PIL import Image, UnidentifiedImageError
from werkzeug.utils import secure_filename

from .errors import PortalError
from .supabase_client import get_supabase

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/jpg", "image/webp"}


def compress_image(file_storage, max_size_kb=300):
    img = Image.open(file_storage)
    img_format = img.format if img.format else "JPEG"
    if img_format == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    quality = 85
    buffer = BytesIO()
    img.save(buffer, format=img_format, optimize=True, quality=quality)
    while buffer.tell() > max_size_kb * 1024 and quality > 10:
        quality -= 5
        buffer.seek(0)
        buffer.truncate()
        img.save(buffer, format=img_format, optimize=True, quality=quality)
    buffer.seek(0)
    return buffer


def _file_size(file_storage):
    file_storage.seek(0, 2)
    size = file_storage.tell()
    file_storage.seek(0)
    return size


def upload_image(bucket_name, file_storage, prefix):
    """Validate, compress and upload an image; return its public URL."""
    if file_storage is None or not file_storage.filename:
        raise PortalError("File gambar wajib diupload")
    if file_storage.mimetype not in ALLOWED_IMAGE_TYPES:
        raise PortalError("File harus berupa gambar JPG atau PNG")
    if _file_size(file_storage) > current_app.config["MAX_IMAGE_SIZE"]:
        raise PortalError("Ukuran gambar maksimal 2MB")

    try:
        buffer = compress_image(file_storage)
    except (UnidentifiedImageError, OSError) as e:
        raise PortalError(f"Gagal memproses gambar: {e}")

    ext = secure_filename(file_storage.filename).rsplit(".", 1)[-1].lower() or "jpg"
    path = f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.{ext}"
    bucket = get_supabase().storage.from_(bucket_name)
    bucket.upload(path, buffer.read(), {"content-type": file_storage.mimetype})
    current_app.logger.info("uploaded %s/%s", bucket_name, path)
    return bucket.get_public_url(path)
