from typing import Optional

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png"}
MAX_FILE_SIZE_BYTES = 5 * 1024 * 1024
MIN_FILES, MAX_FILES = 1, 10


def validate_file_format(content_type: str) -> Optional[str]:
    if content_type not in ALLOWED_CONTENT_TYPES:
        return "Only JPG, JPEG, and PNG files are allowed"
    return None


def validate_file_size(size: int) -> Optional[str]:
    if size > MAX_FILE_SIZE_BYTES:
        return "Each file must be under 5MB"
    return None


def validate_file_count(count: int) -> Optional[str]:
    if count < MIN_FILES:
        return "Please upload at least one image"
    if count > MAX_FILES:
        return f"Maximum {MAX_FILES} files allowed"
    return None
