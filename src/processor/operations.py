"""
순수 CPU-bound 이미지 처리 함수.
파일 I/O 없이 PIL.Image 또는 bytes만 다룬다.
"""

import hashlib
import io

from PIL import Image

OUTPUT_FORMAT = "JPEG"
OUTPUT_EXTENSION = "jpg"
OUTPUT_QUALITY = 90


def resize_to_width(image: Image.Image, width: int) -> Image.Image:
    """가로 폭 기준으로 비율을 유지하며 줄인다. 원본보다 키우지는 않는다."""
    if width >= image.width:
        return image.copy()
    height = max(1, round(image.height * width / image.width))
    return image.resize((width, height), Image.LANCZOS)


def encode(image: Image.Image, quality: int = OUTPUT_QUALITY) -> bytes:
    """원본 포맷과 무관하게 항상 RGB JPEG로 인코딩한다."""
    buf = io.BytesIO()
    image.convert("RGB").save(buf, OUTPUT_FORMAT, quality=quality)
    return buf.getvalue()


def content_hash(data: bytes) -> str:
    # 파일명용 해시. 보안 용도가 아니므로 MD5로 충분하다.
    return hashlib.md5(data).hexdigest()
