"""이미지 변환 엔진.

operations.py의 순수 함수를 조합해 한 태스크 분량의 변환을 수행한다.
워커 프로세스(worker.py)와 API 프로세스(입력 검증) 양쪽에서 import되므로
DB나 설정 모듈에 의존하지 않는다.
"""

import io
import os
import re

from PIL import Image

from core.exceptions import UnprocessableImage
from processor.messages import VariantPayload
from processor.operations import OUTPUT_EXTENSION, content_hash, encode, resize_to_width

PUBLIC_OUTPUT_PREFIX = "/output"

_DECODE_ERRORS = (OSError, ValueError, SyntaxError, Image.DecompressionBombError)


def _open(source) -> Image.Image:
    """bytes 또는 경로를 열어 픽셀까지 디코딩한다. 실패하면 UnprocessableImage."""
    try:
        image = Image.open(source)
        image.load()
    except _DECODE_ERRORS as e:
        raise UnprocessableImage(f"Unable to decode image: {e}") from e

    if not image.width or not image.height:
        raise UnprocessableImage("Unable to read image metadata")
    return image


def transform(source_bytes: bytes, target_width: int) -> tuple[bytes, str]:
    """원본 bytes → (리사이즈된 JPEG bytes, 결과물 MD5).

    해시는 원본이 아닌 최종 인코딩 결과에 대해 계산한다.
    같은 입력과 폭이면 항상 같은 해시가 나온다.
    """
    image = _open(io.BytesIO(source_bytes))
    encoded = encode(resize_to_width(image, target_width))
    return encoded, content_hash(encoded)


def probe(path: str) -> tuple[int, int, str]:
    """파일을 열어 (width, height, format)을 반환한다."""
    try:
        with Image.open(path) as image:
            width, height, fmt = image.width, image.height, image.format
    except _DECODE_ERRORS as e:
        raise UnprocessableImage(f"Unable to read image metadata: {e}") from e

    if not width or not height:
        raise UnprocessableImage("Unable to read image metadata")
    return width, height, (fmt or "").lower()


def validate_image(path: str, supported_formats: list[str]) -> bool:
    """확장자 허용 목록 + 메타데이터 probe로 처리 가능한 이미지인지 확인한다."""
    ext = os.path.splitext(path)[1].lower().lstrip(".")
    if ext not in supported_formats:
        return False
    if not os.path.isfile(path):
        return False
    try:
        width, height, _ = probe(path)
    except UnprocessableImage:
        return False
    return width > 0 and height > 0


def clean_source_name(name: str) -> str:
    """경로/파일명에서 확장자를 뗀 이름을 만들고 공백을 '_'로 바꾼다."""
    base = os.path.basename(name.replace("\\", "/"))
    stem = os.path.splitext(base)[0]
    cleaned = re.sub(r"\s+", "_", stem.strip())
    return cleaned or "image"


def write_variant(
    output_root: str, source_name: str, resolution: int, data: bytes, digest: str
) -> str:
    """<output_root>/<name>/<resolution>/<hash>.jpg 에 저장하고 공개 경로를 반환한다.

    같은 디렉토리를 여러 워커가 동시에 만들어도 안전하다 (exist_ok).
    """
    name = clean_source_name(source_name)
    resolution_dir = os.path.join(output_root, name, str(resolution))
    os.makedirs(resolution_dir, exist_ok=True)

    filename = f"{digest}.{OUTPUT_EXTENSION}"
    with open(os.path.join(resolution_dir, filename), "wb") as f:
        f.write(data)

    return f"{PUBLIC_OUTPUT_PREFIX}/{name}/{resolution}/{filename}"


def process_image(
    input_path: str,
    output_root: str,
    resolutions: list[int],
    source_name: str | None = None,
) -> list[VariantPayload]:
    """입력 파일 하나를 설정된 모든 해상도로 변환해 저장한다.

    결과는 resolutions 순서를 따른다.
    """
    if not os.path.isfile(input_path):
        raise UnprocessableImage(f"Input file does not exist: {input_path}")

    with open(input_path, "rb") as f:
        source_bytes = f.read()

    name = source_name or input_path
    variants = []
    for resolution in resolutions:
        data, digest = transform(source_bytes, resolution)
        path = write_variant(output_root, name, resolution, data, digest)
        variants.append(
            VariantPayload(resolution=resolution, path=path, content_hash=digest)
        )
    return variants
