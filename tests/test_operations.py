"""이미지 처리 함수 단위 테스트."""

import io

from PIL import Image

from processor.operations import content_hash, encode, resize_to_width


def _make_image(width: int = 100, height: int = 100, mode: str = "RGB") -> Image.Image:
    """테스트용 이미지를 메모리에서 생성한다."""
    return Image.new(mode, (width, height), color="red")


def test_resize_keeps_aspect_ratio():
    """가로 폭만 지정해도 세로는 비율대로 줄어든다."""
    img = _make_image(2000, 1000)
    result = resize_to_width(img, 800)

    assert result.size == (800, 400)


def test_resize_never_upscales():
    """원본보다 큰 폭을 요청하면 원본 크기를 유지한다."""
    img = _make_image(640, 480)
    result = resize_to_width(img, 1024)

    assert result.size == (640, 480)


def test_encode_is_always_jpeg():
    """RGBA PNG 원본이어도 RGB JPEG로 인코딩된다."""
    img = _make_image(50, 50, mode="RGBA")
    data = encode(img)

    decoded = Image.open(io.BytesIO(data))
    assert decoded.format == "JPEG"
    assert decoded.mode == "RGB"


def test_content_hash_is_md5_hex():
    digest = content_hash(b"pixel")

    assert len(digest) == 32
    assert digest == content_hash(b"pixel")
    assert digest != content_hash(b"pixel!")
