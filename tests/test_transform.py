"""이미지 변환 엔진 테스트 (리사이즈 + 해시 + 파일 저장)."""

import io
import os
import re

import pytest
from PIL import Image

from core.exceptions import UnprocessableImage
from processor.transform import (
    clean_source_name,
    probe,
    process_image,
    transform,
    validate_image,
    write_variant,
)

SUPPORTED = ["jpg", "jpeg", "png", "webp"]


def _png_bytes(width: int = 300, height: int = 200) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color="green").save(buf, format="PNG")
    return buf.getvalue()


class TestTransform:
    def test_same_input_same_hash(self):
        """같은 원본 + 같은 폭이면 해시가 항상 같다."""
        source = _png_bytes()

        data1, hash1 = transform(source, 100)
        data2, hash2 = transform(source, 100)

        assert hash1 == hash2
        assert data1 == data2

    def test_output_is_resized_jpeg(self):
        data, _ = transform(_png_bytes(300, 200), 150)

        decoded = Image.open(io.BytesIO(data))
        assert decoded.format == "JPEG"
        assert decoded.size == (150, 100)

    def test_different_width_different_hash(self):
        source = _png_bytes()

        _, hash_a = transform(source, 100)
        _, hash_b = transform(source, 200)

        assert hash_a != hash_b

    def test_garbage_bytes_raise_unprocessable(self):
        with pytest.raises(UnprocessableImage):
            transform(b"definitely not an image", 100)


class TestValidation:
    def test_valid_image(self, make_image):
        assert validate_image(make_image("ok.png", (10, 10)), SUPPORTED) is True

    def test_non_image_with_image_extension(self, tmp_path):
        path = tmp_path / "fake.jpg"
        path.write_text("hello")

        assert validate_image(str(path), SUPPORTED) is False

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "photo.gif"
        Image.new("RGB", (10, 10)).save(path, "GIF")

        assert validate_image(str(path), SUPPORTED) is False

    def test_missing_file(self, tmp_path):
        assert validate_image(str(tmp_path / "nope.jpg"), SUPPORTED) is False

    def test_probe_reads_metadata(self, make_image):
        width, height, fmt = probe(make_image("meta.png", (40, 30)))

        assert (width, height, fmt) == (40, 30, "png")


class TestWriteVariant:
    def test_clean_source_name(self):
        assert clean_source_name("/input/jeanne  dark.jpg") == "jeanne_dark"
        assert clean_source_name("C:\\images\\sample1.png") == "sample1"
        assert clean_source_name("") == "image"

    def test_write_variant_path(self, tmp_path):
        public = write_variant(str(tmp_path), "/input/my photo.jpg", 800, b"abc", "deadbeef")

        assert public == "/output/my_photo/800/deadbeef.jpg"
        with open(tmp_path / "my_photo" / "800" / "deadbeef.jpg", "rb") as f:
            assert f.read() == b"abc"

    def test_write_variant_twice_is_safe(self, tmp_path):
        """같은 디렉토리에 반복 저장해도 에러가 없다."""
        write_variant(str(tmp_path), "a.jpg", 800, b"1", "h1")
        write_variant(str(tmp_path), "a.jpg", 800, b"2", "h2")

        assert sorted(os.listdir(tmp_path / "a" / "800")) == ["h1.jpg", "h2.jpg"]


class TestProcessImage:
    def test_sample_scenario(self, make_image, tmp_path):
        """sample1.jpg + [1024, 800] → /output/sample1/{1024|800}/<hash>.jpg 두 장."""
        input_path = make_image("sample1.jpg", (2048, 1536))
        output_root = tmp_path / "output"

        variants = process_image(input_path, str(output_root), [1024, 800])

        assert [v.resolution for v in variants] == [1024, 800]
        for v in variants:
            assert re.fullmatch(rf"/output/sample1/{v.resolution}/[0-9a-f]{{32}}\.jpg", v.path)
            physical = output_root / "sample1" / str(v.resolution) / f"{v.content_hash}.jpg"
            with Image.open(physical) as img:
                assert img.width == v.resolution

    def test_source_name_overrides_input_name(self, make_image, tmp_path):
        input_path = make_image("0f3a9c.png", (100, 100))

        variants = process_image(input_path, str(tmp_path / "out"), [50], source_name="cat pic.png")

        assert variants[0].path.startswith("/output/cat_pic/50/")

    def test_missing_input(self, tmp_path):
        with pytest.raises(UnprocessableImage):
            process_image(str(tmp_path / "gone.jpg"), str(tmp_path / "out"), [100])
