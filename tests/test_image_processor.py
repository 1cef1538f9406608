"""Tests for photo compression and data URI handling."""
from io import BytesIO

import pytest
from PIL import Image

from plotsync.image_processor import ImageProcessor, compress_to_jpeg, parse_data_url, to_data_url


def _png(size=(400, 300), mode="RGB", color=(30, 120, 40)):
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def test_parse_data_url():
    assert parse_data_url("data:image/jpeg;base64,Zm9v") == ("image/jpeg", b"foo")


def test_parse_data_url_with_params():
    assert parse_data_url("data:text/plain;charset=utf-8;base64,Zm9v") == ("text/plain", b"foo")


@pytest.mark.parametrize("value", ["", "Zm9v", "data:image/jpeg,Zm9v", "data:image/jpeg;base64,!!!", None])
def test_parse_data_url_rejects(value):
    with pytest.raises(ValueError):
        parse_data_url(value)


def test_to_data_url_round_trips():
    assert parse_data_url(to_data_url(b"\x00\xffbytes", "image/png")) == ("image/png", b"\x00\xffbytes")


def test_compress_to_jpeg():
    jpeg = compress_to_jpeg(Image.new("RGB", (10, 10)), quality=50)
    assert jpeg[:2] == b"\xff\xd8"


def test_prepare_shrinks_to_max_dimension():
    data_url = ImageProcessor(max_dimension=100, quality=70).prepare(_png((400, 200)))

    mime, content = parse_data_url(data_url)
    assert mime == "image/jpeg"
    with Image.open(BytesIO(content)) as img:
        assert img.format == "JPEG"
        assert img.size == (100, 50)


def test_prepare_keeps_small_images_small():
    _, content = parse_data_url(ImageProcessor(max_dimension=1600).prepare(_png((64, 48))))
    with Image.open(BytesIO(content)) as img:
        assert img.size == (64, 48)


def test_prepare_flattens_transparency():
    png = _png((20, 20), mode="RGBA", color=(0, 0, 0, 0))
    _, content = parse_data_url(ImageProcessor().prepare(png))
    with Image.open(BytesIO(content)) as img:
        assert img.mode == "RGB"
        r, g, b = img.getpixel((10, 10))
        assert min(r, g, b) > 240


def test_prepare_rejects_non_images():
    with pytest.raises(ValueError):
        ImageProcessor().prepare(b"definitely not an image")


def test_prepared_image_can_be_queued(image_queue):
    data_url = ImageProcessor(max_dimension=50).prepare(_png())
    image_queue.enqueue_image("P03", "canopy", data_url)
    assert image_queue.list()[0].payload.base64_data == data_url
