"""
Tests for the Pillow image routines and the image tools.
"""

import io

import pytest
from PIL import Image

from filetools_backend.processors import images
from filetools_backend.utils import compression_summary


@pytest.fixture
def png_file(tmp_path, png_bytes):
    path = tmp_path / "photo.png"
    path.write_bytes(png_bytes)
    return path


def open_output(path):
    with Image.open(path) as image:
        image.load()
        return image


class TestResize:
    """Tests for the object-fit style resize."""

    def test_inside_keeps_aspect(self):
        image = Image.new("RGB", (40, 30))
        assert images.resize(image, 20, 20, "inside").size == (20, 15)

    def test_fill_stretches(self):
        image = Image.new("RGB", (40, 30))
        assert images.resize(image, 20, 20, "fill").size == (20, 20)

    def test_cover_crops_to_box(self):
        image = Image.new("RGB", (40, 30))
        assert images.resize(image, 20, 20, "cover").size == (20, 20)

    def test_single_dimension(self):
        image = Image.new("RGB", (40, 30))
        assert images.resize(image, 20, None).size == (20, 15)

    def test_no_dimensions_is_identity(self):
        image = Image.new("RGB", (40, 30))
        assert images.resize(image, None, None) is image

    def test_unknown_fit(self):
        with pytest.raises(ValueError):
            images.resize(Image.new("RGB", (4, 4)), 2, 2, "stretchy")


class TestImageRoutines:
    """Tests for the file level image routines."""

    def test_extension_for(self):
        assert images.extension_for("JPEG") == "jpg"
        assert images.extension_for(".webp") == "webp"

    def test_convert_to_webp(self, png_file, tmp_path):
        destination = images.convert_image(png_file, tmp_path / "photo.webp")
        assert open_output(destination).format == "WEBP"

    def test_jpeg_flattens_alpha(self, tmp_path):
        source = tmp_path / "alpha.png"
        Image.new("RGBA", (4, 4), (0, 0, 0, 0)).save(source)
        destination = images.convert_image(source, tmp_path / "alpha.jpg")
        output = open_output(destination)
        assert output.mode == "RGB"
        assert output.getpixel((0, 0)) == pytest.approx((255, 255, 255), abs=2)

    def test_unsupported_extension(self, png_file, tmp_path):
        with pytest.raises(ValueError, match="Unsupported image format"):
            images.convert_image(png_file, tmp_path / "photo.heic")

    def test_crop(self, png_file, tmp_path):
        destination = images.crop_image(png_file, tmp_path / "crop.png", 5, 5, 10, 20)
        assert open_output(destination).size == (10, 20)

    def test_crop_outside_image(self, png_file, tmp_path):
        with pytest.raises(ValueError, match="lies outside the 40x30 image"):
            images.crop_image(png_file, tmp_path / "crop.png", 35, 0, 10, 10)

    def test_rotate_quarter_turn_swaps_dimensions(self, png_file, tmp_path):
        destination = images.rotate_image(png_file, tmp_path / "rotated.png", angle=90)
        assert open_output(destination).size == (30, 40)

    def test_remove_background(self, tmp_path):
        source = tmp_path / "product.png"
        image = Image.new("RGB", (2, 1), (255, 255, 255))
        image.putpixel((1, 0), (10, 10, 10))
        image.save(source)
        output = open_output(images.remove_background(source, tmp_path / "cut.png"))
        assert output.getpixel((0, 0))[3] == 0
        assert output.getpixel((1, 0))[3] == 255

    def test_upscale(self, png_file, tmp_path):
        destination = images.upscale_image(png_file, tmp_path / "big.png", scale=2, algorithm="nearest")
        assert open_output(destination).size == (80, 60)


class TestImageTools:
    """Tests for the image tools through the API."""

    @pytest.fixture(autouse=True)
    def image(self, png_bytes):
        self.png = png_bytes

    def upload(self, client, tool_id, data=None, name="photo.png"):
        return client.post(
            f"/api/tools/{tool_id}/process",
            files=[("files", (name, self.png, "image/png"))],
            data=data or {},
        )

    def download(self, client, file_id):
        response = client.get(f"/api/download/{file_id}")
        assert response.status_code == 200
        return Image.open(io.BytesIO(response.content))

    def test_convert_to_webp(self, client):
        response = self.upload(client, "image-convert", {"format": "webp"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["message"] == "Successfully converted image to webp"
        assert data["fileId"].startswith("converted_")
        assert data["fileId"].endswith(".webp")
        assert self.download(client, data["fileId"]).format == "WEBP"

    def test_crop(self, client):
        response = self.upload(client, "image-crop", {"x": "0", "y": "0", "width": "20", "height": "10"})
        data = response.json()["data"]
        assert data["message"] == "Successfully cropped image to 20x10 pixels"
        assert self.download(client, data["fileId"]).size == (20, 10)

    def test_crop_requires_dimensions(self, client):
        response = self.upload(client, "image-crop", {"height": "10"})
        assert response.status_code == 400
        assert response.json()["error"] == "Crop width and height are required"

    def test_crop_outside_image_is_client_error(self, client):
        response = self.upload(client, "image-crop", {"x": "30", "y": "0", "width": "20", "height": "10"})
        assert response.status_code == 400
        assert "lies outside" in response.json()["error"]

    def test_rotate(self, client):
        response = self.upload(client, "image-rotate", {"angle": "90"})
        data = response.json()["data"]
        assert data["fileId"].endswith(".png")
        assert self.download(client, data["fileId"]).size == (30, 40)

    def test_background_remover_writes_png(self, client):
        response = self.upload(client, "background-remover", name="photo.jpg")
        data = response.json()["data"]
        assert data["message"] == "Successfully removed background from image"
        assert data["fileId"].startswith("no_background_")
        assert data["fileId"].endswith(".png")

    def test_requires_exactly_one_image(self, client):
        response = client.post("/api/tools/image-rotate/process")
        assert response.status_code == 400
        assert response.json()["error"] == "Exactly 1 image file is required for rotation"

    def test_compress_reports_sizes(self, client):
        response = self.upload(client, "image-compress", {"quality": "50"})
        data = response.json()["data"]
        assert data["fileId"].startswith("compressed_")
        assert data["message"] == compression_summary("image", len(self.png), data["fileSize"])
        assert data["message"].startswith("Successfully compressed image by ")
