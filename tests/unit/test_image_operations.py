#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for the built-in image operations."""

import io

import pytest
from PIL import Image
from utils import image_size, make_image_bytes, make_transparent_logo, open_image

from mediaforge.exceptions import OperationError
from mediaforge.imaging import aspect_box, extract_region, parse_aspect_ratio, parse_color
from mediaforge.parser import parse_transformation_url
from mediaforge.pipeline import ImagePipeline


def render(source: bytes, url: str) -> bytes:
    """Run the chain of ``url`` against ``source``."""
    _, chain = parse_transformation_url(url)
    return ImagePipeline().run(source, chain)


@pytest.mark.unit
class TestImagingHelpers:
    """Tests for the Pillow helpers behind the operations."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("white", (255, 255, 255)),
            ("rgb:ff0000", (255, 0, 0)),
            ("00ff00", (0, 255, 0)),
            ("#0000ff", (0, 0, 255)),
        ],
    )
    def test_parse_color(self, value, expected):
        """Test CSS names, hex and the ``rgb:`` form."""
        assert parse_color(value) == expected

    def test_parse_color_invalid(self):
        """Test unknown colours raise ValueError."""
        with pytest.raises(ValueError):
            parse_color("notacolour")

    @pytest.mark.parametrize("value,expected", [(1.5, 1.5), (2, 2.0), ("16:9", 16 / 9), ("4:3", 4 / 3)])
    def test_parse_aspect_ratio(self, value, expected):
        """Test numeric and ``w:h`` ratios."""
        assert parse_aspect_ratio(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["wide", 0, -1.5, "0:9"])
    def test_parse_aspect_ratio_invalid(self, value):
        """Test non-positive or unreadable ratios raise ValueError."""
        with pytest.raises(ValueError):
            parse_aspect_ratio(value)

    def test_aspect_box(self):
        """Test the missing side is derived from the ratio."""
        assert aspect_box(1.5, width=300) == (300, 200)
        assert aspect_box(1.5, height=200) == (300, 200)
        assert aspect_box(1.5, width=300, height=10) == (300, 200)
        assert aspect_box(1.5) is None

    def test_extract_region_bounds(self):
        """Test a window outside the image raises ValueError."""
        image = Image.new("RGB", (10, 10))

        assert extract_region(image, 2, 2, 5, 5).size == (5, 5)
        with pytest.raises(ValueError, match="exceeds image bounds"):
            extract_region(image, 8, 0, 5, 5)


@pytest.mark.unit
class TestResizeOperations:
    """Tests for the crop and resize tags."""

    def test_fill_exact_size(self, photo_jpeg):
        """Test c_fill produces exactly w x h and keeps JPEG."""
        result = render(photo_jpeg, "/image/upload/c_fill,w_200,h_200/photo.jpg")

        image = open_image(result)
        assert image.size == (200, 200)
        assert image.format == "JPEG"

    def test_thumb_matches_fill(self, photo_jpeg):
        """Test c_thumb behaves like c_fill."""
        assert render(photo_jpeg, "/image/upload/c_thumb,w_50,h_80/p.jpg") == render(
            photo_jpeg, "/image/upload/c_fill,w_50,h_80/p.jpg"
        )

    def test_crop_window(self, photo_jpeg):
        """Test c_crop extracts a window."""
        result = render(photo_jpeg, "/image/upload/c_crop,w_100,h_50,x_10,y_20/photo.jpg")

        assert image_size(result) == (100, 50)

    def test_crop_out_of_bounds(self, photo_jpeg):
        """Test a window beyond the image fails and names the tag."""
        with pytest.raises(OperationError, match="c_crop") as exc_info:
            render(photo_jpeg, "/image/upload/c_crop,w_500,h_50,x_0,y_0/photo.jpg")

        assert exc_info.value.operation == "c_crop"

    def test_crop_requires_origin(self, photo_jpeg):
        """Test image crops need x and y."""
        with pytest.raises(OperationError, match="missing required parameter 'x'"):
            render(photo_jpeg, "/image/upload/c_crop,w_10,h_10/photo.jpg")

    def test_pad_colour(self):
        """Test c_pad letterboxes with the requested colour."""
        source = make_image_bytes((100, 50), color=(255, 0, 0), fmt="PNG")

        result = open_image(render(source, "/image/upload/c_pad,w_100,h_100,b_rgb:00ff00/a.png"))

        assert result.size == (100, 100)
        assert result.getpixel((0, 0))[:3] == (0, 255, 0)
        assert result.getpixel((50, 50))[:3] == (255, 0, 0)

    def test_pad_keeps_transparency_format(self, logo_png):
        """Test padding a transparent PNG stays PNG."""
        result = open_image(render(logo_png, "/image/upload/c_pad,w_200,h_200,b_white/logo.png"))

        assert result.size == (200, 200)
        assert result.format == "PNG"

    def test_scale_width_only(self, photo_jpeg):
        """Test c_scale derives the height from the aspect ratio."""
        assert image_size(render(photo_jpeg, "/image/upload/c_scale,w_200/photo.jpg")) == (200, 150)

    def test_scale_height_only(self, photo_jpeg):
        """Test c_scale derives the width from the aspect ratio."""
        assert image_size(render(photo_jpeg, "/image/upload/c_scale,h_600/photo.jpg")) == (800, 600)

    def test_scale_without_dimensions(self, photo_jpeg):
        """Test c_scale needs w or h."""
        with pytest.raises(OperationError, match="c_scale requires"):
            render(photo_jpeg, "/image/upload/c_scale,x_1/photo.jpg")

    def test_fit_inside_box(self, photo_jpeg):
        """Test c_fit keeps the aspect ratio inside the box."""
        assert image_size(render(photo_jpeg, "/image/upload/c_fit,w_200,h_200/photo.jpg")) == (200, 150)

    def test_non_positive_dimension(self, photo_jpeg):
        """Test zero or negative sizes fail."""
        with pytest.raises(OperationError, match="must be positive"):
            render(photo_jpeg, "/image/upload/c_fill,w_0,h_10/photo.jpg")

    @pytest.mark.parametrize(
        "url",
        [
            "/image/upload/c_fill,w_60000,h_60000/photo.jpg",
            "/image/upload/c_pad,w_100,h_20000/photo.jpg",
            "/image/upload/ar_0.1,w_5000/photo.jpg",
        ],
    )
    def test_oversized_dimension(self, photo_jpeg, url):
        """Test output sizes above the limit fail before resizing."""
        with pytest.raises(OperationError, match="must be at most 10000"):
            render(photo_jpeg, url)

    def test_gravity_auto_crops_to_box(self, photo_jpeg):
        """Test g_auto produces the requested box."""
        assert image_size(render(photo_jpeg, "/image/upload/g_auto,w_120,h_120/photo.jpg")) == (120, 120)


@pytest.mark.unit
class TestAspectRatio:
    """Tests for the ar tag."""

    def test_width_derives_height(self, photo_jpeg):
        """Test ar 1.5 with w 300 gives 300 x 200."""
        assert image_size(render(photo_jpeg, "/image/upload/ar_1.5,w_300/photo.jpg")) == (300, 200)

    def test_height_derives_width(self, photo_jpeg):
        """Test ar 1.5 with h 200 gives 300 x 200."""
        assert image_size(render(photo_jpeg, "/image/upload/ar_1.5,h_200/photo.jpg")) == (300, 200)

    def test_ratio_as_fraction(self, photo_jpeg):
        """Test ``w:h`` ratios."""
        assert image_size(render(photo_jpeg, "/image/upload/ar_16:9,h_90/photo.jpg")) == (160, 90)

    def test_ratio_as_parameter(self, photo_jpeg):
        """Test ``ar`` given as a separate parameter of the ar tag."""
        assert image_size(render(photo_jpeg, "/image/upload/ar,ar_2,w_100/photo.jpg")) == (100, 50)

    def test_without_box_is_unchanged(self, photo_jpeg):
        """Test ar alone passes the image through."""
        assert render(photo_jpeg, "/image/upload/ar_1.5/photo.jpg") == photo_jpeg

    def test_invalid_ratio(self, photo_jpeg):
        """Test an unreadable ratio fails the chain."""
        with pytest.raises(OperationError, match="^ar: "):
            render(photo_jpeg, "/image/upload/ar_wide,w_100/photo.jpg")


@pytest.mark.unit
class TestBackgroundAndQuality:
    """Tests for b_auto and q_auto."""

    def test_background_flatten(self, logo_png):
        """Test transparent pixels are composited onto white."""
        result = open_image(render(logo_png, "/image/upload/b_auto/logo.png"))

        assert result.mode == "RGB"
        assert result.getpixel((0, 0)) == (255, 255, 255)
        assert result.getpixel((60, 40)) == (0, 0, 255)

    def test_background_colour(self):
        """Test a custom flatten colour."""
        logo = make_transparent_logo()

        result = open_image(render(logo, "/image/upload/b_auto,b_black/logo.png"))

        assert result.getpixel((0, 0)) == (0, 0, 0)

    def test_background_opaque_unchanged_size(self, photo_jpeg):
        """Test flattening an opaque image keeps its size."""
        assert image_size(render(photo_jpeg, "/image/upload/b_auto/photo.jpg")) == (400, 300)

    def test_quality_reduces_jpeg_size(self):
        """Test lower quality yields a smaller JPEG."""
        noisy = Image.effect_noise((300, 300), 80).convert("RGB")
        out = io.BytesIO()
        noisy.save(out, format="JPEG", quality=95)
        source = out.getvalue()

        low = render(source, "/image/upload/q_auto,quality_10/n.jpg")
        high = render(source, "/image/upload/q_auto,quality_95/n.jpg")

        assert len(low) < len(high)
        assert image_size(low) == (300, 300)

    def test_quality_default(self, photo_jpeg):
        """Test q_auto without a level re-encodes at the default quality."""
        assert image_size(render(photo_jpeg, "/image/upload/q_auto/photo.jpg")) == (400, 300)

    def test_quality_out_of_range(self, photo_jpeg):
        """Test levels outside 1-100 fail."""
        with pytest.raises(OperationError, match="quality must be between 1 and 100"):
            render(photo_jpeg, "/image/upload/q_auto,quality_0/photo.jpg")

    def test_quality_on_png_keeps_format(self, logo_png):
        """Test lossless formats ignore the level and keep their format."""
        result = open_image(render(logo_png, "/image/upload/q_auto,quality_30/logo.png"))

        assert result.format == "PNG"
        assert result.mode == "RGBA"
