#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for custom operation providers and background removal."""

import pytest
from utils import make_image_bytes, make_shape_on_white, open_image

from mediaforge.operations import OperationRegistry, ParameterSpec, image_registry
from mediaforge.parser import parse_transformation_url
from mediaforge.pipeline import ImagePipeline
from mediaforge.plugins import (
    CustomOperationProvider,
    EdgeDetectionBackgroundRemoval,
    custom_operation,
    register_custom_operation,
)


class InvertBytesProvider:
    """Trivial provider used to check swapping."""

    def __init__(self):
        self.calls = []

    def apply(self, buffer, params):
        self.calls.append(dict(params))
        return buffer[::-1]


@pytest.fixture
def registry():
    """Create a fresh registry for each test."""
    reg = OperationRegistry("image")
    reg.clear()
    reg._initialized = True
    return reg


@pytest.mark.unit
class TestCustomOperations:
    """Tests for wrapping and registering providers."""

    def test_provider_protocol(self):
        """Test providers are recognised structurally."""
        assert isinstance(InvertBytesProvider(), CustomOperationProvider)
        assert isinstance(EdgeDetectionBackgroundRemoval(), CustomOperationProvider)
        assert not isinstance(object(), CustomOperationProvider)

    def test_custom_operation_rejects_non_provider(self):
        """Test objects without apply are refused."""
        with pytest.raises(TypeError, match="must implement apply"):
            custom_operation("e_x", object())  # type: ignore[arg-type]

    def test_register_into_registry(self, registry):
        """Test a registered provider runs through the image pipeline."""
        provider = InvertBytesProvider()
        metadata = register_custom_operation(
            "e_invert",
            provider,
            description="Reverse the bytes",
            parameters={"level": ParameterSpec(type=int, default=3)},
            registry=registry,
        )

        result = ImagePipeline(registry).run(b"abc", parse_transformation_url("/image/upload/e_invert/a.png")[1])

        assert result == b"cba"
        assert provider.calls == [{"level": 3}]
        assert metadata.tags == ["custom"]
        assert registry.get_metadata("e_invert").description == "Reverse the bytes"

    def test_default_description(self, registry):
        """Test a description is derived from the provider class."""
        metadata = register_custom_operation("e_invert", InvertBytesProvider(), registry=registry)

        assert metadata.description == "Custom operation (InvertBytesProvider)"

    def test_swap_provider_keeps_tag(self, registry):
        """Test re-registering a tag replaces the provider."""
        first, second = InvertBytesProvider(), InvertBytesProvider()
        register_custom_operation("e_swap", first, registry=registry)
        register_custom_operation("e_swap", second, registry=registry)

        ImagePipeline(registry).run(b"ab", parse_transformation_url("/image/upload/e_swap/a.png")[1])

        assert first.calls == []
        assert len(second.calls) == 1

    def test_default_registry_is_image_registry(self):
        """Test registering without a registry targets the global image registry."""
        provider = InvertBytesProvider()
        try:
            register_custom_operation("e_test_global", provider)
            assert image_registry.has_operation("e_test_global")
        finally:
            image_registry.unregister("e_test_global")


@pytest.mark.unit
class TestEdgeDetectionBackgroundRemoval:
    """Tests for the OpenCV background removal provider."""

    @pytest.fixture(autouse=True)
    def _require_opencv(self):
        pytest.importorskip("cv2")

    def test_background_becomes_transparent(self):
        """Test pixels outside the detected shape are cleared and the shape is kept."""
        source = make_shape_on_white()

        result = open_image(
            ImagePipeline().run(source, parse_transformation_url("/image/upload/e_background_removal/shape.png")[1])
        )

        assert result.format == "PNG"
        assert result.mode == "RGBA"
        assert result.getpixel((2, 2)) == (0, 0, 0, 0)
        assert result.getpixel((50, 50)) == (255, 0, 0, 255)

    def test_uniform_image_is_fully_removed(self):
        """Test an image without edges has no foreground."""
        source = make_image_bytes((40, 40), color=(255, 255, 255), fmt="PNG")

        result = open_image(EdgeDetectionBackgroundRemoval().apply(source, {}))

        assert result.getextrema()[3] == (0, 0)

    def test_thresholds_from_url(self):
        """Test camelCase threshold parameters are accepted."""
        source = make_shape_on_white()
        _, chain = parse_transformation_url(
            "/image/upload/e_background_removal,lowerThreshold_10,upperThreshold_30/shape.png"
        )

        result = open_image(ImagePipeline().run(source, chain))

        assert result.getpixel((50, 50))[3] == 255

    def test_jpeg_keeps_format(self, photo_jpeg):
        """Test a JPEG source comes back as JPEG."""
        result = open_image(EdgeDetectionBackgroundRemoval().apply(photo_jpeg, {}))

        assert result.format == "JPEG"
        assert result.size == (400, 300)
