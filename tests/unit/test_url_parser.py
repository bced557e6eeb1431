#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for the transformation URL grammar."""

import pytest

from mediaforge.exceptions import MalformedUrlError, ValidationError
from mediaforge.parser import (
    ParsedUrl,
    TransformationSpec,
    coerce_value,
    parse_component,
    parse_transformation_url,
)


@pytest.mark.unit
class TestCoerceValue:
    """Tests for numeric coercion of parameter values."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("600", 600),
            ("0", 0),
            ("-3", -3),
            ("+5", 5),
            ("007", 7),
        ],
    )
    def test_integers(self, raw, expected):
        """Test integral literals become ints."""
        value = coerce_value(raw)
        assert value == expected
        assert isinstance(value, int)

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("1.5", 1.5),
            (".5", 0.5),
            ("5.", 5.0),
            ("1e3", 1000.0),
            ("-2.5E-1", -0.25),
        ],
    )
    def test_floats(self, raw, expected):
        """Test decimal literals with a fraction or exponent become floats."""
        value = coerce_value(raw)
        assert value == pytest.approx(expected)
        assert isinstance(value, float)

    @pytest.mark.parametrize("raw", ["auto", "", "0x10", "1_000", " 5", "5 ", "nan", "inf", "16:9", "1.2.3", "e5"])
    def test_non_numbers_pass_through(self, raw):
        """Test anything outside the decimal grammar is returned unchanged."""
        assert coerce_value(raw) == raw


@pytest.mark.unit
class TestParseComponent:
    """Tests for parsing a single path segment."""

    def test_type_and_params(self):
        """Test the first element is the type and the rest are key_value pairs."""
        spec = parse_component("c_fill,w_200,h_100")

        assert spec.type == "c_fill"
        assert dict(spec.params) == {"w": 200, "h": 100}

    def test_segment_without_separator_is_dropped(self):
        """Test incidental path segments produce no spec."""
        assert parse_component("v1") is None
        assert parse_component("folder") is None

    def test_empty_type_is_dropped(self):
        """Test a segment starting with a comma produces no spec."""
        assert parse_component(",w_100") is None

    def test_malformed_params_are_ignored(self):
        """Test parameter tokens without a key or separator are skipped."""
        spec = parse_component("c_fill,w_200,bogus,_5,h_100")

        assert dict(spec.params) == {"w": 200, "h": 100}

    def test_value_keeps_later_separators(self):
        """Test only the first separator splits key from value."""
        spec = parse_component("fl_splice,l_video_intro.mp4")

        assert spec.params["l"] == "video_intro.mp4"

    def test_repeated_key_last_wins(self):
        """Test a repeated parameter key keeps the last value."""
        spec = parse_component("c_scale,w_100,w_300")

        assert spec.params["w"] == 300

    def test_type_with_value_is_kept_whole(self):
        """Test ``so_5`` stays one type token; resolution happens in the registry."""
        spec = parse_component("so_5,du_10")

        assert spec.type == "so_5"
        assert dict(spec.params) == {"du": 10}


@pytest.mark.unit
class TestParseTransformationUrl:
    """Tests for parse_transformation_url."""

    def test_image_url(self):
        """Test a typical image URL."""
        parsed = parse_transformation_url("/image/upload/c_fill,w_200,h_200/photo.jpg")

        assert parsed.public_id == "photo.jpg"
        assert parsed.domain == "image"
        assert len(parsed.transformations) == 1
        assert parsed.transformations[0] == TransformationSpec("c_fill", {"w": 200, "h": 200})

    def test_video_url_with_offsets(self):
        """Test a trimmed video URL."""
        parsed = parse_transformation_url("/video/upload/so_5,du_10/clip.mp4")

        assert parsed.domain == "video"
        assert parsed.public_id == "clip.mp4"
        assert [s.type for s in parsed.transformations] == ["so_5"]
        assert dict(parsed.transformations[0].params) == {"du": 10}

    def test_chain_order_is_preserved(self):
        """Test directives keep URL order across segments."""
        parsed = parse_transformation_url("/image/upload/c_crop,w_10,h_10,x_0,y_0/c_scale,w_5/q_auto/a.png")

        assert [s.type for s in parsed.transformations] == ["c_crop", "c_scale", "q_auto"]

    def test_incidental_segments_dropped(self):
        """Test version-like segments between directives are ignored."""
        parsed = parse_transformation_url("/image/upload/v1234/c_scale,w_100/photos/cat.jpg")

        assert [s.type for s in parsed.transformations] == ["c_scale"]
        assert parsed.public_id == "cat.jpg"

    def test_no_transformations(self):
        """Test an URL naming only the asset yields an empty chain."""
        parsed = parse_transformation_url("/image/upload/photo.jpg")

        assert parsed.transformations == ()
        assert parsed.public_id == "photo.jpg"

    def test_query_string_is_stripped(self):
        """Test a query string does not leak into the public id."""
        parsed = parse_transformation_url("/image/upload/c_scale,w_100/photo.jpg?v=3&x=c_fill")

        assert parsed.public_id == "photo.jpg"
        assert [s.type for s in parsed.transformations] == ["c_scale"]

    def test_public_id_is_unquoted(self):
        """Test percent-encoding in the public id is decoded."""
        parsed = parse_transformation_url("/image/upload/my%20photo.jpg")

        assert parsed.public_id == "my photo.jpg"

    def test_first_delimiter_wins(self):
        """Test a later ``upload`` segment is treated as a plain segment."""
        parsed = parse_transformation_url("/image/upload/c_scale,w_10/upload/a.png")

        assert parsed.public_id == "a.png"
        assert [s.type for s in parsed.transformations] == ["c_scale"]

    def test_domain_absent(self):
        """Test a path starting at the delimiter has no domain."""
        parsed = parse_transformation_url("upload/c_scale,w_10/a.png")

        assert parsed.domain is None
        assert parsed.public_id == "a.png"

    def test_unpacks_as_pair(self):
        """Test ParsedUrl unpacks to public id and chain."""
        public_id, chain = parse_transformation_url("/video/upload/eo_8/clip.mp4")

        assert public_id == "clip.mp4"
        assert chain[0].type == "eo_8"
        assert isinstance(parse_transformation_url("/image/upload/a.png"), ParsedUrl)

    @pytest.mark.parametrize(
        "path",
        [
            "/image/badpath",
            "/image/uploads/c_fill,w_1,h_1/a.png",
            "",
            "/",
            "/image/upload",
            "/image/upload/",
            "/image/upload/c_fill,w_1,h_1/",
        ],
    )
    def test_malformed(self, path):
        """Test paths without a usable delimiter or asset are rejected."""
        with pytest.raises(MalformedUrlError) as exc_info:
            parse_transformation_url(path)

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.url == path

    def test_malformed_message(self):
        """Test the client-facing message for a missing delimiter."""
        with pytest.raises(MalformedUrlError, match="Invalid transformation URL"):
            parse_transformation_url("/image/badpath")


@pytest.mark.unit
class TestTransformationSpec:
    """Tests for the TransformationSpec value type."""

    def test_params_are_read_only(self):
        """Test params cannot be mutated after parsing."""
        spec = TransformationSpec("c_fill", {"w": 1})

        with pytest.raises(TypeError):
            spec.params["w"] = 2  # type: ignore[index]

    def test_empty_type_rejected(self):
        """Test a spec needs a type."""
        with pytest.raises(ValueError):
            TransformationSpec("")

    def test_to_dict(self):
        """Test the JSON view."""
        spec = TransformationSpec("q_auto", {"quality": 70})

        assert spec.to_dict() == {"type": "q_auto", "params": {"quality": 70}}
