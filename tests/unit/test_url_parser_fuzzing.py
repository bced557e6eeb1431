"""Property-based fuzzing tests for the transformation URL grammar.

This test module uses Hypothesis to generate parameter values and whole
transformation URLs and checks that parsing never crashes, keeps chain
order and coerces numbers consistently.

Test Coverage:
- Arbitrary strings through coerce_value
- Integer and float literals round-trip to numbers
- Random directive segments and public ids
"""

import math

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from mediaforge.exceptions import MalformedUrlError
from mediaforge.parser import coerce_value, parse_transformation_url

SEGMENT_ALPHABET = "abcwhxy_,.:0123456789-"
PUBLIC_ID_ALPHABET = "abcdefxyz0123456789.-"


@pytest.mark.unit
@pytest.mark.fuzzing
class TestCoerceValueFuzzing:
    """Property-based tests for coerce_value."""

    @given(st.text(max_size=30))
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_arbitrary_text_never_raises(self, raw):
        """Test any string is either returned unchanged or read as a number."""
        value = coerce_value(raw)

        if isinstance(value, str):
            assert value == raw
        elif isinstance(value, int):
            assert value == int(raw)
        else:
            assert isinstance(value, float)
            assert value == float(raw) or math.isnan(value)

    @given(st.integers(min_value=-(10**12), max_value=10**12))
    def test_integer_literals(self, number):
        """Test integer literals come back as the same int."""
        value = coerce_value(str(number))

        assert value == number
        assert isinstance(value, int)

    @given(st.floats(allow_nan=False, allow_infinity=False))
    def test_float_literals(self, number):
        """Test ``repr`` of a float comes back as the same float."""
        value = coerce_value(repr(number))

        assert value == number
        assert isinstance(value, float)


@pytest.mark.unit
@pytest.mark.fuzzing
class TestParseUrlFuzzing:
    """Property-based tests for parse_transformation_url."""

    @given(
        st.sampled_from(["image", "video", "raw", ""]),
        st.lists(st.text(alphabet=SEGMENT_ALPHABET, max_size=20), max_size=6),
        st.text(alphabet=PUBLIC_ID_ALPHABET, min_size=1, max_size=20),
    )
    def test_random_chains(self, domain, segments, public_id):
        """Test directive segments are kept in order and noise is dropped."""
        path = "/".join(["", domain, "upload", *segments, public_id])

        parsed = parse_transformation_url(path)

        expected_types = [s.split(",")[0] for s in segments if "_" in s and s.split(",")[0]]
        assert [spec.type for spec in parsed.transformations] == expected_types
        assert parsed.public_id == public_id
        assert parsed.domain == (domain or None)

    @given(st.text(alphabet="abc/_,.", max_size=40))
    def test_paths_without_delimiter_are_malformed(self, path):
        """Test any path lacking an ``upload`` segment raises MalformedUrlError."""
        with pytest.raises(MalformedUrlError):
            parse_transformation_url(path)
