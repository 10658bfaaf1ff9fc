import pytest

from ratio_crop_tool.errors import ParseError
from ratio_crop_tool.models import AspectRatio
from ratio_crop_tool.ratios import parse_aspect_ratio, parse_aspect_ratio_strict


@pytest.mark.parametrize("w, h", [(1, 1), (4, 3), (16, 9), (9, 16), (21, 9), (3, 1000)])
def test_parse_valid_tokens(w, h):
    aspect = parse_aspect_ratio(f"{w}:{h}")
    assert aspect.ratio == pytest.approx(w / h)
    assert str(aspect) == f"{w}:{h}"


def test_parse_accepts_fractional_and_padded_components():
    aspect = parse_aspect_ratio(" 1.5 : 1 ")
    assert aspect.ratio == pytest.approx(1.5)
    assert str(aspect) == "1.5:1"


@pytest.mark.parametrize("token", [
    "", "0:5", "5:0", "a:b", "16", "16:9:1", "-4:3", "nan:1", "inf:2", ":",
    "1:1e-320", "1e-320:1", "1e308:1e-308", "1e-308:1e308",
])
def test_parse_malformed_falls_back_to_square(token):
    assert parse_aspect_ratio(token).ratio == 1


def test_parse_malformed_logs_warning(caplog):
    with caplog.at_level("WARNING", logger="ratio_crop_tool.ratios"):
        parse_aspect_ratio("a:b")
    assert "a:b" in caplog.text


def test_parse_non_string_falls_back_to_square():
    assert parse_aspect_ratio(None).ratio == 1


def test_parse_passes_aspect_ratio_through():
    aspect = AspectRatio(4, 3)
    assert parse_aspect_ratio(aspect) is aspect


@pytest.mark.parametrize("token", ["", "0:5", "a:b", "1:2:3", "1:1e-320"])
def test_strict_parse_raises(token):
    with pytest.raises(ParseError):
        parse_aspect_ratio_strict(token)


def test_parse_error_is_value_error():
    with pytest.raises(ValueError):
        parse_aspect_ratio_strict("x:y")


def test_aspect_ratio_rejects_non_positive():
    with pytest.raises(ValueError):
        AspectRatio(0, 1)


@pytest.mark.parametrize("w, h", [(1, 1e-320), (1e308, 1e-308)])
def test_aspect_ratio_rejects_degenerate_quotient(w, h):
    with pytest.raises(ValueError):
        AspectRatio(w, h)
