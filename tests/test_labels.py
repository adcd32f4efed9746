from dabscan.util.labels import normalize_label


def test_trailing_padding_is_removed() -> None:
    assert normalize_label("BBC National DAB  ") == "BBC National DAB"
    assert normalize_label("Radio X\x00\x00\t\n") == "Radio X"


def test_leading_and_internal_whitespace_is_kept() -> None:
    assert normalize_label("  Heart  London   ") == "  Heart  London"


def test_normalization_is_idempotent() -> None:
    for raw in ("Capital  ", "  padded\x00", "", "   ", "No change"):
        once = normalize_label(raw)
        assert normalize_label(once) == once


def test_blank_label_normalizes_to_empty() -> None:
    assert normalize_label(" \x00 ") == ""
