from log_series_loader.encoding_detector import decode_bytes

JAPANESE_CSV = "日付,時刻,温度\n2024/01/01,00:00,25.1\n"


def test_utf8():
    assert decode_bytes(JAPANESE_CSV.encode("utf-8")) == JAPANESE_CSV


def test_utf8_byte_order_mark_is_dropped():
    assert decode_bytes(b"\xef\xbb\xbfDate,Time,Temp") == "Date,Time,Temp"


def test_empty_input():
    assert decode_bytes(b"") == ""


def test_detected_encoding_is_used(mocker):
    detect = mocker.patch(
        "log_series_loader.encoding_detector.chardet.detect",
        return_value={"encoding": "SHIFT_JIS", "confidence": 0.99},
    )
    assert decode_bytes(JAPANESE_CSV.encode("shift_jis")) == JAPANESE_CSV
    detect.assert_called_once()


def test_falls_back_to_forced_encoding(mocker):
    mocker.patch(
        "log_series_loader.encoding_detector.chardet.detect",
        return_value={"encoding": None, "confidence": 0.0},
    )
    assert decode_bytes(JAPANESE_CSV.encode("cp932")) == JAPANESE_CSV


def test_undecodable_detection_falls_back(mocker):
    mocker.patch(
        "log_series_loader.encoding_detector.chardet.detect",
        return_value={"encoding": "ascii", "confidence": 0.5},
    )
    assert decode_bytes(JAPANESE_CSV.encode("cp932")) == JAPANESE_CSV


def test_never_raises_on_garbage(mocker):
    mocker.patch(
        "log_series_loader.encoding_detector.chardet.detect",
        return_value={"encoding": None},
    )
    text = decode_bytes(b"\xff\xfe\xfa\x80", fallback_encoding="no-such-codec")
    assert isinstance(text, str)
