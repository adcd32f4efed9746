import logging
from typing import List

from dabscan.drivers import rtlsdr, soapy


class _Capture(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


class _BrokenSoapyDevice:
    def __init__(self) -> None:
        self.calls: List[str] = []

    def deactivateStream(self, stream) -> None:
        self.calls.append("deactivate")
        raise RuntimeError("stream already torn down")

    def closeStream(self, stream) -> None:
        self.calls.append("close")


class _BrokenRtlDevice:
    def close(self) -> None:
        raise OSError("LIBUSB_ERROR_NO_DEVICE")


def _captured(module) -> _Capture:
    handler = _Capture()
    module.logger.addHandler(handler)
    module.logger.setLevel(logging.DEBUG)
    return handler


def _release(module, handler: _Capture) -> None:
    module.logger.removeHandler(handler)
    module.logger.setLevel(logging.NOTSET)


def test_soapy_close_logs_instead_of_raising() -> None:
    tuner = object.__new__(soapy.SoapyTuner)
    tuner.dev = _BrokenSoapyDevice()
    tuner.stream = object()
    tuner.device = "soapy:rtlsdr"
    handler = _captured(soapy)
    try:
        tuner.close()
    finally:
        _release(soapy, handler)
    assert tuner.dev.calls == ["deactivate"]
    assert [r.error_type for r in handler.records] == ["tuner_close"]
    assert "stream already torn down" in handler.records[0].getMessage()


def test_rtlsdr_close_logs_instead_of_raising() -> None:
    tuner = object.__new__(rtlsdr.RTLSDRTuner)
    tuner.dev = _BrokenRtlDevice()
    handler = _captured(rtlsdr)
    try:
        tuner.close()
    finally:
        _release(rtlsdr, handler)
    assert [r.levelname for r in handler.records] == ["WARNING"]
