from __future__ import annotations

import pytest

LEGACY_ACT = (
    b"#ACT:eJyrVspJzEtXslJQKqhU0lFQSs7PS8ssygUKlBSVpgIFylKLijPz80AqDPUM9AxAiopLCwryi0riUzKLEAoLivJL8pPzc4AiBrUAlAQbEA==\n"
)

REFERENCE_CFG = (
    b"#CFG:eJxFz0sSgjAQBNC7zDqLQLnA7PydAikqhBGiSGKYiJ/SswsWhF3369nMGwrdSvcEQc4jg8KfOv1CEBGPVwxK7VCR"
    b"WXbslLSYq1q6DkSawtFzjghsClPNWArfgNG/j5nHATcBIx5wu2ARcLdgGXAfcL3gAbKMQSPbCgRUZnBzR9c7TTg/YJ0ho0wDImZw8"
    b"xppXkhf0XgaXx/K1T/yoVlP+dm3l3A0upUt5r0uqQaRJJ8f2dNlYw==\n"
)


class RecordingWriter:
    def __init__(self):
        self.buffer: list[bytes] = []

    def write(self, data: bytes) -> int:
        self.buffer.append(data)
        return len(data)

    def assert_buffer_count(self, n: int) -> None:
        assert len(self.buffer) == n


@pytest.fixture
def writer():
    return RecordingWriter()


@pytest.fixture
def legacy_act():
    return LEGACY_ACT


@pytest.fixture
def reference_cfg():
    return REFERENCE_CFG
