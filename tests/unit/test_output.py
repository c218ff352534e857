"""Tests for timestamped user-facing output."""

import io
import re

from omniresolve import output

TIMESTAMP = r"\d{2}:\d{2}\.\d{2}"


def _lines(stream):
    return stream.getvalue().splitlines()


class TestLog:
    def test_timestamp_prefix(self):
        stream = io.StringIO()
        output.init_timer(stream)

        output.log("hello")

        assert re.fullmatch(rf"{TIMESTAMP} hello", _lines(stream)[0])

    def test_phase_and_detail(self):
        stream = io.StringIO()
        output.set_output_stream(stream)

        output.log_phase(1, 4, "Scanning third-party modules...")
        output.log_detail("OpenEXR: UEOpenExr")

        first, second = _lines(stream)
        assert first.endswith(" [1/4] Scanning third-party modules...")
        assert second.endswith("       OpenEXR: UEOpenExr")

    def test_verbose_only_suppressed(self):
        stream = io.StringIO()
        output.set_output_stream(stream)
        output.set_verbose(False)

        output.log("hidden", verbose_only=True)
        output.log("shown")

        assert len(_lines(stream)) == 1
        assert not output.is_verbose()

    def test_output_file_mirrors_stream(self):
        stream = io.StringIO()
        mirror = io.StringIO()
        output.set_output_stream(stream)
        output.set_output_file(mirror)

        output.log_warning("careful")

        assert stream.getvalue() == mirror.getvalue()
        assert "WARNING: careful" in mirror.getvalue()

    def test_defaults_to_stdout(self, capsys):
        output.log_error("boom")
        assert "ERROR: boom" in capsys.readouterr().out

    def test_header(self, capsys):
        output.log_header("omniresolve", "1.0", "platform: Win64")
        assert capsys.readouterr().out.rstrip().endswith("omniresolve v1.0 (platform: Win64)")


class TestLogCapability:
    def test_enabled(self, capsys):
        output.log_capability("NVENC", True)
        assert capsys.readouterr().out.rstrip().endswith("NVENC support enabled")

    def test_skipped(self, capsys):
        output.log_capability("NVENC", False, skipped_reason="only available on Win64")
        assert "NVENC support disabled - only available on Win64" in capsys.readouterr().out

    def test_missing_items_one_per_line(self, capsys):
        output.log_capability("NVENC", False, missing=["Header nvEncodeAPI.h", "Runtime nvEncodeAPI64.dll"])

        lines = capsys.readouterr().out.splitlines()
        assert lines[0].endswith("NVENC support disabled - missing dependencies:")
        assert lines[1].endswith("  - Header nvEncodeAPI.h")
        assert lines[2].endswith("  - Runtime nvEncodeAPI64.dll")


class TestTimedLogger:
    def test_logs_phase_and_done(self):
        stream = io.StringIO()
        output.set_output_stream(stream)

        with output.TimedLogger("Staging runtime libraries", phase=(4, 4)) as timed:
            timed.detail("nvEncodeAPI64.dll -> Binaries/Win64")

        lines = _lines(stream)
        assert lines[0].endswith("[4/4] Staging runtime libraries...")
        assert lines[1].endswith("nvEncodeAPI64.dll -> Binaries/Win64")
        assert re.search(r"Done \(\d+\.\d{2}s\)$", lines[2])

    def test_no_done_on_exception(self):
        stream = io.StringIO()
        output.set_output_stream(stream)

        try:
            with output.TimedLogger("Probing"):
                raise RuntimeError("fail")
        except RuntimeError:
            pass

        assert "Done" not in stream.getvalue()


def test_format_timestamp_shape():
    output.init_timer()
    assert re.fullmatch(TIMESTAMP, output.format_timestamp())
