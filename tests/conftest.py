"""Pytest configuration and fixtures for omniresolve tests.

Fixtures build fake plugin and engine third-party trees under tmp_path so
every test runs against real filesystem state.
"""

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolate_output_globals():
    """Reset output.py module globals before/after each test.

    Prevents cross-test contamination of verbosity, redirected streams and
    log files set by CLI tests.
    """
    from omniresolve import output

    original = (output._start_time, output._output_stream, output._verbose, output._output_file)

    output._start_time = None
    output._output_stream = None
    output._verbose = True
    output._output_file = None

    yield

    output._start_time, output._output_stream, output._verbose, output._output_file = original


def _write_descriptor(root: Path, relative: str, module_name: str, extra_lines: str = "") -> Path:
    """Write a minimal ``*.Build.cs`` descriptor declaring ``module_name``."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        "using UnrealBuildTool;\n"
        f"{extra_lines}"
        f"public class {module_name} : ModuleRules\n"
        "{\n"
        f"    public {module_name}(ReadOnlyTargetRules Target) : base(Target) {{ }}\n"
        "}\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def write_descriptor():
    """Helper writing a descriptor: write_descriptor(root, relative_path, module_name)."""
    return _write_descriptor


@pytest.fixture
def thirdparty_dir(tmp_path):
    """Empty engine third-party directory."""
    path = tmp_path / "Engine" / "Source" / "ThirdParty"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def openexr_sdk(thirdparty_dir):
    """Third-party tree with OpenEXR (both casings) and Imath descriptors."""
    _write_descriptor(thirdparty_dir, "OpenEXR/OpenEXR.Build.cs", "UEOpenExr")
    _write_descriptor(thirdparty_dir, "OpenExr/Deps/OpenExrCore.Build.cs", "UEOpenExrRTTI")
    _write_descriptor(thirdparty_dir, "Imath/Imath.Build.cs", "Imath")
    return thirdparty_dir


@pytest.fixture
def plugin_dir(tmp_path):
    """Plugin root without any bundled SDK."""
    path = tmp_path / "Plugins" / "OmniCapture"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def nvenc_sdk(plugin_dir):
    """Plugin root with a complete bundled NVENC SDK (header, runtime dll, import libs)."""
    nvenc = plugin_dir / "ThirdParty" / "NVENC"
    (nvenc / "Interface").mkdir(parents=True)
    (nvenc / "Interface" / "nvEncodeAPI.h").write_text("/* nvenc */\n")
    (nvenc / "Win64").mkdir()
    (nvenc / "Win64" / "nvEncodeAPI64.dll").write_bytes(b"MZ\x90\x00")
    (nvenc / "Lib" / "x64").mkdir(parents=True)
    (nvenc / "Lib" / "x64" / "nvencodeapi.lib").write_bytes(b"!<arch>\n")
    (nvenc / "Lib" / "x64" / "nvcuvid.lib").write_bytes(b"!<arch>\n")
    return plugin_dir
