"""Tests for the third-party module scanner."""

from pathlib import Path

from omniresolve.scanner import extract_module_name, module_names, scan, scan_modules


class TestExtractModuleName:
    """Declaration matching inside a single descriptor file."""

    def test_public_class(self, tmp_path, write_descriptor):
        path = write_descriptor(tmp_path, "Foo.Build.cs", "FooBar")
        assert extract_module_name(path) == "FooBar"

    def test_bare_class_without_modifiers(self, tmp_path):
        path = tmp_path / "Imath.Build.cs"
        path.write_text("  class Imath: ModuleRules\n{\n}\n")
        assert extract_module_name(path) == "Imath"

    def test_first_declaration_wins(self, tmp_path):
        path = tmp_path / "Multi.Build.cs"
        path.write_text("public class First : ModuleRules {}\npublic class Second : ModuleRules {}\n")
        assert extract_module_name(path) == "First"

    def test_no_declaration_returns_none(self, tmp_path):
        path = tmp_path / "Helpers.Build.cs"
        path.write_text("// not a module\npublic static class Helpers { }\n")
        assert extract_module_name(path) is None

    def test_other_base_class_ignored(self, tmp_path):
        path = tmp_path / "Target.Build.cs"
        path.write_text("public class MyGame : TargetRules\n")
        assert extract_module_name(path) is None

    def test_commented_declaration_ignored(self, tmp_path):
        path = tmp_path / "Old.Build.cs"
        path.write_text("// public class Old : ModuleRules\n")
        assert extract_module_name(path) is None


class TestScan:
    """Recursive scanning for a single prefix."""

    def test_missing_root_returns_empty_set(self, tmp_path):
        assert scan(tmp_path / "does-not-exist", "OpenEXR") == set()

    def test_none_and_empty_root_return_empty_set(self):
        assert scan(None, "OpenEXR") == set()
        assert scan("", "OpenEXR") == set()

    def test_single_descriptor(self, thirdparty_dir, write_descriptor):
        write_descriptor(thirdparty_dir, "Foo/FooBar.Build.cs", "FooBar")

        result = scan(thirdparty_dir, "Foo")

        assert {d.name for d in result} == {"FooBar"}
        (descriptor,) = result
        assert descriptor.source_path == thirdparty_dir / "Foo" / "FooBar.Build.cs"

    def test_recurses_into_subdirectories(self, thirdparty_dir, write_descriptor):
        write_descriptor(thirdparty_dir, "a/b/c/OpenEXR.Build.cs", "UEOpenExr")
        assert module_names(scan(thirdparty_dir, "OpenEXR")) == ("UEOpenExr",)

    def test_prefix_must_match_filename_start(self, thirdparty_dir, write_descriptor):
        write_descriptor(thirdparty_dir, "libs/MyOpenEXR.Build.cs", "MyOpenEXR")
        assert scan(thirdparty_dir, "OpenEXR") == set()

    def test_suffix_must_be_build_cs(self, thirdparty_dir, write_descriptor):
        write_descriptor(thirdparty_dir, "OpenEXR/OpenEXR.Target.cs", "NotAModule")
        write_descriptor(thirdparty_dir, "OpenEXR/OpenEXR.cs", "AlsoNot")
        assert scan(thirdparty_dir, "OpenEXR") == set()

    def test_files_without_declaration_contribute_nothing(self, thirdparty_dir, write_descriptor):
        (thirdparty_dir / "OpenEXRNotes.Build.cs").write_text("nothing here\n")
        write_descriptor(thirdparty_dir, "OpenEXR.Build.cs", "UEOpenExr")
        assert module_names(scan(thirdparty_dir, "OpenEXR")) == ("UEOpenExr",)

    def test_duplicate_module_names_collapse(self, thirdparty_dir, write_descriptor):
        write_descriptor(thirdparty_dir, "v1/OpenEXR.Build.cs", "UEOpenExr")
        write_descriptor(thirdparty_dir, "v2/OpenEXR.Build.cs", "UEOpenExr")

        result = scan(thirdparty_dir, "OpenEXR")

        assert len(result) == 1
        (descriptor,) = result
        # Sorted traversal keeps the first path
        assert descriptor.source_path == thirdparty_dir / "v1" / "OpenEXR.Build.cs"

    def test_scan_does_not_modify_tree(self, thirdparty_dir, write_descriptor):
        write_descriptor(thirdparty_dir, "OpenEXR/OpenEXR.Build.cs", "UEOpenExr")
        before = sorted(p.relative_to(thirdparty_dir) for p in thirdparty_dir.rglob("*"))

        scan(thirdparty_dir, "OpenEXR")

        after = sorted(p.relative_to(thirdparty_dir) for p in thirdparty_dir.rglob("*"))
        assert before == after


class TestScanModules:
    """Union over case-variant prefixes."""

    def test_union_of_prefix_variants(self, thirdparty_dir, write_descriptor):
        write_descriptor(thirdparty_dir, "OpenEXR/OpenEXR.Build.cs", "UEOpenExr")
        write_descriptor(thirdparty_dir, "OpenExr/OpenExrRTTI.Build.cs", "UEOpenExrRTTI")

        upper = {d.name for d in scan(thirdparty_dir, "OpenEXR")}
        lower = {d.name for d in scan(thirdparty_dir, "OpenExr")}
        combined = {d.name for d in scan_modules(thirdparty_dir, ["OpenEXR", "OpenExr"])}

        assert combined == upper | lower
        assert "UEOpenExr" in combined
        assert "UEOpenExrRTTI" in combined

    def test_duplicates_across_variants_collapse(self, thirdparty_dir, write_descriptor):
        write_descriptor(thirdparty_dir, "a/OpenEXR.Build.cs", "UEOpenExr")
        write_descriptor(thirdparty_dir, "b/OpenExr.Build.cs", "UEOpenExr")

        result = scan_modules(thirdparty_dir, ["OpenEXR", "OpenExr"])

        assert len(result) == 1
        (descriptor,) = result
        assert descriptor.source_path == thirdparty_dir / "a" / "OpenEXR.Build.cs"

    def test_missing_root(self, tmp_path):
        assert scan_modules(tmp_path / "nope", ["OpenEXR", "OpenExr"]) == set()

    def test_module_names_sorted_unique(self):
        from omniresolve.models import ModuleDescriptor

        descriptors = [
            ModuleDescriptor("Zeta", Path("z")),
            ModuleDescriptor("Alpha", Path("a")),
            ModuleDescriptor("Alpha", Path("b")),
        ]
        assert module_names(descriptors) == ("Alpha", "Zeta")
