"""
Tests for workerpack.packager: worker script and zip archive output.
"""

import zipfile

from workerpack.packager import SCRIPT_HEADER, package_worker


class TestPackageWorker:
    """Tests for package_worker()."""

    def test_writes_script_with_header(self, tmp_path):
        result = package_worker("export default {};", tmp_path / "output")
        assert result.script_path == tmp_path / "output" / "worker.js"
        assert result.script_path.read_text(encoding="utf-8") == "// @ts-nocheck\nexport default {};"
        assert result.size == len(SCRIPT_HEADER) + len("export default {};")

    def test_archive_has_single_deflated_entry(self, tmp_path):
        result = package_worker("export default {};", tmp_path)
        with zipfile.ZipFile(result.archive_path) as zf:
            infos = zf.infolist()
            assert [i.filename for i in infos] == ["_worker.js"]
            assert infos[0].compress_type == zipfile.ZIP_DEFLATED
            assert zf.read("_worker.js").decode("utf-8") == "// @ts-nocheck\nexport default {};"

    def test_creates_nested_output_dir(self, tmp_path):
        output = tmp_path / "a" / "b"
        package_worker("x", output)
        assert (output / "worker.js").is_file()
        assert (output / "worker.zip").is_file()

    def test_custom_names(self, tmp_path):
        result = package_worker("x", tmp_path, script_name="w.js", archive_name="w.zip", archive_entry="index.js")
        assert result.script_path.name == "w.js"
        with zipfile.ZipFile(result.archive_path) as zf:
            assert zf.namelist() == ["index.js"]

    def test_overwrites_existing_output(self, tmp_path):
        package_worker("first", tmp_path)
        result = package_worker("second", tmp_path)
        assert result.script_path.read_text(encoding="utf-8").endswith("second")
        with zipfile.ZipFile(result.archive_path) as zf:
            assert zf.namelist() == ["_worker.js"]
