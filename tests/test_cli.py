"""
CLI Tests - txtar create / extract / list / apply.
"""

import pytest

from txtar import Archive, EditRef, File, read, write
from txtar.cli import main


@pytest.fixture
def tree(tmp_path):
    src = tmp_path / "src"
    (src / "pkg").mkdir(parents=True)
    (src / "README.md").write_text("# demo\n")
    (src / "pkg" / "main.go").write_text("package main\n")
    (src / "logo.bin").write_bytes(b"\x89PNG\x00\xff")
    return src


class TestCreate:

    def test_create_from_directory(self, tree, tmp_path, capsys):
        out = tmp_path / "demo.txtar"
        main(["create", str(tree), "-o", str(out), "--comment", "demo archive"])

        archive = read(out)
        assert archive.preamble() == "demo archive\n"
        assert archive.names() == ["README.md", "logo.bin", "pkg/main.go"]
        assert archive.find("logo.bin").content == b"\x89PNG\x00\xff"
        assert "3 files" in capsys.readouterr().out

    def test_create_from_files(self, tree, tmp_path):
        out = tmp_path / "one.txtar"
        main(["create", str(tree / "README.md"), "-o", str(out)])
        assert out.read_text() == "-- README.md --\n# demo\n"

    def test_create_missing_input(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["create", str(tmp_path / "nope"), "-o", str(tmp_path / "x.txtar")])
        assert exc.value.code == 1
        assert "File not found" in capsys.readouterr().err

    def test_create_unwritable_output(self, tree, tmp_path, capsys):
        out = tmp_path / "missing" / "x.txtar"
        with pytest.raises(SystemExit) as exc:
            main(["create", str(tree / "README.md"), "-o", str(out)])
        assert exc.value.code == 1
        assert capsys.readouterr().err.startswith("Error:")

    def test_create_line_width(self, tree, tmp_path):
        out = tmp_path / "wide.txtar"
        (tree / "big.bin").write_bytes(bytes(range(256)))
        main(["create", str(tree / "big.bin"), "-o", str(out), "--line-width", "20"])
        body = out.read_text().split("[.base64]\n", 1)[1].splitlines()
        assert max(len(line) for line in body) == 20


class TestExtract:

    def test_extract_round_trip(self, tree, tmp_path):
        out = tmp_path / "demo.txtar"
        main(["create", str(tree), "-o", str(out)])

        dest = tmp_path / "dest"
        main(["extract", str(out), "-C", str(dest)])
        assert (dest / "README.md").read_text() == "# demo\n"
        assert (dest / "pkg" / "main.go").read_text() == "package main\n"
        assert (dest / "logo.bin").read_bytes() == b"\x89PNG\x00\xff"

    def test_extract_refuses_escape(self, tmp_path, capsys):
        archive = Archive()
        archive.add_file(File("../evil.txt", b"x\n"))
        path = tmp_path / "evil.txtar"
        write(archive, path)

        dest = tmp_path / "dest"
        dest.mkdir()
        with pytest.raises(SystemExit):
            main(["extract", str(path), "-C", str(dest)])
        assert not (tmp_path / "evil.txt").exists()
        assert "Refusing" in capsys.readouterr().err

    def test_extract_skips_edits(self, tmp_path):
        archive = Archive()
        archive.add_file(File("a.txt", b"a\n"))
        archive.add_edit(EditRef("b.txt", "base.txtar", "x\n", "y\n"))
        path = tmp_path / "edits.txtar"
        write(archive, path)

        dest = tmp_path / "dest"
        main(["extract", str(path), "-C", str(dest)])
        assert (dest / "a.txt").exists()
        assert not (dest / "b.txt").exists()

        main(["extract", str(path), "-C", str(dest), "--include-edits"])
        assert (dest / "b.txt").read_text().startswith("[edit:base.txtar:b.txt]\n")

    def test_extract_malformed(self, tmp_path, capsys):
        path = tmp_path / "bad.txtar"
        path.write_text("-- a.bin --\n[.base64]\n!!!\n")
        with pytest.raises(SystemExit) as exc:
            main(["extract", str(path), "-C", str(tmp_path / "dest")])
        assert exc.value.code == 1
        assert "line 3" in capsys.readouterr().err

    def test_extract_file_directory_conflict(self, tmp_path, capsys):
        path = tmp_path / "conflict.txtar"
        path.write_text("-- sub/x --\nhi\n-- sub --\nboom\n")
        with pytest.raises(SystemExit) as exc:
            main(["extract", str(path), "-C", str(tmp_path / "dest")])
        assert exc.value.code == 1
        assert "Cannot extract 'sub'" in capsys.readouterr().err

    def test_extract_refuses_root(self, tmp_path, capsys):
        path = tmp_path / "root.txtar"
        path.write_text("-- a/.. --\nx\n")
        dest = tmp_path / "dest"
        dest.mkdir()
        with pytest.raises(SystemExit) as exc:
            main(["extract", str(path), "-C", str(dest)])
        assert exc.value.code == 1
        assert "Refusing" in capsys.readouterr().err


class TestList:

    def test_list(self, tmp_path, capsys):
        archive = Archive()
        archive.add_file(File("a.txt", b"hello\n"))
        archive.add_file(File("b.bin", b"\x00\x01"))
        archive.add_edit(EditRef("a.txt", None, "hello", "bye"))
        path = tmp_path / "a.txtar"
        write(archive, path)

        main(["list", str(path)])
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].split() == ["plain", "6", "a.txt"]
        assert lines[1].split() == ["base64", "2", "b.bin"]
        assert lines[2].split()[0] == "edit"

    def test_list_warns_on_duplicates(self, tmp_path, capsys):
        path = tmp_path / "dup.txtar"
        path.write_text("-- a --\n1\n-- a --\n2\n")
        main(["list", str(path)])
        assert "duplicate names: a" in capsys.readouterr().err

    def test_list_size_limit(self, tmp_path, capsys):
        path = tmp_path / "a.txtar"
        path.write_text("-- a --\n" + "x" * 100 + "\n")
        with pytest.raises(SystemExit):
            main(["list", str(path), "--max-size", "10"])
        assert "exceeds maximum" in capsys.readouterr().err


class TestApply:

    def test_apply_external(self, tmp_path, capsys):
        base = Archive()
        base.add_file(File("main.go", b'println("old")\n'))
        write(base, tmp_path / "base.txtar")

        patch = Archive()
        patch.add_edit(EditRef("main.go", "base.txtar", 'println("old")', 'println("new")'))
        write(patch, tmp_path / "patch.txtar")

        out = tmp_path / "out.txtar"
        main(["apply", str(tmp_path / "patch.txtar"), "-o", str(out)])
        assert read(out).find("main.go").content == b'println("new")\n'
        assert "Wrote" in capsys.readouterr().out

    def test_apply_archive_dir(self, tmp_path):
        lib = tmp_path / "lib"
        lib.mkdir()
        base = Archive()
        base.add_file(File("f.txt", b"a\n"))
        write(base, lib / "base.txtar")

        patch = Archive()
        patch.add_edit(EditRef("f.txt", "base.txtar", "a", "b"))
        path = tmp_path / "patch.txtar"
        write(patch, path)

        main(["apply", str(path), "--archive-dir", str(lib)])
        assert read(path).find("f.txt").content == b"b\n"

    def test_apply_failure(self, tmp_path, capsys):
        patch = Archive()
        patch.add_edit(EditRef("f.txt", "missing.txtar", "a", "b"))
        path = tmp_path / "patch.txtar"
        write(patch, path)

        with pytest.raises(SystemExit) as exc:
            main(["apply", str(path)])
        assert exc.value.code == 1
        assert capsys.readouterr().err.startswith("Error:")


class TestMain:

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 0
        assert "create" in capsys.readouterr().out
