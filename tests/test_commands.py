import io
import os

from minicore.commands import (
    FileType,
    cat,
    cat_main,
    echo_main,
    fmtname,
    ln_main,
    ls,
    ls_main,
    mkdir_main,
    rm_main,
)


def test_fmtname_pads_short_names():
    name = fmtname("a/b/cat")
    assert len(name) == 14
    assert name.rstrip() == "cat"


def test_fmtname_keeps_long_names():
    assert fmtname("dir/12345678901234567") == "12345678901234567"


def test_cat_copies_bytes():
    data = bytes(range(256)) * 5
    out = io.BytesIO()
    cat(io.BytesIO(data), out)
    assert out.getvalue() == data


def test_cat_main_cannot_open(tmp_path, capsys):
    missing = str(tmp_path / "none")
    assert cat_main([missing]) == 1
    assert capsys.readouterr().err == f"cat: cannot open {missing}\n"


def test_echo(capsys):
    assert echo_main(["hello", "world"]) == 0
    assert capsys.readouterr().out == "hello world\n"


def test_echo_no_args(capsys):
    echo_main([])
    assert capsys.readouterr().out == ""


def test_ln_creates_link(tmp_path):
    old = tmp_path / "old"
    old.write_text("x")
    new = tmp_path / "new"
    assert ln_main([str(old), str(new)]) == 0
    assert os.path.samefile(old, new)


def test_ln_usage(capsys):
    assert ln_main(["only"]) == 1
    assert capsys.readouterr().err == "Usage: ln old new\n"


def test_ln_failure_message(tmp_path, capsys):
    a, b = str(tmp_path / "a"), str(tmp_path / "b")
    assert ln_main([a, b]) == 0
    assert capsys.readouterr().err == f"link {a} {b}: failed\n"


def test_mkdir_and_rm(tmp_path):
    d = tmp_path / "d"
    assert mkdir_main([str(d)]) == 0
    assert d.is_dir()
    f = tmp_path / "f"
    f.write_text("x")
    assert rm_main([str(f), str(d)]) == 0
    assert not d.exists() and not f.exists()


def test_mkdir_failure_stops(tmp_path, capsys):
    existing = tmp_path / "e"
    existing.mkdir()
    later = tmp_path / "later"
    mkdir_main([str(existing), str(later)])
    assert capsys.readouterr().err == f"mkdir: {existing} failed to create\n"
    assert not later.exists()


def test_rm_failure_message(tmp_path, capsys):
    missing = str(tmp_path / "none")
    rm_main([missing])
    assert capsys.readouterr().err == f"rm: {missing} failed to delete\n"


def test_ls_file(tmp_path):
    f = tmp_path / "data"
    f.write_bytes(b"12345")
    out = io.StringIO()
    ls(str(f), out)
    parts = out.getvalue().split()
    assert parts[0] == "data"
    assert parts[1] == str(int(FileType.FILE))
    assert parts[3] == str(len(b"12345"))


def test_ls_directory(tmp_path):
    (tmp_path / "f").write_text("abc")
    (tmp_path / "sub").mkdir()
    out = io.StringIO()
    ls(str(tmp_path), out)
    rows = {line.split()[0]: line.split() for line in out.getvalue().splitlines()}
    assert set(rows) == {".", "..", "f", "sub"}
    assert rows["sub"][1] == str(int(FileType.DIR))
    assert rows["f"][3] == "3"


def test_ls_main_missing(tmp_path, capsys):
    missing = str(tmp_path / "none")
    assert ls_main([missing]) == 0
    assert capsys.readouterr().err == f"ls: cannot open {missing}\n"