import pytest

from minicore.shell import (
    BackCmd,
    ExecCmd,
    ListCmd,
    PipeCmd,
    RedirCmd,
    RedirMode,
    ShellSyntaxError,
    parse_command,
    split_cd,
    tokenize,
)


def test_tokenize_words_and_operators():
    assert tokenize("echo hi>>out | wc") == ["echo", "hi", ">>", "out", "|", "wc"]


def test_tokenize_all_symbols():
    assert tokenize("(a);b&<c>d") == ["(", "a", ")", ";", "b", "&", "<", "c", ">", "d"]


def test_tokenize_whitespace_only():
    assert tokenize(" \t\r\n\v") == []


def test_simple_exec():
    assert parse_command("echo hello world\n") == ExecCmd(["echo", "hello", "world"])


def test_empty_line_is_empty_exec():
    assert parse_command("") == ExecCmd([])


def test_redirections_wrap_in_order():
    cmd = parse_command("cat < in > out")
    assert cmd == RedirCmd(
        RedirCmd(ExecCmd(["cat"]), "in", RedirMode.READ, 0),
        "out",
        RedirMode.TRUNCATE,
        1,
    )


def test_append_redirection():
    cmd = parse_command("echo x >> log")
    assert cmd == RedirCmd(ExecCmd(["echo", "x"]), "log", RedirMode.APPEND, 1)


def test_pipe_is_right_nested():
    cmd = parse_command("a | b | c")
    assert cmd == PipeCmd(ExecCmd(["a"]), PipeCmd(ExecCmd(["b"]), ExecCmd(["c"])))


def test_list_and_background():
    cmd = parse_command("a ; b &")
    assert cmd == ListCmd(ExecCmd(["a"]), BackCmd(ExecCmd(["b"])))


def test_block_with_redirection():
    cmd = parse_command("(a; b) > f")
    assert cmd == RedirCmd(ListCmd(ExecCmd(["a"]), ExecCmd(["b"])), "f", RedirMode.TRUNCATE, 1)


def test_background_followed_by_word_is_leftover():
    with pytest.raises(ShellSyntaxError, match="leftovers: b"):
        parse_command("a & b")


def test_missing_redirection_file():
    with pytest.raises(ShellSyntaxError, match="missing file for redirection"):
        parse_command("echo >")


def test_missing_close_paren():
    with pytest.raises(ShellSyntaxError, match="missing \\)"):
        parse_command("(a")


def test_unbalanced_close_paren():
    with pytest.raises(ShellSyntaxError, match="leftovers"):
        parse_command("a )")


def test_too_many_args():
    assert parse_command(" ".join(["w"] * 9)) == ExecCmd(["w"] * 9)
    with pytest.raises(ShellSyntaxError, match="too many args"):
        parse_command(" ".join(["w"] * 10))


def test_split_cd():
    assert split_cd("cd /tmp\n") == "/tmp"
    assert split_cd("echo cd\n") is None
    assert split_cd("cd \n") == ""