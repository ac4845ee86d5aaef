import base64

import pytest

from conftest import SECRET
from tlsa_ctl.keyfile import read_tsig_keys
from tlsa_ctl.models import FileAccessError, KeyFileSyntaxError, TsigKey, UnexpectedRecordError

OTHER_SECRET = base64.b64encode(b"another shared secret").decode("ascii")


def test_reads_dnssec_keygen_output(key_file):
    assert read_tsig_keys(key_file) == [TsigKey(name="example.com.", algorithm=163, secret=SECRET)]


def test_keeps_file_order_and_accepts_ttl_and_parentheses(write_file):
    path = write_file(
        "multi.key",
        f"update.example.com. 3600 IN KEY 512 3 157 {SECRET}\n"
        "\n"
        f"xfer.example.net. IN 300 KEY 512 3 165 (\n    {OTHER_SECRET} ) ; second key\n",
    )
    keys = read_tsig_keys(path)
    assert [(key.name, key.algorithm) for key in keys] == [("update.example.com.", 157), ("xfer.example.net.", 165)]
    assert keys[1].secret == OTHER_SECRET


def test_empty_file_yields_no_keys(write_file):
    assert read_tsig_keys(write_file("empty.key", "")) == []


def test_comment_only_file_yields_no_keys(write_file):
    assert read_tsig_keys(write_file("comment.key", "; nothing here\n")) == []


def test_non_internet_class_is_rejected(write_file):
    path = write_file("chaos.key", f"example.com. CH KEY 512 3 163 {SECRET}\n")
    with pytest.raises(UnexpectedRecordError, match="class CH"):
        read_tsig_keys(path)


def test_other_record_types_are_rejected(write_file):
    path = write_file(
        "mixed.key",
        f"example.com. IN KEY 512 3 163 {SECRET}\nhost.example.com. IN A 192.0.2.1\n",
    )
    with pytest.raises(UnexpectedRecordError, match="type A"):
        read_tsig_keys(path)


def test_truncated_record(write_file):
    with pytest.raises(KeyFileSyntaxError):
        read_tsig_keys(write_file("short.key", "example.com. IN KEY 512 3\n"))


def test_invalid_secret(write_file):
    with pytest.raises(KeyFileSyntaxError):
        read_tsig_keys(write_file("secret.key", "example.com. IN KEY 512 3 163 not*base64\n"))


def test_missing_file(tmp_path):
    with pytest.raises(FileAccessError, match="nope.key"):
        read_tsig_keys(tmp_path / "nope.key")
