from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from hashsweep.errors import HashListError
from hashsweep.hashlist import load_known_hashes

H1 = "44d88612fea8a8f36de82e1278abb02f"
H2 = "900150983cd24fb0d6963f7d28e17f72"
H3 = "d41d8cd98f00b204e9800998ecf8427e"


def test_overlapping_lists_count_distinct_digests(tmp_path: Path) -> None:
    (tmp_path / "a.md5").write_text(f"{H1}\n{H2}\n", encoding="utf-8")
    (tmp_path / "b.md5").write_text(f"{H2}\n{H3}\n{H1}\n", encoding="utf-8")
    loaded = load_known_hashes(tmp_path)
    assert len(loaded.known) == 3
    assert set(loaded.known) == {H1, H2, H3}
    assert [p.name for p in loaded.files] == ["a.md5", "b.md5"]
    assert loaded.known.match(H3) == "b"
    assert loaded.known.match(H1) == "a"


def test_wrong_length_lines_are_skipped(tmp_path: Path) -> None:
    lines = [
        H1,
        "  " + H2 + "  ",
        H3[:31],
        H3 + "0",
        "",
        "# comment line",
        f"{H3} name",
    ]
    (tmp_path / "list.md5").write_text("\n".join(lines) + "\n", encoding="utf-8")
    loaded = load_known_hashes(tmp_path)
    assert set(loaded.known) == {H1, H2}
    assert all(len(d) == 32 for d in loaded.known)


def test_suffix_match_is_case_insensitive_and_filters_other_files(tmp_path: Path) -> None:
    (tmp_path / "UPPER.MD5").write_text(H1 + "\n", encoding="utf-8")
    (tmp_path / "notes.txt").write_text(H2 + "\n", encoding="utf-8")
    loaded = load_known_hashes(tmp_path)
    assert H1 in loaded.known
    assert H2 not in loaded.known


def test_digests_are_normalized_to_lowercase(tmp_path: Path) -> None:
    (tmp_path / "list.md5").write_text(H1.upper() + "\r\n", encoding="utf-8")
    loaded = load_known_hashes(tmp_path)
    assert list(loaded.known) == [H1]
    assert H1.upper() in loaded.known


def test_unreadable_list_is_reported_and_loading_continues(tmp_path: Path) -> None:
    (tmp_path / "broken.md5").mkdir()
    (tmp_path / "good.md5").write_text(H1 + "\n", encoding="utf-8")
    loaded = load_known_hashes(tmp_path)
    assert H1 in loaded.known
    assert [f.path.name for f in loaded.failed] == ["broken.md5"]
    assert [p.name for p in loaded.files] == ["good.md5"]


def test_missing_directory_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(HashListError) as excinfo:
        load_known_hashes(tmp_path / "nope")
    assert excinfo.value.path == tmp_path / "nope"


def test_path_that_is_a_file_is_fatal(tmp_path: Path) -> None:
    target = tmp_path / "bad.md5"
    target.write_text(H1 + "\n", encoding="utf-8")
    with pytest.raises(HashListError):
        load_known_hashes(target)


def test_empty_directory_gives_empty_set(tmp_path: Path) -> None:
    loaded = load_known_hashes(tmp_path)
    assert len(loaded.known) == 0
    assert loaded.files == []


def test_extra_hashes_are_named_and_length_checked(tmp_path: Path) -> None:
    (tmp_path / "list.md5").write_text(H2 + "\n", encoding="utf-8")
    loaded = load_known_hashes(
        tmp_path, extra={"eicar_test_file": H1.upper(), "short": "abc", "dup": H2}
    )
    assert len(loaded.known) == 2
    assert loaded.known.match(H1) == "eicar_test_file"
    assert loaded.known.match(H2) == "list"


def test_sha256_lists_use_64_char_lines(tmp_path: Path) -> None:
    sha = "a" * 64
    (tmp_path / "list.sha256").write_text(f"{sha}\n{H1}\n", encoding="utf-8")
    loaded = load_known_hashes(tmp_path, suffixes=[".sha256"], algorithm="sha256")
    assert set(loaded.known) == {sha}
