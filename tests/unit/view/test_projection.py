from __future__ import annotations

import pytest

from search_filter.view import RemovedLine, parse_filters, project, render

RESULT_LINES = [
    "dir1/fileA.txt:",
    "  4: line text",
    "  10: another line",
    "  17: something else",
    "",
    "dir1/fileB.txt:",
    "  1: file B line",
    "  2: more file B",
    "",
    "dir2/fileA.txt:",
    "  1: dir 2 file A line",
]


def _retained_numbers(filter_lines: list[str], lines: list[str] | None = None) -> list[int]:
    result = project(lines if lines is not None else RESULT_LINES, parse_filters(filter_lines))
    return list(result.retained_line_numbers)


def test_empty_filters_are_identity_projection() -> None:
    result = project(RESULT_LINES, ())
    assert list(result.retained_lines) == RESULT_LINES
    assert result.removed_lines == ()
    assert render(result) == "\n".join(RESULT_LINES)


def test_filename_exclude_hides_whole_groups_and_their_separators() -> None:
    result = project(RESULT_LINES, parse_filters(["file-dir1"]))
    assert list(result.retained_lines) == ["dir2/fileA.txt:", "  1: dir 2 file A line"]
    assert [record.line for record in result.removed_lines] == list(range(9))


def test_filename_include_keeps_matching_groups() -> None:
    assert _retained_numbers(["file+dir1"]) == [0, 1, 2, 3, 4, 5, 6, 7, 8]


def test_content_include_keeps_headers_of_groups_with_results() -> None:
    assert _retained_numbers(["+line"]) == [0, 1, 2, 4, 5, 6, 8, 9, 10]


def test_content_filters_are_anded_and_orphan_headers_retracted() -> None:
    result = project(RESULT_LINES, parse_filters(["+line", "+file"]))
    assert list(result.retained_lines) == [
        "dir1/fileB.txt:",
        "  1: file B line",
        "",
        "dir2/fileA.txt:",
        "  1: dir 2 file A line",
    ]


def test_content_exclude() -> None:
    assert _retained_numbers(["-line"]) == [0, 3, 4, 5, 7, 8]


def test_header_followed_by_header_is_retracted() -> None:
    lines = ["a.txt:", "b.txt:", "  1: x"]
    assert _retained_numbers(["+x"], lines) == [1, 2]


def test_trailing_orphan_header_is_retracted_with_blank_lines() -> None:
    lines = ["a.txt:", "  1: yes", "", "b.txt:", "  1: no", "", ""]
    assert _retained_numbers(["+yes"], lines) == [0, 1, 2]


def test_non_empty_other_line_confirms_group() -> None:
    lines = ["a.txt:", "context text", "b.txt:"]
    assert _retained_numbers(["+zzz"], lines) == [0, 1]


def test_non_empty_other_line_survives_inside_hidden_group() -> None:
    lines = ["a.txt:", "  1: foo", "context", "b.txt:", "  2: bar"]
    assert _retained_numbers(["file-a.txt"], lines) == [2, 3, 4]


def test_all_groups_hidden_yields_empty_view() -> None:
    result = project(RESULT_LINES, parse_filters(["file+nothing"]))
    assert result.retained_lines == ()
    assert render(result) == ""
    assert len(result.removed_lines) == len(RESULT_LINES)


def test_removed_line_offsets_include_separators() -> None:
    result = project(RESULT_LINES, parse_filters(["file-dir1"]))
    assert result.removed_lines[:3] == (
        RemovedLine(line=0, offset=0, length=15),
        RemovedLine(line=1, offset=16, length=14),
        RemovedLine(line=2, offset=31, length=18),
    )
    joined = "\n".join(RESULT_LINES)
    for record in result.removed_lines:
        assert joined[record.offset : record.offset + record.length] == RESULT_LINES[record.line]


@pytest.mark.parametrize(
    "filter_lines",
    [
        [],
        ["file-dir1"],
        ["file+dir1"],
        ["+line"],
        ["+line", "+file"],
        ["-line", "file-dir2"],
        ["file+nothing"],
        ["+2"],
    ],
)
def test_projection_partitions_every_line(filter_lines: list[str]) -> None:
    result = project(RESULT_LINES, parse_filters(filter_lines))
    retained = list(result.retained_line_numbers)
    removed = [record.line for record in result.removed_lines]

    assert len(retained) + len(removed) == len(RESULT_LINES)
    assert sorted(retained + removed) == list(range(len(RESULT_LINES)))
    assert removed == sorted(set(removed))
    assert list(result.retained_lines) == [RESULT_LINES[i] for i in retained]
