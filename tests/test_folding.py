from condenser.adapters import fold_document
from condenser.document import TextDocument
from condenser.scan import HighlightSpan, LineRange


def make_document() -> TextDocument:
    return TextDocument.from_lines(["foo", "bar", "baz foo", "qux", "foo end"])


def test_collapsed_ranges_keep_header_lines() -> None:
    rows = fold_document(
        make_document(),
        [LineRange(0, 1), LineRange(2, 3)],
        [HighlightSpan(0, 0, 3), HighlightSpan(2, 4, 7), HighlightSpan(4, 0, 3)],
    )

    assert [row.index for row in rows] == [0, 2, 4]
    assert [row.hidden for row in rows] == [1, 1, 0]
    assert rows[1].text == "baz foo"
    assert rows[1].highlights == ((4, 7),)


def test_expanded_view_shows_every_line() -> None:
    rows = fold_document(
        make_document(),
        [LineRange(0, 1), LineRange(2, 3)],
        [HighlightSpan(2, 4, 7)],
        collapsed=False,
    )

    assert [row.index for row in rows] == [0, 1, 2, 3, 4]
    assert all(row.hidden == 0 for row in rows)
    assert rows[2].highlights == ((4, 7),)


def test_no_ranges_renders_document_verbatim() -> None:
    rows = fold_document(make_document(), ())

    assert [row.text for row in rows] == ["foo", "bar", "baz foo", "qux", "foo end"]


def test_leading_block_hides_everything_before_first_match() -> None:
    document = TextDocument.from_lines([f"l{index}" for index in range(6)])

    rows = fold_document(document, [LineRange(0, 3), LineRange(4, 5)])

    assert [(row.index, row.hidden) for row in rows] == [(0, 3), (4, 1)]
