import re

import pytest

from core.html.chunker import MAX_CHUNK_SIZE, chunk_text, chunk_unit, fixed_slices, strip_tags
from core.models import TranslatableUnit


def _sentences(count: int, length: int = 200) -> str:
    sentences = []
    for i in range(count):
        body = f"Sentence {i} " + "x" * (length - len(f"Sentence {i} ") - 1)
        sentences.append(body + ".")
    return " ".join(sentences)


def test_short_text_is_single_chunk():
    assert chunk_text("hello world", 100) == ["hello world"]
    assert chunk_text("", 100) == []


def test_long_paragraph_splits_on_sentences():
    text = _sentences(25)
    assert len(text) > 4900

    chunks = chunk_text(text, MAX_CHUNK_SIZE)

    assert len(chunks) >= 2
    assert all(len(c) <= MAX_CHUNK_SIZE for c in chunks)
    # 顺序与内容不变（仅空白归一）
    assert " ".join(chunks) == text
    first_ids = [int(re.match(r"Sentence (\d+)", c).group(1)) for c in chunks]
    assert first_ids == sorted(first_ids)


def test_br_markers_are_preferred_split_points():
    parts = ["a" * 40, "b" * 40, "c" * 40]
    text = "<br>".join(parts[:2]) + "<br />" + parts[2]

    chunks = chunk_text(text, 90)

    assert chunks == [f"{parts[0]} {parts[1]}", parts[2]]


def test_escaped_br_markers_split_too():
    text = ("d" * 30) + "&lt;br&gt;" + ("e" * 30)
    assert chunk_text(text, 40) == ["d" * 30, "e" * 30]


def test_sentence_split_strips_tags():
    text = "<b>One sentence here.</b> <i>Another one follows!</i> Third? Yes."
    chunks = chunk_text(text, 30)
    assert all("<" not in c for c in chunks)
    assert "One sentence here." in chunks[0]


def test_unsplittable_part_becomes_oversized_chunk():
    token = "z" * 120
    chunks = chunk_text(f"Short one. {token}", 50)
    assert chunks == ["Short one.", token]


def test_invalid_max_size():
    with pytest.raises(ValueError):
        chunk_text("abc", 0)


def test_chunk_unit_marks_unit():
    unit = TranslatableUnit(sequence_index=3, source_markup=_sentences(20))
    chunks = chunk_unit(unit, 1000)
    assert unit.is_chunked is True
    assert len(chunks) >= 4
    assert {c.parent_unit_index for c in chunks} == {3}


def test_fixed_slices_cover_text():
    text = "0123456789" * 7
    slices = fixed_slices(text, 25)
    assert [len(s) for s in slices] == [25, 25, 20]
    assert "".join(slices) == text


def test_strip_tags_handles_escaped_tags():
    assert strip_tags("a<b>b</b>&lt;i&gt;c&lt;/i&gt;") == "abc"
