"""
Test suite for sentence-aware chunking.

Covers sentence splitting, word overlap between chunks, oversized sentences and argument validation.
"""

import pytest

from services.rag_ingest.TextChunker import chunk_content, split_sentences


class TestSplitSentences:
    def test_split_should_break_after_terminal_punctuation(self) -> None:
        assert split_sentences("Open daily. Halal meat! Delivery?  Yes.") == [
            "Open daily.",
            "Halal meat!",
            "Delivery?",
            "Yes.",
        ]

    def test_split_should_not_break_inside_numbers(self) -> None:
        assert split_sentences("Fries cost 3.50 euros. Burgers more.") == [
            "Fries cost 3.50 euros.",
            "Burgers more.",
        ]


class TestChunkContent:
    def test_chunk_should_return_empty_list_for_blank_text(self) -> None:
        assert chunk_content("") == []
        assert chunk_content("   \n\t ") == []

    def test_chunk_should_keep_short_text_in_one_chunk(self) -> None:
        text = "All our meat is halal. We are open every day."
        assert chunk_content(text, chunk_size=500, overlap=50) == [text]

    def test_chunk_should_seed_next_chunk_with_overlap_words(self) -> None:
        # Arrange
        text = "a b c. d e f. g h i."

        # Act
        chunks = chunk_content(text, chunk_size=6, overlap=2)

        # Assert
        assert chunks == ["a b c. d e f.", "e f. g h i."]
        assert chunks[1].split()[:2] == chunks[0].split()[-2:]

    def test_chunk_should_not_overlap_when_overlap_is_zero(self) -> None:
        chunks = chunk_content("a b c. d e f. g h i.", chunk_size=3, overlap=0)
        assert chunks == ["a b c.", "d e f.", "g h i."]

    def test_chunk_should_never_split_a_long_sentence(self) -> None:
        sentence = "one two three four five six seven."
        assert chunk_content(sentence, chunk_size=3, overlap=1) == [sentence]

    def test_chunk_should_cover_every_sentence_in_order(self) -> None:
        # Arrange
        sentences = [f"Sentence number {i} has five words." for i in range(40)]
        text = " ".join(sentences)

        # Act
        chunks = chunk_content(text, chunk_size=20, overlap=5)

        # Assert
        joined = " ".join(chunks)
        positions = [joined.find(sentence) for sentence in sentences]
        assert all(position >= 0 for position in positions)
        assert all(len(chunk.split()) <= 20 for chunk in chunks)
        first_chunk_with = [next(i for i, c in enumerate(chunks) if s in c) for s in sentences]
        assert first_chunk_with == sorted(first_chunk_with)

    def test_chunk_should_shrink_overlap_to_stay_within_chunk_size(self) -> None:
        # Arrange
        text = " ".join(f"w{i}a w{i}b w{i}c w{i}d w{i}e w{i}f." for i in range(4))

        # Act
        chunks = chunk_content(text, chunk_size=10, overlap=5)

        # Assert
        assert [len(chunk.split()) for chunk in chunks] == [6, 10, 10, 10]
        assert chunks[1].split()[:4] == chunks[0].split()[-4:]

    def test_chunk_should_drop_overlap_before_a_sentence_filling_the_chunk(self) -> None:
        chunks = chunk_content("a b. c d e f.", chunk_size=4, overlap=2)

        assert chunks == ["a b.", "c d e f."]

    @pytest.mark.parametrize(
        "chunk_size, overlap",
        [(0, 0), (-5, 0), (10, -1), (10, 10), (10, 15)],
    )
    def test_chunk_should_reject_invalid_sizes(self, chunk_size: int, overlap: int) -> None:
        with pytest.raises(ValueError):
            chunk_content("Some text.", chunk_size=chunk_size, overlap=overlap)
