import types

from pdf_search.ingest.chunker import SentenceChunker

SENTENCE = "The quick brown fox jumps over the lazy dog."


def test_three_tiny_sentences_merge_into_one_chunk():
    chunks = list(SentenceChunker(target_min_chars=1, target_max_chars=1000).chunk("A. B. C.", 1))
    assert [c.text for c in chunks] == ["A. B. C."]
    assert chunks[0].page_number == 1


def test_blank_page_yields_nothing():
    ch = SentenceChunker()
    assert list(ch.chunk("", 1)) == []
    assert list(ch.chunk("   \n\t  ", 3)) == []


def test_single_sentence_is_one_chunk():
    chunks = list(SentenceChunker().chunk("  Only one sentence here.  ", 7))
    assert len(chunks) == 1
    assert chunks[0].text == "Only one sentence here."
    assert chunks[0].page_number == 7


def test_text_without_boundaries_is_one_sentence():
    text = "no punctuation at all just words running on"
    assert SentenceChunker().split_sentences(text) == [text]


def test_default_chunks_respect_max_and_keep_page():
    text = " ".join([SENTENCE] * 120)
    chunks = list(SentenceChunker().chunk(text, 4))
    assert len(chunks) > 1
    assert all(len(c.text) <= 1200 for c in chunks)
    assert all(c.page_number == 4 for c in chunks)
    # nothing lost, nothing duplicated
    assert sum(c.text.count("fox") for c in chunks) == 120


def test_oversized_sentence_becomes_its_own_chunk():
    big = "Word " * 300 + "end."
    text = f"Short one. {big} Short two."
    chunks = [c.text for c in SentenceChunker().chunk(text, 1)]
    assert big.strip() in chunks
    for c in chunks:
        assert len(c) <= 1200 or c == big.strip()


def test_undersized_neighbours_are_merged_up_to_min():
    ch = SentenceChunker(target_min_chars=100, target_max_chars=200)
    pieces = ["a" * 50, "b" * 50, "c" * 150]
    assert ch._merge_small(pieces) == ["a" * 50 + " " + "b" * 50, "c" * 150]


def test_short_sentences_pack_within_max():
    ch = SentenceChunker(target_min_chars=100, target_max_chars=200)
    sentences = [f"Sentence {w} is short." for w in ("alpha", "beta", "gamma", "delta", "omega", "kappa")] * 3
    chunks = [c.text for c in ch.chunk(" ".join(sentences), 1)]
    assert len(chunks) > 1
    assert all(len(c) <= 200 for c in chunks)
    assert " ".join(chunks) == " ".join(sentences)


def test_config_is_clamped_to_floors():
    ch = SentenceChunker(target_min_chars=10, target_max_chars=20)
    assert ch.target_min_chars == 100
    assert ch.target_max_chars == 200
    ch = SentenceChunker(target_min_chars=500, target_max_chars=550)
    assert ch.target_max_chars == 600


def test_chunk_is_lazy_and_restartable():
    ch = SentenceChunker()
    text = " ".join([SENTENCE] * 60)
    gen = ch.chunk(text, 2)
    assert isinstance(gen, types.GeneratorType)
    assert list(gen) == list(ch.chunk(text, 2))
