"""Tests for passage building and the context budget."""

from lexlocal.config import Config
from lexlocal.context import ELLIPSIS, PASSAGE_SEPARATOR, ContextAssembler, truncate
from lexlocal.schemas import CandidateArticle, CaseMatch, CourtCase, SourceType


def article(i, text="Tekst.", title="Art. 1", law="Arbeidswet"):
    return CandidateArticle(
        article_id=i,
        numac=f"19710316{i:02d}",
        article_title=title,
        article_text=text,
        law_title=law,
    )


def match(i, text="Overweging."):
    case = CourtCase(
        case_id=i,
        case_number=f"ECLI:BE:CASS:2019:ARR.{i}",
        court="Hof van Cassatie",
        decision_date="2019-03-15",
    )
    return CaseMatch(case=case, text=text, similarity=0.9)


def test_truncate_adds_ellipsis_only_when_cut():
    assert truncate("kort", 10) == "kort"
    assert truncate("x" * 10, 10) == "x" * 10
    assert truncate("x" * 11, 10) == "x" * 10 + ELLIPSIS
    assert truncate(None, 5) == ""


def test_statute_passage_header_and_excerpt(tmp_path):
    assembler = ContextAssembler(Config(db_path=tmp_path / "x.db"), "nl")
    long_text = "a" * 600

    passage = assembler.statute_passage(article(2, text=long_text), 500)

    assert passage.source_type is SourceType.STATUTE
    assert passage.header == "Wet: Arbeidswet\nArtikel: Art. 1\nNUMAC: 1971031602"
    assert passage.text == "a" * 500 + "..."
    assert passage.render().startswith("Wet: Arbeidswet\n")


def test_french_labels_and_unknown_law(tmp_path):
    assembler = ContextAssembler(Config(db_path=tmp_path / "x.db"), "fr")

    passage = assembler.statute_passage(article(1, law=None), 500)

    assert passage.header.startswith("Loi: Loi inconnue\nArticle: Art. 1")


def test_case_passage_header(tmp_path):
    assembler = ContextAssembler(Config(db_path=tmp_path / "x.db"), "nl")

    passage = assembler.case_passage(match(7), 1500)

    assert passage.header == "[RECHTSPRAAK ECLI:BE:CASS:2019:ARR.7] Hof van Cassatie, 2019-03-15"
    assert passage.source_type is SourceType.CASE_LAW


def test_only_best_statute_goes_in_by_default(tmp_path):
    assembler = ContextAssembler(Config(db_path=tmp_path / "x.db"), "nl")

    passages = assembler.statute_passages([article(1), article(2), article(3)])

    assert len(passages) == 1
    assert passages[0].header.endswith("NUMAC: 1971031601")


def test_statute_context_size_is_configurable(tmp_path):
    cfg = Config(db_path=tmp_path / "x.db", statute_context_articles=3)
    assembler = ContextAssembler(cfg, "nl")

    assert len(assembler.statute_passages([article(i) for i in range(1, 6)])) == 3


def test_combined_passages_are_tagged_statutes_first(tmp_path):
    assembler = ContextAssembler(Config(db_path=tmp_path / "x.db"), "nl")

    passages = assembler.combined_passages([article(1), article(2), article(3)], [match(1), match(2), match(3)])

    assert [p.source_type for p in passages] == [
        SourceType.STATUTE, SourceType.STATUTE, SourceType.CASE_LAW, SourceType.CASE_LAW,
    ]
    assert passages[0].header.startswith("[STATUTE] Wet:")
    assert passages[2].header.startswith("[CASE LAW] [RECHTSPRAAK")


def test_combined_excerpt_limits(tmp_path):
    assembler = ContextAssembler(Config(db_path=tmp_path / "x.db"), "nl")

    passages = assembler.combined_passages([article(1, text="s" * 2000)], [match(1, text="c" * 2000)])

    assert passages[0].text == "s" * 800 + "..."
    assert passages[1].text == "c" * 1000 + "..."


def test_assemble_joins_with_separator(tmp_path):
    assembler = ContextAssembler(Config(db_path=tmp_path / "x.db"), "nl")
    passages = [assembler.statute_passage(article(i), 500) for i in (1, 2)]

    context, kept = assembler.assemble(passages)

    assert kept == 2
    assert context == passages[0].render() + PASSAGE_SEPARATOR + passages[1].render()


def test_assemble_never_exceeds_budget_or_splits_a_passage(tmp_path):
    cfg = Config(db_path=tmp_path / "x.db", context_char_budget=300)
    assembler = ContextAssembler(cfg, "nl")
    passages = [assembler.statute_passage(article(i, text="w" * 100), 500) for i in range(1, 5)]

    context, kept = assembler.assemble(passages)

    assert len(context) <= 300
    assert kept == context.count("NUMAC:")
    assert kept < 4
    for rendered in context.split(PASSAGE_SEPARATOR):
        assert rendered in [p.render() for p in passages]


def test_assemble_keeps_nothing_when_first_passage_is_too_big(tmp_path):
    cfg = Config(db_path=tmp_path / "x.db", context_char_budget=20)
    assembler = ContextAssembler(cfg, "nl")

    context, kept = assembler.assemble([assembler.statute_passage(article(1, text="x" * 200), 500)])

    assert (context, kept) == ("", 0)
