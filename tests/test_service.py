import pytest

from pdf_search import cli
from pdf_search.app import DEFAULT_CONFIG, apply_env, build_service

CONFIG_YAML = """\
collection: test-docs
store:
  backend: memory
embedding:
  backend: hashing
  dim: 128
doc2query:
  backend: simple
  count: 2
logging:
  level: WARNING
"""


@pytest.fixture
def service():
    cfg = apply_env(DEFAULT_CONFIG, {})
    cfg["store"]["backend"] = "memory"
    return build_service(cfg)


@pytest.fixture
def pdf_dir(tmp_path, pdf_bytes):
    d = tmp_path / "pdfs"
    d.mkdir()
    (d / "b.pdf").write_bytes(pdf_bytes(["Cats and dogs are lovely."]))
    (d / "a.PDF").write_bytes(pdf_bytes(["Stock markets fell sharply today."]))
    (d / "notes.txt").write_text("not a pdf", encoding="utf-8")
    (d / "nested").mkdir()
    (d / "nested" / "c.pdf").write_bytes(pdf_bytes(["Hidden away."]))
    return d


def test_index_folder_processes_top_level_pdfs(service, pdf_dir):
    report = service.index_folder(pdf_dir)
    assert (report.processed, report.succeeded, report.failed) == (2, 2, 0)
    assert [d["file"] for d in report.details] == ["a.PDF", "b.pdf"]
    # one chunk plus three simple questions each
    assert all(d["records"] == 4 for d in report.details)

    hits = service.search("cats", 3)
    assert hits
    assert {h.metadata["filename"] for h in hits} <= {"a.PDF", "b.pdf"}


def test_bad_file_does_not_stop_the_folder(service, pdf_dir):
    (pdf_dir / "broken.pdf").write_bytes(b"%PDF-1.4 garbage")
    report = service.index_folder(pdf_dir)
    assert report.processed == 3
    assert report.succeeded == 2
    assert report.failed == 1
    failed = [d for d in report.details if d["status"] == "error"]
    assert failed[0]["file"] == "broken.pdf"


def test_missing_folder_and_file(service, tmp_path):
    with pytest.raises(FileNotFoundError):
        service.index_folder(tmp_path / "nope")
    with pytest.raises(FileNotFoundError):
        service.index_file(tmp_path / "nope.pdf")


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    for var in ("OPENAI_API_KEY", "CHROMA_URL", "COLLECTION_NAME", "EMBED_BACKEND", "DOC2QUERY_COUNT"):
        monkeypatch.delenv(var, raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


def test_cli_index_and_search(config_file, pdf_dir, capsys):
    assert cli.main(["--config", str(config_file), "index", "--dir", str(pdf_dir)]) == 0
    out = capsys.readouterr().out
    assert "Files processed=2, succeeded=2, failed=0" in out

    # memory store is per process, so a fresh CLI run sees an empty index
    assert cli.main(["--config", str(config_file), "search", "--q", "cats", "--topK", "3"]) == 0
    assert "No results." in capsys.readouterr().out


def test_cli_index_reports_failures(config_file, pdf_dir, capsys):
    (pdf_dir / "broken.pdf").write_bytes(b"not a pdf at all")
    assert cli.main(["--config", str(config_file), "index", "--dir", str(pdf_dir), "--no-doc2query"]) == 1
    assert "failed=1" in capsys.readouterr().out


def test_cli_missing_dir(config_file, tmp_path):
    assert cli.main(["--config", str(config_file), "index", "--dir", str(tmp_path / "none")]) == 2


def test_cli_empty_dir(config_file, tmp_path, capsys):
    empty = tmp_path / "empty"
    empty.mkdir()
    assert cli.main(["--config", str(config_file), "index", "--dir", str(empty)]) == 0
    assert "No PDFs found" in capsys.readouterr().out


def test_cli_search_prints_results(config_file, monkeypatch, capsys):
    from pdf_search.index.schema import SearchResult

    class StubService:
        def search(self, q, k):
            return [SearchResult(id="1", text="x" * 500, score=0.5, metadata={"filename": "a.pdf", "page": 2})]

    monkeypatch.setattr(cli, "build_service", lambda cfg: StubService())
    assert cli.main(["--config", str(config_file), "search", "--q", "cats"]) == 0
    out = capsys.readouterr().out
    assert "#1 score=0.5000 file=a.pdf page=2" in out
    assert "x" * 400 + "…" in out
    assert "x" * 401 not in out


def test_cli_blank_query_and_flag_clash(config_file):
    assert cli.main(["--config", str(config_file), "search", "--q", "  "]) == 2
    assert cli.main(["--config", str(config_file), "-v", "-q", "search", "--q", "x"]) == 2


def test_cli_invalid_config(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("store: [unclosed", encoding="utf-8")
    assert cli.main(["--config", str(bad), "search", "--q", "x"]) == 2


def test_cli_reset_cache(config_file, tmp_path, capsys):
    assert cli.main(["--config", str(config_file), "reset-cache"]) == 0
    assert "test-docs" in capsys.readouterr().out
