import pytest

from pdf_search.app import (
    DEFAULT_CONFIG,
    apply_env,
    build_service,
    load_config,
    make_embedder,
    make_question_generator,
    make_resolver,
    make_store,
)
from pdf_search.doc2query import LLMQuestionGenerator, SimpleQuestionGenerator
from pdf_search.embeddings import HashingEmbedder, OpenAIEmbedder
from pdf_search.errors import ConfigError
from pdf_search.store.http import ChromaHttpStore
from pdf_search.store.memory import InMemoryStore


def test_defaults_without_file():
    cfg = load_config(None, env={})
    assert cfg == apply_env(DEFAULT_CONFIG, {})
    assert cfg["collection"] == "pdf-search"
    assert cfg["doc2query"]["count"] == 3


def test_yaml_is_merged_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("collection: papers\nstore:\n  url: http://db:9000\n", encoding="utf-8")
    cfg = load_config(path, env={})
    assert cfg["collection"] == "papers"
    assert cfg["store"]["url"] == "http://db:9000"
    # untouched keys of a nested section survive
    assert cfg["store"]["api_version"] == "v1"


def test_non_mapping_yaml_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path, env={})


def test_env_overrides_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("collection: papers\n", encoding="utf-8")
    env = {
        "COLLECTION_NAME": "from-env",
        "CHROMA_URL": "http://chroma:8001",
        "DOC2QUERY_COUNT": "5",
        "OPENAI_API_KEY": "sk-test",
        "OPENAI_EMBED_MODEL": "text-embedding-3-large",
        "EMBED_MODEL": "   ",
    }
    cfg = load_config(path, env=env)
    assert cfg["collection"] == "from-env"
    assert cfg["store"]["url"] == "http://chroma:8001"
    assert cfg["doc2query"]["count"] == 5
    assert cfg["openai"]["api_key"] == "sk-test"
    assert cfg["embedding"]["model"] == "text-embedding-3-large"


def test_bad_doc2query_count_falls_back():
    assert apply_env(DEFAULT_CONFIG, {"DOC2QUERY_COUNT": "many"})["doc2query"]["count"] == 3
    assert apply_env(DEFAULT_CONFIG, {"DOC2QUERY_COUNT": "-2"})["doc2query"]["count"] == 0


def test_auto_backends_follow_api_key():
    offline = apply_env(DEFAULT_CONFIG, {})
    assert isinstance(make_embedder(offline), HashingEmbedder)
    assert isinstance(make_question_generator(offline), SimpleQuestionGenerator)

    online = apply_env(DEFAULT_CONFIG, {"OPENAI_API_KEY": "sk-test"})
    assert isinstance(make_embedder(online), OpenAIEmbedder)
    assert isinstance(make_question_generator(online), LLMQuestionGenerator)


def test_doc2query_disabled():
    cfg = apply_env(DEFAULT_CONFIG, {"DOC2QUERY_COUNT": "0"})
    assert make_question_generator(cfg) is None
    cfg = apply_env(DEFAULT_CONFIG, {})
    cfg["doc2query"]["enabled"] = False
    assert make_question_generator(cfg) is None


def test_unknown_backends_raise():
    cfg = apply_env(DEFAULT_CONFIG, {})
    cfg["embedding"]["backend"] = "word2vec"
    with pytest.raises(ConfigError):
        make_embedder(cfg)
    cfg = apply_env(DEFAULT_CONFIG, {})
    cfg["store"]["backend"] = "pinecone"
    with pytest.raises(ConfigError):
        make_store(cfg)


def test_explicit_openai_without_key():
    cfg = apply_env(DEFAULT_CONFIG, {})
    cfg["embedding"]["backend"] = "openai"
    with pytest.raises(ConfigError):
        make_embedder(cfg)


def test_store_and_resolver_wiring(tmp_path):
    cfg = apply_env(DEFAULT_CONFIG, {"PDF_SEARCH_CACHE_DIR": str(tmp_path)})
    store = make_store(cfg)
    assert isinstance(store, ChromaHttpStore)
    assert store.collections_url == "http://localhost:8000/api/v1/collections"
    assert make_resolver(cfg, store).durable.cache_dir == tmp_path

    cfg["store"]["backend"] = "memory"
    resolver = make_resolver(cfg)
    assert isinstance(resolver.store, InMemoryStore)
    assert resolver.durable is None


def test_build_service_uses_collection_and_chunking():
    cfg = apply_env(DEFAULT_CONFIG, {"COLLECTION_NAME": "papers"})
    cfg["store"]["backend"] = "memory"
    cfg["chunking"] = {"min_chars": 200, "max_chars": 800}
    service = build_service(cfg)
    assert service.collection_name == "papers"
    assert service.searcher.collection_name == "papers"
    assert service.indexer.chunker.target_max_chars == 800
    assert service.indexer.questions_per_chunk == 3
