import json

import numpy as np
import pytest

from workshop_core.domain.exceptions import ValidationError
from workshop_core.search import (
    FaissSemanticSearch,
    GitHubIssue,
    ManualSemanticSearch,
    load_document_titles,
    load_github_issues,
    sentence_similarity,
)

VECTORS = {
    "Hello, world!": [0.0, 0.0, 1.0, 0.0],
    "cat": [1.0, 0.0, 0.0, 0.0],
    "kitten": [0.9, 0.1, 0.0, 0.0],
    "dog": [0.5, 0.5, 0.0, 0.0],
    "alpha": [1.0, 0.0, 0.0, 0.0],
    "beta": [0.0, 1.0, 0.0, 0.0],
    "gamma": [0.0, 0.0, 1.0, 0.0],
}


class FakeGenerator:
    name = "fake"

    def __init__(self):
        self.batches = []

    def generate(self, texts):
        self.batches.append(list(texts))
        return [np.asarray(VECTORS.get(t, [0.0, 0.0, 0.0, 1.0]), dtype=np.float32) for t in texts]

    def generate_vector(self, text):
        return self.generate([text])[0]


def test_sentence_similarity():
    report = sentence_similarity(FakeGenerator())
    assert report.dimension == 4
    assert report.cat_kitten > report.cat_dog
    assert report.lines()[0] == "Embedding dimensions: 4"


def test_manual_search_orders_by_dot_product():
    search = ManualSemanticSearch(FakeGenerator(), ["beta", "alpha", "gamma", "kitten"])
    assert search.index() == 4
    results = search.search("cat", top=2)
    assert [title for _, title in results] == ["alpha", "kitten"]
    assert results[0][0] == pytest.approx(1.0)


def test_manual_search_requires_index():
    with pytest.raises(ValidationError):
        ManualSemanticSearch(FakeGenerator(), ["alpha"]).search("cat")


def test_manual_search_over_no_titles_returns_nothing():
    search = ManualSemanticSearch(FakeGenerator(), [])
    assert not search.indexed
    assert search.index() == 0
    assert search.indexed
    assert search.search("cat") == []


def test_faiss_search_builds_saves_and_reloads(tmp_path):
    issues = [GitHubIssue(10, "alpha"), GitHubIssue(20, "beta"), GitHubIssue(30, "gamma")]
    path = tmp_path / "index_hnsw.bin"
    gen = FakeGenerator()
    search = FaissSemanticSearch(gen, issues, dimension=4)
    index = search.load_or_create_index(path)
    assert index.ntotal == 3
    assert path.exists()
    assert gen.batches[0] == ["alpha", "beta", "gamma"]

    hits, elapsed_ms = search.search("beta", k=1)
    assert [(h.issue_number, h.title) for h in hits] == [(20, "beta")]
    assert hits[0].distance == pytest.approx(1.0)
    assert elapsed_ms >= 0

    reloaded_gen = FakeGenerator()
    reloaded = FaissSemanticSearch(reloaded_gen, issues, dimension=4)
    assert reloaded.load_or_create_index(path).ntotal == 3
    assert reloaded_gen.batches == []


def test_faiss_dimension_mismatch(tmp_path):
    search = FaissSemanticSearch(FakeGenerator(), [GitHubIssue(1, "alpha")], dimension=8)
    with pytest.raises(ValidationError):
        search.load_or_create_index(tmp_path / "idx.bin")


def test_load_datasets(tmp_path):
    issues_file = tmp_path / "issues.json"
    issues_file.write_text(json.dumps([{"number": i, "title": f"t{i}"} for i in range(5)]), encoding="utf-8")
    assert [i.number for i in load_github_issues(issues_file, take_last=2)] == [3, 4]
    assert len(load_github_issues(issues_file)) == 5

    titles_file = tmp_path / "titles.json"
    titles_file.write_text(json.dumps({"1": "first", "2": "second"}), encoding="utf-8")
    assert load_document_titles(titles_file) == ["first", "second"]

    with pytest.raises(ValidationError):
        load_document_titles(tmp_path / "missing.json")
