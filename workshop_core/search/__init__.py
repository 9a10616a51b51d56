"""练习“Embeddings”：句子相似度、手写语义检索与 FAISS 索引检索。"""

from workshop_core.search.datasets import GitHubIssue, load_document_titles, load_github_issues
from workshop_core.search.faiss_index import FaissSemanticSearch, SearchHit
from workshop_core.search.manual import ManualSemanticSearch
from workshop_core.search.similarity import SimilarityReport, sentence_similarity

__all__ = [
    "FaissSemanticSearch",
    "GitHubIssue",
    "ManualSemanticSearch",
    "SearchHit",
    "SimilarityReport",
    "load_document_titles",
    "load_github_issues",
    "sentence_similarity",
]
