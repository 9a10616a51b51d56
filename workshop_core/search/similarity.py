from dataclasses import dataclass
from typing import List

from workshop_core.embeddings.base import EmbeddingGenerator
from workshop_core.embeddings.vectors import cosine_similarity


@dataclass
class SimilarityReport:
    dimension: int
    sample: List[float]
    cat_dog: float
    cat_kitten: float
    dog_kitten: float

    def lines(self) -> List[str]:
        return [
            f"Embedding dimensions: {self.dimension}",
            ", ".join(f"{v:.2f}" for v in self.sample),
            f"Cat-dog similarity: {self.cat_dog:.2f}",
            f"Cat-kitten similarity: {self.cat_kitten:.2f}",
            f"Dog-kitten similarity: {self.dog_kitten:.2f}",
        ]


def sentence_similarity(generator: EmbeddingGenerator) -> SimilarityReport:
    hello = generator.generate_vector("Hello, world!")
    cat, dog, kitten = generator.generate(["cat", "dog", "kitten"])
    return SimilarityReport(
        dimension=int(hello.shape[0]),
        sample=[float(v) for v in hello],
        cat_dog=cosine_similarity(cat, dog),
        cat_kitten=cosine_similarity(cat, kitten),
        dog_kitten=cosine_similarity(dog, kitten),
    )
