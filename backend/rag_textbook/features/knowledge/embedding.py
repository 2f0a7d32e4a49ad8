"""
Knowledge feature: Embedding vector utilities.

Embeddings are produced by the ingestion pipeline; this module only checks
query vectors and converts them to and from the pgvector text literal.
"""

import math
from numbers import Real
from collections.abc import Sequence

from rag_textbook.core.exceptions import ValidationError


def validate_embedding(values: Sequence[float], dimensions: int) -> list[float]:
    """Check a query embedding and return it as a list of floats.

    Args:
        values: Candidate vector.
        dimensions: The deployment's fixed dimensionality.

    Returns:
        The components as Python floats.

    Raises:
        ValidationError: If the value is not a sequence of finite real
            numbers of exactly ``dimensions`` components, or is all zeros.
    """
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise ValidationError("Embedding must be a list of numbers")

    if len(values) != dimensions:
        raise ValidationError(
            "Embedding has wrong dimensionality",
            detail=f"expected {dimensions} components, got {len(values)}",
        )

    vector = []
    for i, v in enumerate(values):
        if isinstance(v, bool) or not isinstance(v, Real):
            raise ValidationError("Embedding must be a list of numbers", detail=f"component {i} is not numeric")
        v = float(v)
        if not math.isfinite(v):
            raise ValidationError("Embedding must be finite", detail=f"component {i} is {v}")
        vector.append(v)

    # Cosine distance is undefined for the zero vector
    if not any(vector):
        raise ValidationError("Embedding must have non-zero magnitude")

    return vector


def encode_vector(values: Sequence[float]) -> str:
    """Serialize a vector to the pgvector literal ``[x0,x1,...]``.

    Each component is written with ``repr(float)``, the shortest decimal that
    parses back to the identical double. pgvector stores float4, so this is
    never the precision bottleneck, and small components are never rounded
    to zero as fixed 6-decimal formatting would do.
    """
    return "[" + ",".join(repr(float(v)) for v in values) + "]"


def decode_vector(literal: str) -> list[float]:
    """Parse a pgvector literal (as PostgREST returns vector columns)."""
    body = literal.strip()
    if not (body.startswith("[") and body.endswith("]")):
        raise ValidationError("Malformed vector literal", detail=literal[:40])
    body = body[1:-1].strip()
    if not body:
        return []
    try:
        return [float(part) for part in body.split(",")]
    except ValueError:
        raise ValidationError("Malformed vector literal", detail=literal[:40])


def cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine distance ``1 - a.b / (|a||b|)``, matching pgvector's ``<=>``.

    Returns NaN when either vector has zero magnitude.
    """
    if len(a) != len(b):
        raise ValidationError("Vectors have different dimensionality")

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return math.nan
    return 1.0 - dot / (norm_a * norm_b)
