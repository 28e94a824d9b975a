"""
2D projection of indexed chunk vectors for the atlas view.
"""

from typing import Literal

import numpy as np
from sklearn.decomposition import PCA

from notegraph.models.search import AtlasData, AtlasRecord
from notegraph.utils.exceptions import ValidationError


def _scale(values: np.ndarray) -> np.ndarray:
    """Min-max scale into [-1, 1]; a constant axis maps to 0."""
    low, high = values.min(), values.max()
    if high - low == 0:
        return np.zeros_like(values)
    return 2.0 * (values - low) / (high - low) - 1.0


def to_atlas_data(
    records: list[AtlasRecord], method: Literal["axes", "pca"] = "axes"
) -> AtlasData:
    """
    Project atlas records to 2D.

    Args:
        records: Records with equal-length vectors
        method: "axes" uses the first two vector dimensions, "pca" the first two
            principal components

    Returns:
        Column-oriented projection with coordinates in [-1, 1]
    """
    if method not in ("axes", "pca"):
        raise ValidationError(f"Unknown projection method: {method}")
    if not records:
        return AtlasData()

    vectors = np.zeros((len(records), 2))
    try:
        matrix = np.asarray([r.vector for r in records], dtype=np.float64)
    except ValueError as e:
        raise ValidationError("Atlas records must share one vector dimension") from e
    if matrix.ndim != 2 or matrix.shape[1] == 0:
        raise ValidationError("Atlas records must share one vector dimension")

    if method == "pca" and len(records) >= 2 and matrix.shape[1] >= 2:
        vectors = PCA(n_components=2).fit_transform(matrix)
    else:
        columns = min(2, matrix.shape[1])
        vectors[:, :columns] = matrix[:, :columns]

    return AtlasData(
        x=_scale(vectors[:, 0]).tolist(),
        y=_scale(vectors[:, 1]).tolist(),
        ids=[r.id for r in records],
        titles=[r.title for r in records],
        snippets=[r.snippet for r in records],
        categories=[0] * len(records),
    )
