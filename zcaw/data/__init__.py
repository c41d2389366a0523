"""Records and datasets consumed by whitening fits."""

from zcaw.data.dataset import Dataset, NumericDataset, Record

__all__ = ["Dataset", "NumericDataset", "Record"]
