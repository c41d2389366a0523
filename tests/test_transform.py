"""Tests for in-place application of a fitted whitening transform."""

import pytest
import torch

from zcaw.data import NumericDataset, Record
from zcaw.runtime import set_seed
from zcaw.whitening import Fixed, WhiteningTransform, pca_matrix


@pytest.fixture
def transform(correlated_dataset):
    return WhiteningTransform.fit(correlated_dataset, Fixed(0.05), verbose=False)


class TestApply:
    def test_apply_equals_matrix_product(self, transform, correlated_dataset):
        record = correlated_dataset[3]
        expected = transform.matrix @ record.numeric
        transform.apply(record)
        assert torch.allclose(record.numeric, expected, atol=1e-12)

    def test_apply_is_in_place(self, transform, correlated_dataset):
        record = correlated_dataset[0]
        storage = record.numeric.data_ptr()
        transform.apply(record)
        assert record.numeric.data_ptr() == storage

    def test_length_preserved(self, transform, correlated_dataset):
        for record in correlated_dataset:
            transform.apply(record)
            assert record.numeric.shape == (5,)

    def test_categorical_untouched(self, transform, correlated_dataset):
        before = [r.categorical for r in correlated_dataset]
        for record in correlated_dataset:
            transform.apply(record)
        assert [r.categorical for r in correlated_dataset] == before
        assert transform.affects_categorical() is False

    def test_whole_dataset_is_whitened(self, correlated_dataset):
        t = WhiteningTransform.fit(correlated_dataset, 1e-10, verbose=False)
        for record in correlated_dataset:
            t.apply(record)
        cov = torch.cov(correlated_dataset.numeric_matrix().T)
        assert torch.allclose(cov, torch.eye(5, dtype=torch.float64), atol=1e-6)

    def test_zca_keeps_output_aligned_with_input(self):
        """Independent features of different scale: ZCA keeps feature i at index i, PCA reorders."""
        set_seed(0)
        X = torch.randn(20000, 3, dtype=torch.float64) * torch.tensor([1.0, 2.0, 3.0], dtype=torch.float64)
        ds = NumericDataset.from_tensor(X)
        zca = WhiteningTransform.fit(ds, 1e-6, verbose=False).matrix
        pca = WhiteningTransform.fit(ds, 1e-6, matrix_builder=pca_matrix, verbose=False).matrix
        assert zca.abs().argmax(dim=1).tolist() == [0, 1, 2]
        # PCA rows follow descending variance: feature 2 first
        assert pca.abs().argmax(dim=1).tolist() == [2, 1, 0]

    def test_pca_strategy_still_square(self, correlated_dataset):
        t = WhiteningTransform.fit(correlated_dataset, 0.1, matrix_builder=pca_matrix, verbose=False)
        record = correlated_dataset[0]
        expected = t.matrix @ record.numeric
        t.apply(record)
        assert record.numeric.shape == (5,)
        assert torch.allclose(record.numeric, expected, atol=1e-12)


class TestScratchBuffers:
    def test_explicit_scratch(self, transform, correlated_dataset):
        record = correlated_dataset[1]
        expected = transform.matrix @ record.numeric
        scratch = torch.full((5,), 123.0, dtype=torch.float64)
        transform.apply(record, scratch=scratch)
        assert torch.allclose(record.numeric, expected, atol=1e-12)

    def test_scratch_must_not_alias_vector(self, transform, correlated_dataset):
        record = correlated_dataset[1]
        with pytest.raises(ValueError):
            transform.apply(record, scratch=record.numeric)

    def test_scratch_shape_checked(self, transform, correlated_dataset):
        with pytest.raises(ValueError):
            transform.apply(correlated_dataset[1], scratch=torch.zeros(4, dtype=torch.float64))

    def test_pooled_buffer_reused(self, transform, correlated_dataset):
        transform.apply(correlated_dataset[0])
        buffer = transform.scratch_pool.get()
        transform.apply(correlated_dataset[1])
        assert transform.scratch_pool.get() is buffer
        assert transform.scratch_pool.allocated == 1

    def test_stale_buffer_contents_do_not_leak(self, transform, correlated_dataset):
        record = correlated_dataset[2]
        expected = transform.matrix @ record.numeric
        transform.scratch_pool.get().fill_(1e6)
        transform.apply(record)
        assert torch.allclose(record.numeric, expected, atol=1e-12)


class TestValidation:
    def test_wrong_length(self, transform):
        with pytest.raises(ValueError):
            transform.apply(Record(torch.zeros(4, dtype=torch.float64)))

    def test_vector_dtype_is_cast(self, transform, correlated_X):
        x = correlated_X[0].to(torch.float32)
        expected = (transform.matrix @ correlated_X[0]).to(torch.float32)
        transform.apply_vector(x)
        assert x.dtype == torch.float32
        assert torch.allclose(x, expected, rtol=1e-5, atol=1e-5)

    def test_scratch_dtype_checked(self, transform, correlated_dataset):
        with pytest.raises(ValueError):
            transform.apply(correlated_dataset[0], scratch=torch.zeros(5, dtype=torch.float32))

    def test_partially_overlapping_scratch_rejected(self, transform):
        storage = torch.randn(6, dtype=torch.float64)
        before = storage.clone()
        with pytest.raises(ValueError):
            transform.apply_vector(storage[0:5], scratch=storage[1:6])
        assert torch.equal(storage, before)

    def test_disjoint_views_of_one_tensor_accepted(self, transform):
        storage = torch.randn(10, dtype=torch.float64)
        x, scratch = storage[0:5], storage[5:10]
        expected = transform.matrix @ x
        transform.apply_vector(x, scratch=scratch)
        assert torch.allclose(storage[0:5], expected, atol=1e-12)

    def test_strided_overlap_rejected(self, transform):
        storage = torch.randn(10, dtype=torch.float64)
        with pytest.raises(ValueError):
            transform.apply_vector(storage[0::2], scratch=storage[1::2])


class TestOutOfPlace:
    def test_transform_batch_matches_apply(self, transform, correlated_dataset):
        X = correlated_dataset.numeric_matrix()
        batch = transform.transform(X)
        for record in correlated_dataset:
            transform.apply(record)
        assert torch.allclose(correlated_dataset.numeric_matrix(), batch, atol=1e-12)

    def test_inverse(self, transform, correlated_X):
        assert torch.allclose(transform.inverse(transform.transform(correlated_X)), correlated_X, atol=1e-8)
        x = correlated_X[0]
        assert torch.allclose(transform.inverse(transform.transform(x)), x, atol=1e-8)

    def test_mahalanobis(self, transform, correlated_dataset, correlated_X):
        diff = correlated_X[:10] - correlated_X[10:20]
        precision = torch.linalg.inv(
            correlated_dataset.covariance() + transform.regularization * torch.eye(5, dtype=torch.float64)
        )
        expected = ((diff @ precision) * diff).sum(dim=1)
        assert torch.allclose(transform.mahalanobis_sq(diff), expected, rtol=1e-8)


class TestCheckpoint:
    def test_save_load(self, transform, tmp_path):
        path = tmp_path / "ckpt" / "whitener.pt"
        transform.save(path)
        loaded = WhiteningTransform.load(path)
        assert torch.equal(loaded.matrix, transform.matrix)
        assert loaded.regularization == transform.regularization
        assert loaded.dim == 5

    def test_state_dict_shape_check(self, transform):
        state = transform.state_dict()
        state["d"] = 4
        with pytest.raises(ValueError):
            WhiteningTransform.from_state_dict(state)
