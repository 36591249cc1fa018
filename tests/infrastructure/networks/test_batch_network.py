import unittest

import numpy as np

from occam.infrastructure.data import make_clusters
from occam.infrastructure.networks import BatchAttentionNetwork
from occam.infrastructure.training import TrainingConfig, TrainingState


def cluster_matrix(rng, **kwargs):
    samples = make_clusters(rng, **kwargs)
    return np.stack([s.features for s in samples]), [s.label for s in samples]


class TestBatchAttentionGraph(unittest.TestCase):
    def test_shapes_and_points_start_at_data(self):
        data, _ = cluster_matrix(np.random.default_rng(1), classes=2, per_class=3, width=4)
        net = BatchAttentionNetwork(data, rng=np.random.default_rng(2))

        self.assertEqual(net.data.shape, (6, 4))
        self.assertEqual(net.points.shape, (6, 4))
        self.assertEqual(net.l1.shape, (6, 6))
        self.assertEqual(net.l2.shape, (6, 4))
        self.assertEqual(net.entropy.shape, (1, 6))
        self.assertEqual(net.cost.shape, (1, 1))
        self.assertEqual(net.parameters.names(), ("points",))
        np.testing.assert_array_equal(net.points.data, data)
        np.testing.assert_array_equal(net.data.data, data)

    def test_explicit_length_draws_points(self):
        data = np.ones((5, 3), dtype=np.float32)
        net = BatchAttentionNetwork(data, rng=np.random.default_rng(1), length=7)
        self.assertEqual(net.points.shape, (7, 3))
        self.assertEqual(net.l1.shape, (5, 7))
        self.assertTrue(np.all(net.points.data >= -1.0) and np.all(net.points.data < 1.0))

    def test_rejects_non_matrix_data(self):
        with self.assertRaises(ValueError):
            BatchAttentionNetwork(np.zeros(4), rng=np.random.default_rng(1))

    def test_vectors_are_distributions(self):
        data, _ = cluster_matrix(np.random.default_rng(1), classes=3, per_class=2, width=4)
        net = BatchAttentionNetwork(data, rng=np.random.default_rng(2))
        np.testing.assert_allclose(net.vectors().sum(axis=1), np.ones(6), rtol=1e-5)
        self.assertEqual(sorted(net.ranking().tolist()), list(range(6)))


class TestBatchAttentionTraining(unittest.TestCase):
    def test_batch_cost_falls(self):
        rng = np.random.default_rng(1)
        data, _ = cluster_matrix(rng, classes=3, per_class=4, width=4, scale=5.0, noise=0.1)
        net = BatchAttentionNetwork(data, rng=rng)

        before = net.loss()
        result = net.fit(TrainingConfig(iterations=500))
        after = net.loss()

        self.assertIs(result.state, TrainingState.EXHAUSTED)
        self.assertEqual(result.iterations, 500)
        self.assertAlmostEqual(result.history.loss[0], before, places=5)
        self.assertLess(after, before)

    def test_iteration_clears_input_gradients(self):
        data, _ = cluster_matrix(np.random.default_rng(1), classes=2, per_class=2, width=3)
        net = BatchAttentionNetwork(data, rng=np.random.default_rng(2))
        before = net.points.to_numpy()

        loss = net.iterate()

        self.assertTrue(np.isfinite(loss))
        self.assertFalse(np.array_equal(net.points.data, before))
        np.testing.assert_array_equal(net.data.data, data)
        np.testing.assert_array_equal(net.data.grad, np.zeros((4, 3)))
        np.testing.assert_array_equal(net.points.grad, np.zeros((4, 3)))

    def test_complex_spherical(self):
        data, _ = cluster_matrix(np.random.default_rng(1), classes=2, per_class=3, width=3)
        net = BatchAttentionNetwork(
            data.astype(np.complex128),
            rng=np.random.default_rng(2),
            kind="spherical",
            dtype=np.complex128,
        )
        result = net.fit(TrainingConfig(iterations=20))

        self.assertIs(result.state, TrainingState.EXHAUSTED)
        self.assertTrue(all(np.isfinite(result.history.loss)))
        self.assertEqual(net.entropies().dtype, np.complex128)
        self.assertEqual(net.entropies().shape, (6,))

    def test_complex_requires_spherical(self):
        with self.assertRaises(TypeError):
            BatchAttentionNetwork(
                np.ones((2, 2)), rng=np.random.default_rng(1), dtype=np.complex128
            )


if __name__ == "__main__":
    unittest.main()
