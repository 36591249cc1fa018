import unittest

import numpy as np

from occam.infrastructure.data import make_clusters
from occam.infrastructure.networks import (
    AttentionClassifier,
    BatchAttentionNetwork,
    one_hot,
)
from occam.infrastructure.training import TrainingConfig, TrainingState


def cluster_matrix(rng, **kwargs):
    samples = make_clusters(rng, **kwargs)
    return np.stack([s.features for s in samples]), [s.label for s in samples]


class TestOneHot(unittest.TestCase):
    def test_rows(self):
        np.testing.assert_array_equal(
            one_hot([2, 0, 1], 3), [[0, 0, 1], [1, 0, 0], [0, 1, 0]]
        )

    def test_out_of_range(self):
        with self.assertRaises(ValueError):
            one_hot([0, 3], 3)
        with self.assertRaises(ValueError):
            one_hot([-1], 3)


class TestAttentionClassifierGraph(unittest.TestCase):
    def test_shapes_and_initialization(self):
        x, y = cluster_matrix(np.random.default_rng(1), classes=3, per_class=2, width=4)
        clf = AttentionClassifier(x, y, rng=np.random.default_rng(2))

        self.assertEqual(clf.classes, 3)
        self.assertEqual(clf.parameters.names(), ("weights", "bias"))
        self.assertEqual(clf.parameters.by_name["weights"].shape, (3, 4))
        np.testing.assert_array_equal(clf.parameters.by_name["bias"].data, np.zeros((1, 3)))
        self.assertGreater(float(np.abs(clf.parameters.by_name["weights"].data).sum()), 0.0)
        self.assertEqual(clf.l1.shape, (6, 3))
        self.assertEqual(clf.cost.shape, (1, 1))
        np.testing.assert_array_equal(clf.inputs.by_name["targets"].data, one_hot(y, 3))

    def test_label_count_must_match_rows(self):
        with self.assertRaises(ValueError):
            AttentionClassifier(np.ones((3, 2)), [0, 1], rng=np.random.default_rng(1))

    def test_complex_features_use_magnitudes(self):
        x = np.array([[3 + 4j, 0.0], [0.0, -2j]])
        clf = AttentionClassifier(x, [0, 1], rng=np.random.default_rng(1), dtype=np.float64)
        np.testing.assert_allclose(clf.inputs.by_name["inputs"].data, [[5.0, 0.0], [0.0, 2.0]])

    def test_probabilities_are_distributions(self):
        x, y = cluster_matrix(np.random.default_rng(1), classes=2, per_class=3, width=3)
        clf = AttentionClassifier(x, y, rng=np.random.default_rng(2), dtype=np.float64)
        np.testing.assert_allclose(clf.probabilities().sum(axis=1), np.ones(6))


class TestAttentionClassifierTraining(unittest.TestCase):
    def test_accuracy_beats_chance_on_clusters(self):
        x, y = cluster_matrix(
            np.random.default_rng(1), classes=3, per_class=8, width=4, scale=5.0, noise=0.0
        )
        clf = AttentionClassifier(x, y, rng=np.random.default_rng(2), lr=0.1, dtype=np.float64)

        result = clf.fit(TrainingConfig(iterations=200))

        self.assertIs(result.state, TrainingState.EXHAUSTED)
        self.assertLess(result.last_loss, result.history.loss[0])
        self.assertGreater(clf.accuracy(), 0.5)
        np.testing.assert_array_equal(clf.inputs.by_name["targets"].grad, np.zeros((24, 3)))
        np.testing.assert_array_equal(clf.inputs.by_name["inputs"].grad, np.zeros((24, 4)))

    def test_head_over_attended_rows(self):
        x, y = cluster_matrix(np.random.default_rng(1), classes=2, per_class=3, width=3)
        net = BatchAttentionNetwork(
            x.astype(np.complex128),
            rng=np.random.default_rng(2),
            kind="spherical",
            dtype=np.complex128,
        )
        net.fit(TrainingConfig(iterations=5))
        vectors = net.vectors()

        clf = AttentionClassifier(vectors, y, rng=np.random.default_rng(3), dtype=np.float64)
        np.testing.assert_allclose(clf.inputs.by_name["inputs"].data, np.abs(vectors))

        result = clf.fit(TrainingConfig(iterations=10))
        self.assertIs(result.state, TrainingState.EXHAUSTED)
        self.assertTrue(all(np.isfinite(result.history.loss)))
        self.assertEqual(clf.predict().shape, (6,))


if __name__ == "__main__":
    unittest.main()
