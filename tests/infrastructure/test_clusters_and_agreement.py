import unittest

import numpy as np

from occam.infrastructure.analysis import nearest_neighbor_agreement
from occam.infrastructure.data import cluster_centers, make_clusters
from occam.infrastructure.training import Sample


class TestMakeClusters(unittest.TestCase):
    def test_layout(self):
        samples = make_clusters(np.random.default_rng(1), classes=3, per_class=5, width=4)
        self.assertEqual(len(samples), 15)
        self.assertTrue(all(isinstance(s, Sample) for s in samples))
        self.assertEqual([s.label for s in samples[:6]], [0] * 5 + [1])
        self.assertEqual(samples[0].features.shape, (4,))
        self.assertEqual(samples[0].features.dtype, np.float32)

    def test_samples_near_centers(self):
        centers = cluster_centers(3, 4, 5.0)
        samples = make_clusters(
            np.random.default_rng(1), classes=3, per_class=10, width=4, noise=0.1
        )
        for s in samples:
            self.assertLess(float(np.linalg.norm(s.features - centers[s.label])), 1.0)

    def test_centers_are_separated(self):
        centers = cluster_centers(6, 3, 2.0)
        for i in range(6):
            for j in range(i + 1, 6):
                self.assertGreaterEqual(np.linalg.norm(centers[i] - centers[j]), 2.0)

    def test_too_many_classes(self):
        with self.assertRaises(ValueError):
            cluster_centers(5, 2, 1.0)

    def test_invalid_arguments(self):
        rng = np.random.default_rng(1)
        with self.assertRaises(ValueError):
            make_clusters(rng, classes=0)
        with self.assertRaises(ValueError):
            make_clusters(rng, noise=-1.0)


class TestNearestNeighborAgreement(unittest.TestCase):
    def test_perfect_clusters(self):
        vectors = np.array([[0.0, 0.0], [0.1, 0.0], [5.0, 5.0], [5.1, 5.0]])
        self.assertEqual(nearest_neighbor_agreement(vectors, ["a", "a", "b", "b"]), 1.0)

    def test_mixed_labels(self):
        vectors = np.array([[0.0], [1.0], [10.0], [11.0]])
        self.assertEqual(nearest_neighbor_agreement(vectors, [0, 1, 0, 1]), 0.0)

    def test_complex_vectors_use_magnitude(self):
        vectors = np.array([[1j], [1.0], [5.0], [5j]])
        self.assertEqual(nearest_neighbor_agreement(vectors, [0, 0, 1, 1]), 1.0)

    def test_validation(self):
        with self.assertRaises(ValueError):
            nearest_neighbor_agreement(np.zeros((1, 2)), [0])
        with self.assertRaises(ValueError):
            nearest_neighbor_agreement(np.zeros((3, 2)), [0, 1])


if __name__ == "__main__":
    unittest.main()
