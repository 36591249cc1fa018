import math
import unittest

import numpy as np

from occam.infrastructure import Tensor, WeightInitializer


class TestWeightInitializerRegistry(unittest.TestCase):
    def test_builtins_registered(self):
        for name in ("zeros", "uniform", "kaiming"):
            self.assertIn(name, WeightInitializer.available())

    def test_unknown_name(self):
        with self.assertRaises(ValueError):
            WeightInitializer("does-not-exist")

    def test_duplicate_registration_rejected(self):
        with self.assertRaises(ValueError):
            WeightInitializer.register_initializer("zeros")(lambda t, rng=None: t)


class TestBuiltinInitializers(unittest.TestCase):
    def test_zeros(self):
        t = Tensor((3, 3))
        t.fill(5.0)
        WeightInitializer("zeros")(t, None)
        np.testing.assert_array_equal(t.data, np.zeros((3, 3)))

    def test_uniform_range(self):
        t = Tensor((64, 32))
        WeightInitializer("uniform")(t, np.random.default_rng(1))
        self.assertGreaterEqual(float(t.data.min()), -1.0)
        self.assertLess(float(t.data.max()), 1.0)
        self.assertLess(abs(float(t.data.mean())), 0.05)

    def test_uniform_uses_given_generator(self):
        a, b = Tensor((4, 4)), Tensor((4, 4))
        WeightInitializer("uniform")(a, np.random.default_rng(3))
        WeightInitializer("uniform")(b, np.random.default_rng(3))
        np.testing.assert_array_equal(a.data, b.data)

    def test_kaiming_std(self):
        t = Tensor((256, 64), dtype=np.float64)
        WeightInitializer("kaiming")(t, np.random.default_rng(0))
        expected = math.sqrt(2.0 / 64)
        self.assertTrue(math.isclose(float(t.data.std()), expected, rel_tol=0.05))
        self.assertLess(abs(float(t.data.mean())), 0.01)


if __name__ == "__main__":
    unittest.main()
