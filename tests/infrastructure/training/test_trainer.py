import unittest

import numpy as np

from occam.domain import Function, ParameterSetUnavailableError
from occam.infrastructure import (
    Adam,
    ParameterSet,
    apply,
    hadamard,
    mul,
    sum_,
)
from occam.infrastructure.training import (
    History,
    IterationPlan,
    Sample,
    Trainer,
    TrainingConfig,
    TrainingState,
)


class LogFn(Function):
    """Natural log; non-finite at zero."""

    name = "log"

    @staticmethod
    def infer_shape(shapes, options=None):
        (shape,) = shapes
        return shape

    @staticmethod
    def forward(ctx, a, options=None):
        ctx.save_for_backward(a.copy())
        return np.log(a)

    @staticmethod
    def backward(ctx, grad_out):
        (a,) = ctx.saved_tensors
        return (grad_out / a,)


def quadratic():
    """Bowl cost sum(w * w) over one trainable row."""
    s = ParameterSet()
    w = s.set("w", (1, 3), dtype=np.float64)
    s.by_name["w"].copy_from_numpy(np.array([1.0, -2.0, 0.5]))
    return s, sum_(hadamard(w, w))


class TestTrainingConfig(unittest.TestCase):
    def test_validation(self):
        with self.assertRaises(ValueError):
            TrainingConfig(iterations=0)
        with self.assertRaises(ValueError):
            TrainingConfig(sampling="cyclic")

    def test_sample_features_are_flat(self):
        s = Sample(np.ones((2, 2)), label=1)
        self.assertEqual(s.features.shape, (4,))


class TestTrainerConstruction(unittest.TestCase):
    def test_requires_parameter_set(self):
        s, cost = quadratic()
        with self.assertRaises(ParameterSetUnavailableError):
            Trainer(cost, None, rng=np.random.default_rng(1))

    def test_requires_trainable_tensors(self):
        s = ParameterSet()
        x = s.set("x", (1, 2), trainable=False)
        with self.assertRaises(ParameterSetUnavailableError):
            Trainer(sum_(x), s, rng=np.random.default_rng(1))

    def test_requires_scalar_cost(self):
        s = ParameterSet()
        w = s.set("w", (1, 2))
        with self.assertRaises(ValueError):
            Trainer(hadamard(w, w), s, rng=np.random.default_rng(1))


class TestTrainerLoop(unittest.TestCase):
    def test_loss_decreases_and_budget_exhausts(self):
        s, cost = quadratic()
        trainer = Trainer(
            cost,
            s,
            Adam(s, lr=0.05),
            rng=np.random.default_rng(1),
            config=TrainingConfig(iterations=200),
        )
        result = trainer.fit()
        self.assertIs(result.state, TrainingState.EXHAUSTED)
        self.assertEqual(result.iterations, 200)
        self.assertIsInstance(result.history, History)
        self.assertEqual(len(result.history), 200)
        self.assertEqual(result.history.iteration[:3], [0, 1, 2])
        self.assertLess(result.last_loss, result.history.loss[0])
        self.assertFalse(result.diverged)

    def test_gradients_are_zeroed_after_each_step(self):
        s, cost = quadratic()
        trainer = Trainer(cost, s, rng=np.random.default_rng(1))
        trainer.step()
        np.testing.assert_array_equal(s.by_name["w"].grad, np.zeros((1, 3)))

    def test_divergence_stops_without_update(self):
        s = ParameterSet()
        w = s.set("w", (1, 2), dtype=np.float64)
        s.by_name["w"].copy_from_numpy(np.array([0.0, 1.0]))
        cost = sum_(apply(LogFn, w))
        before = s.by_name["w"].to_numpy()

        trainer = Trainer(
            cost, s, rng=np.random.default_rng(1), config=TrainingConfig(iterations=10)
        )
        with self.assertLogs("occam.infrastructure.training._trainer", level="WARNING") as cm:
            result = trainer.fit()

        self.assertIs(result.state, TrainingState.DIVERGED)
        self.assertTrue(result.diverged)
        self.assertEqual(result.iterations, 1)
        self.assertFalse(np.isfinite(result.last_loss))
        np.testing.assert_array_equal(s.by_name["w"].data, before)
        np.testing.assert_array_equal(s.by_name["w"].m, np.zeros((1, 2)))
        self.assertTrue(any("diverged" in line for line in cm.output))

    def test_step_after_divergence_changes_nothing(self):
        s = ParameterSet()
        w = s.set("w", (1, 2), dtype=np.float64)
        s.by_name["w"].copy_from_numpy(np.array([0.0, 1.0]))
        trainer = Trainer(sum_(apply(LogFn, w)), s, rng=np.random.default_rng(1))
        with self.assertLogs("occam.infrastructure.training._trainer", level="WARNING"):
            trainer.step()
        self.assertIs(trainer.state, TrainingState.DIVERGED)

        # A finite point: a live step would move w and fill the moments.
        s.by_name["w"].copy_from_numpy(np.array([2.0, 3.0]))
        before = s.by_name["w"].to_numpy()
        loss = trainer.step()

        self.assertTrue(np.isnan(loss))
        self.assertIs(trainer.state, TrainingState.DIVERGED)
        self.assertEqual(len(trainer.history), 1)
        self.assertEqual(trainer.optimizer.t, 0)
        np.testing.assert_array_equal(s.by_name["w"].data, before)
        np.testing.assert_array_equal(s.by_name["w"].m, np.zeros((1, 2)))
        np.testing.assert_array_equal(s.by_name["w"].v, np.zeros((1, 2)))

    def test_fit_starts_a_new_run_after_divergence(self):
        s = ParameterSet()
        w = s.set("w", (1, 2), dtype=np.float64)
        s.by_name["w"].copy_from_numpy(np.array([0.0, 1.0]))
        trainer = Trainer(
            sum_(apply(LogFn, w)),
            s,
            Adam(s, lr=1e-3),
            rng=np.random.default_rng(1),
            config=TrainingConfig(iterations=3),
        )
        with self.assertLogs("occam.infrastructure.training._trainer", level="WARNING"):
            trainer.step()

        s.by_name["w"].copy_from_numpy(np.array([2.0, 3.0]))
        result = trainer.fit()
        self.assertIs(result.state, TrainingState.EXHAUSTED)
        self.assertEqual(result.iterations, 3)

    def test_default_feed_loads_features(self):
        params = ParameterSet()
        w = params.set("w", (2, 2), dtype=np.float64)
        params.by_name["w"].copy_from_numpy(np.eye(2))
        inputs = ParameterSet()
        x = inputs.set("x", (1, 2), trainable=False, dtype=np.float64)
        cost = sum_(mul(w, x))

        trainer = Trainer(cost, params, inputs=x.value, rng=np.random.default_rng(1))
        loss = trainer.step(Sample(np.array([2.0, 3.0])))
        self.assertAlmostEqual(loss, 5.0)
        np.testing.assert_array_equal(x.value.data, [[2.0, 3.0]])
        np.testing.assert_array_equal(x.value.grad, np.zeros((1, 2)))

    def test_sample_without_input_tensor(self):
        s, cost = quadratic()
        trainer = Trainer(cost, s, rng=np.random.default_rng(1))
        with self.assertRaises(ValueError):
            trainer.step(Sample(np.zeros(3)))

    def test_custom_feed_plan(self):
        params = ParameterSet()
        w = params.set("w", (1, 4), dtype=np.float64)
        params.by_name["w"].copy_from_numpy(np.array([1.0, 1.0, 1.0, 1.0]))
        cost = sum_(hadamard(w, w))
        seen = []

        def feed(sample, rng):
            seen.append(sample.label)
            return IterationPlan(ranges={"w": (0, 2)})

        trainer = Trainer(
            cost,
            params,
            rng=np.random.default_rng(1),
            config=TrainingConfig(iterations=5),
            feed=feed,
        )
        trainer.fit([Sample(np.zeros(1), "a")])
        self.assertEqual(seen, ["a"] * 5)
        data = params.by_name["w"].data[0]
        self.assertTrue(np.all(data[:2] < 1.0))
        np.testing.assert_array_equal(data[2:], [1.0, 1.0])

    def test_sweep_visits_every_sample_per_pass(self):
        params = ParameterSet()
        w = params.set("w", (1, 1), dtype=np.float64)
        cost = sum_(hadamard(w, w))
        seen = []

        def feed(sample, rng):
            seen.append(sample.label)

        samples = [Sample(np.zeros(1), i) for i in range(4)]
        trainer = Trainer(
            cost,
            params,
            rng=np.random.default_rng(3),
            config=TrainingConfig(iterations=8, sampling="sweep"),
            feed=feed,
        )
        trainer.fit(samples)
        self.assertEqual(sorted(seen[:4]), [0, 1, 2, 3])
        self.assertEqual(sorted(seen[4:]), [0, 1, 2, 3])

    def test_random_sampling_is_reproducible(self):
        def run():
            params = ParameterSet()
            w = params.set("w", (1, 1), dtype=np.float64)
            seen = []
            trainer = Trainer(
                sum_(hadamard(w, w)),
                params,
                rng=np.random.default_rng(5),
                config=TrainingConfig(iterations=16),
                feed=lambda sample, rng: seen.append(sample.label),
            )
            trainer.fit([Sample(np.zeros(1), i) for i in range(10)])
            return seen

        self.assertEqual(run(), run())

    def test_empty_samples_rejected(self):
        s, cost = quadratic()
        trainer = Trainer(cost, s, rng=np.random.default_rng(1))
        with self.assertRaises(ValueError):
            trainer.fit([])

    def test_verbose_prints_progress(self):
        import io
        from contextlib import redirect_stdout

        s, cost = quadratic()
        trainer = Trainer(
            cost, s, rng=np.random.default_rng(1), config=TrainingConfig(iterations=2, verbose=1)
        )
        buf = io.StringIO()
        with redirect_stdout(buf):
            trainer.fit()
        lines = buf.getvalue().strip().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("Iteration 1/2 - loss:"))


class TestHistory(unittest.TestCase):
    def test_accessors(self):
        h = History()
        self.assertIsNone(h.last())
        self.assertIsNone(h.mean())
        h.append(0, 3.0)
        h.append(1, 1.0)
        h.append(2, 2.0)
        self.assertEqual(list(h), [(0, 3.0), (1, 1.0), (2, 2.0)])
        self.assertEqual(h.last(), 2.0)
        self.assertEqual(h.best(), 1.0)
        self.assertAlmostEqual(h.mean(), 2.0)
        self.assertAlmostEqual(h.mean(last=2), 1.5)

    def test_mean_over_no_iterations(self):
        h = History()
        h.append(0, 3.0)
        h.append(1, 1.0)
        self.assertIsNone(h.mean(last=0))


if __name__ == "__main__":
    unittest.main()
