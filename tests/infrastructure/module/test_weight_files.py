import json
import tempfile
import unittest
from pathlib import Path

import numpy as np

from occam.domain import ParameterSetUnavailableError, ShapeMismatchError
from occam.infrastructure import Parameter, ParameterSet
from occam.infrastructure.encoding import ndarray_to_payload, payload_to_ndarray
from occam.infrastructure.module import load_parameters, load_parameters_, save_parameters


def make_set(rng) -> ParameterSet:
    s = ParameterSet()
    s.add("points", (4, 3))
    s.add("bias", (1, 3), dtype=np.float64)
    s.add("input", (1, 3), trainable=False)
    s.initialize(rng)
    s.by_name["bias"].copy_from_numpy(np.array([0.5, -1.5, 2.0]))
    return s


class TestPayloads(unittest.TestCase):
    def test_payload_fields(self):
        payload = ndarray_to_payload(np.arange(6, dtype=np.float32).reshape(2, 3))
        self.assertEqual(payload["shape"], [2, 3])
        self.assertEqual(np.dtype(payload["dtype"]), np.float32)
        self.assertIsInstance(payload["b64"], str)

    def test_truncated_payload(self):
        payload = ndarray_to_payload(np.arange(6, dtype=np.float32))
        payload["shape"] = [7]
        with self.assertRaises(ValueError):
            payload_to_ndarray(payload)

    def test_invalid_base64(self):
        with self.assertRaises(ValueError):
            payload_to_ndarray({"b64": "not base64!", "dtype": "<f4", "shape": [1]})


class TestWeightFiles(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.rng = np.random.default_rng(1)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_round_trip(self):
        s = make_set(self.rng)
        path = self.dir / "nested" / "weights.json"
        save_parameters(s, path)

        loaded = load_parameters(path)
        self.assertEqual(loaded.names(), ("points", "bias", "input"))
        for name, t in s.named_parameters():
            other = loaded.by_name[name]
            self.assertEqual(other.shape, t.shape)
            self.assertEqual(other.dtype, t.dtype)
            np.testing.assert_array_equal(other.data, t.data)
        self.assertIsInstance(loaded.by_name["points"], Parameter)
        self.assertNotIsInstance(loaded.by_name["input"], Parameter)
        np.testing.assert_array_equal(loaded.by_name["points"].m, np.zeros((4, 3)))

    def test_file_layout(self):
        s = make_set(self.rng)
        path = self.dir / "weights.json"
        save_parameters(s, path)
        doc = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual([e["name"] for e in doc["parameters"]], ["points", "bias", "input"])
        self.assertEqual(doc["parameters"][0]["shape"], [4, 3])

    def test_in_place_load_resets_state(self):
        s = make_set(self.rng)
        path = self.dir / "weights.json"
        save_parameters(s, path)
        expected = s.by_name["points"].to_numpy()

        target = make_set(np.random.default_rng(99))
        buf = target.by_name["points"].data
        target.by_name["points"].m[...] = 3.0
        load_parameters_(target, path)

        self.assertIs(target.by_name["points"].data, buf)
        np.testing.assert_array_equal(buf, expected)
        np.testing.assert_array_equal(target.by_name["points"].m, np.zeros((4, 3)))

    def test_in_place_load_shape_mismatch(self):
        s = make_set(self.rng)
        path = self.dir / "weights.json"
        save_parameters(s, path)
        other = ParameterSet()
        other.add("points", (2, 3))
        with self.assertRaises(ShapeMismatchError):
            load_parameters_(other, path)

    def test_in_place_load_missing_entry(self):
        s = make_set(self.rng)
        path = self.dir / "weights.json"
        save_parameters(s, path)
        other = ParameterSet()
        other.add("unknown", (1, 1))
        with self.assertRaises(ParameterSetUnavailableError):
            load_parameters_(other, path)

    def test_missing_file(self):
        with self.assertRaises(ParameterSetUnavailableError):
            load_parameters(self.dir / "absent.json")

    def test_corrupt_file(self):
        path = self.dir / "corrupt.json"
        path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(ParameterSetUnavailableError):
            load_parameters(path)

    def test_wrong_format(self):
        path = self.dir / "other.json"
        path.write_text(json.dumps({"format": "something-else"}), encoding="utf-8")
        with self.assertRaises(ParameterSetUnavailableError):
            load_parameters(path)

    def test_corrupt_payload(self):
        s = make_set(self.rng)
        path = self.dir / "weights.json"
        save_parameters(s, path)
        doc = json.loads(path.read_text(encoding="utf-8"))
        doc["parameters"][0]["b64"] = doc["parameters"][0]["b64"][:8]
        path.write_text(json.dumps(doc), encoding="utf-8")
        with self.assertRaises(ParameterSetUnavailableError):
            load_parameters(path)


if __name__ == "__main__":
    unittest.main()
