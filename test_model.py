"""Tests for the dispatcher and properties shared by every learner."""
import json
import os
import tempfile
import unittest

import numpy as np

from learner import DimensionMismatchError, ModelFormatError
from model import LEARNERS, BinaryModel, build_learner, load_model
from pa import PA

DIM = 6

# non-default hyperparameters, so a load has something to override
CONFIGS = {
    "PA": {"C": 0.5, "select": 1},
    "ADAGRAD_RDA": {"eta": 0.5, "lambda_": 0.05},
    "ADAM": {},
    "NHERD": {"C": 0.3, "diagonal": 2},
    "AROW": {"r": 0.2},
    "SCW": {"C": 0.7, "eta": 0.8, "select": 2},
}


def stream(n=200, seed=0):
    rng = np.random.default_rng(seed)
    truth = np.array([1.0, -2.0, 0.5, 0.0, 1.5, -0.5])
    for _ in range(n):
        x = rng.normal(size=DIM) * (rng.random(DIM) < 0.6)
        y = 1 if np.dot(truth, x) > 0 else -1
        yield x, y


def trained(name):
    model = build_learner(name, DIM, **CONFIGS[name])
    for x, y in stream():
        model.update(x, y)
    return model


def state_vectors(model):
    return [np.asarray(v) for v in model.to_fields().values() if isinstance(v, list)]


class TestBuildLearner(unittest.TestCase):
    def test_names_are_case_insensitive(self):
        self.assertIsInstance(build_learner("pa", 3), PA)
        self.assertEqual(build_learner("adagrad-rda", 3).name(), "ADAGRAD_RDA")
        self.assertEqual(build_learner("Scw", 3).name(), "SCW")

    def test_unknown_learner(self):
        with self.assertRaises(ValueError):
            build_learner("perceptron", 3)

    def test_unknown_parameter(self):
        with self.assertRaises(TypeError):
            build_learner("ADAM", 3, C=1.0)


class TestSharedProperties(unittest.TestCase):
    def test_zero_vector_predicts_negative(self):
        for name in LEARNERS:
            model = build_learner(name, DIM, **CONFIGS[name])
            self.assertEqual(model.predict(np.zeros(DIM)), -1, name)

    def test_predict_is_idempotent(self):
        query = np.array([0.3, -0.1, 0.0, 1.0, 0.2, 0.0])
        for name in LEARNERS:
            model = trained(name)
            first = model.predict(query)
            for _ in range(5):
                self.assertEqual(model.predict(query), first, name)

    def test_state_keeps_dimension(self):
        for name in LEARNERS:
            model = trained(name)
            vectors = state_vectors(model)
            self.assertTrue(vectors, name)
            for v in vectors:
                self.assertEqual(v.shape, (DIM,), name)
            self.assertEqual(model.dim, DIM)

    def test_learners_fit_separable_stream(self):
        for name in LEARNERS:
            model = trained(name)
            hits = sum(model.predict(x) == y for x, y in stream(100, seed=1))
            self.assertGreater(hits, 60, name)

    def test_wrong_feature_length(self):
        for name in LEARNERS:
            model = build_learner(name, DIM)
            with self.assertRaises(DimensionMismatchError):
                model.update(np.ones(DIM + 1), 1)
            with self.assertRaises(DimensionMismatchError):
                model.predict(np.ones(DIM - 1))


class TestPersistence(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def path(self, name):
        return os.path.join(self.tmp.name, name)

    def test_round_trip_overrides_constructor_params(self):
        queries = [x for x, _ in stream(50, seed=2)]
        for name in LEARNERS:
            model = trained(name)
            path = self.path(f"{name}.json")
            model.save(path)

            fresh = build_learner(name, 2)
            fresh.load(path)
            self.assertEqual(fresh.dim, DIM)
            saved, loaded = model.to_fields(), fresh.to_fields()
            for key, value in saved.items():
                if isinstance(value, list):
                    np.testing.assert_allclose(loaded[key], value, err_msg=name)
                else:
                    self.assertEqual(loaded[key], value, f"{name}.{key}")
            for x in queries:
                self.assertEqual(fresh.predict(x), model.predict(x), name)

    def test_loaded_model_keeps_learning_identically(self):
        for name in LEARNERS:
            model = trained(name)
            path = self.path(f"{name}.json")
            model.save(path)
            fresh = load_model(path).learner
            for x, y in stream(20, seed=3):
                self.assertEqual(fresh.update(x, y), model.update(x, y), name)
            for a, b in zip(state_vectors(fresh), state_vectors(model)):
                np.testing.assert_allclose(a, b, err_msg=name)

    def test_archive_is_named_fields(self):
        path = self.path("pa.json")
        PA(2, C=0.5, select=0).save(path)
        with open(path) as f:
            fields = json.load(f)
        self.assertEqual(
            fields, {"name": "PA", "weight": [0.0, 0.0], "dimension": 2, "C": 0.5, "select": 0}
        )

    def test_bad_archive_leaves_model_untouched(self):
        path = self.path("bad.json")
        with open(path, "w") as f:
            json.dump({"name": "PA", "weight": [1.0], "dimension": 2, "C": 0.5, "select": 0}, f)
        model = PA(3, C=2.0, select=2)
        model.w[:] = [1.0, 2.0, 3.0]
        with self.assertRaises(ModelFormatError):
            model.load(path)
        self.assertEqual((model.dim, model.C, model.select), (3, 2.0, 2))
        np.testing.assert_array_equal(model.w, [1.0, 2.0, 3.0])

    def test_archive_of_another_learner(self):
        path = self.path("arow.json")
        build_learner("AROW", 2).save(path)
        with self.assertRaises(ModelFormatError):
            PA(2).load(path)

    def test_invalid_selector_in_archive(self):
        path = self.path("pa.json")
        with open(path, "w") as f:
            json.dump({"name": "PA", "weight": [0.0], "dimension": 1, "C": 1.0, "select": 7}, f)
        with self.assertRaises(ModelFormatError):
            PA(1).load(path)

    def test_infinite_dimension_in_archive(self):
        path = self.path("pa.json")
        with open(path, "w") as f:
            json.dump(
                {"name": "PA", "weight": [0.0], "dimension": float("inf"), "C": 1.0, "select": 0}, f
            )
        model = PA(1)
        with self.assertRaises(ModelFormatError):
            model.load(path)
        self.assertEqual(model.dim, 1)
        with self.assertRaises(ModelFormatError):
            load_model(path)

    def test_fractional_dimension_in_archive(self):
        path = self.path("pa.json")
        with open(path, "w") as f:
            json.dump({"name": "PA", "weight": [0.0], "dimension": 1.5, "C": 1.0, "select": 0}, f)
        with self.assertRaises(ModelFormatError):
            PA(1).load(path)

    def test_fractional_timestep_in_archive(self):
        for name in ("ADAGRAD_RDA", "ADAM"):
            path = self.path(f"{name}.json")
            model = trained(name)
            model.save(path)
            with open(path) as f:
                fields = json.load(f)
            fields["timestep"] = 2.7
            with open(path, "w") as f:
                json.dump(fields, f)

            fresh = build_learner(name, DIM)
            with self.assertRaises(ModelFormatError):
                fresh.load(path)
            self.assertEqual(fresh.timestep, 0, name)

            fields["timestep"] = -1
            with open(path, "w") as f:
                json.dump(fields, f)
            with self.assertRaises(ModelFormatError):
                fresh.load(path)

    def test_integral_float_timestep_is_accepted(self):
        path = self.path("adam.json")
        model = trained("ADAM")
        model.save(path)
        with open(path) as f:
            fields = json.load(f)
        fields["timestep"] = float(fields["timestep"])
        with open(path, "w") as f:
            json.dump(fields, f)
        fresh = build_learner("ADAM", DIM)
        fresh.load(path)
        self.assertEqual(fresh.timestep, model.timestep)
        self.assertIsInstance(fresh.timestep, int)

    def test_not_json(self):
        path = self.path("junk.json")
        with open(path, "w") as f:
            f.write("22 serialization::archive\n")
        with self.assertRaises(ModelFormatError):
            load_model(path)

    def test_missing_file(self):
        with self.assertRaises(OSError):
            PA(2).load(self.path("nope.json"))


class TestBinaryModel(unittest.TestCase):
    def test_train_and_infer_records(self):
        model = BinaryModel("pa", 2, select=0)
        self.assertEqual(model.name(), "PA")
        self.assertTrue(model.train("+1 1:1", 2))
        np.testing.assert_array_equal(model.learner.w, [1.0, 0.0])
        self.assertEqual(model.infer("-1 1:0.5", 2), 1)
        self.assertEqual(model.infer("+1 2:1", 2), -1)

    def test_skip_is_reported(self):
        model = BinaryModel("adagrad_rda", 2)
        model.learner.w[0] = 3.0
        self.assertFalse(model.train("+1 1:1", 2))

    def test_dimension_mismatch(self):
        model = BinaryModel("nherd", 2)
        with self.assertRaises(DimensionMismatchError):
            model.train("+1 1:1", 3)
        with self.assertRaises(DimensionMismatchError):
            model.infer("+1 3:1", 2)

    def test_train_and_save_then_load(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "arow.json")
            model = BinaryModel("arow", 3, r=0.5)
            model.train_and_save("-1 2:1 3:0.5", 3, path)
            self.assertTrue(os.path.exists(path))

            other = BinaryModel("arow", 3)
            other.load(path)
            self.assertEqual(other.learner.r, 0.5)
            np.testing.assert_allclose(other.learner.means, model.learner.means)

            again = load_model(path)
            self.assertEqual(again.name(), "AROW")
            self.assertEqual(again.infer("+1 2:1", 3), model.infer("+1 2:1", 3))

            model.save(path)
            self.assertEqual(load_model(path).learner.dim, 3)


if __name__ == "__main__":
    unittest.main()
