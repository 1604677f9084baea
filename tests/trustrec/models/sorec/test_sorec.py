# Copyright 2018 The Cornac Authors. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ============================================================================

import math
import unittest
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import numpy.testing as npt

from trustrec.exception import DivergenceException
from trustrec.models.sorec.sorec import (
    CONVERGED,
    EPOCH_EXHAUSTED,
    DegreeIndex,
    EpochContext,
    adapt_learning_rate,
    apply_update,
    init_factors,
    rating_pass,
    sorec,
)
from trustrec.utils.common import dot_product

# 3 users, 2 items, a single trust edge u0 -> u1
RATINGS = [(0, 0, 5.0), (1, 0, 3.0), (1, 1, 4.0)]
EDGES = [(0, 1, 1.0)]


def _triplets(rows):
    return tuple(np.asarray(col) for col in zip(*rows))


def _reference_epoch(U, V, Z, ratings, edges, in_degree, out_degree, params):
    """One epoch computed entry by entry in double precision"""
    U, V, Z = (np.array(m, dtype=np.float64) for m in (U, V, Z))
    dU, dV, dZ = np.zeros_like(U), np.zeros_like(V), np.zeros_like(Z)
    k = U.shape[1]
    loss = 0.0

    for u, i, s in ratings:
        base = sum(U[u, f] * V[i, f] for f in range(k))
        g = 1.0 / (1.0 + math.exp(-base))
        error = g - (s - params["min_rating"]) / (params["max_rating"] - params["min_rating"])
        loss += error ** 2
        for f in range(k):
            u_f, i_f = U[u, f], V[i, f]
            dU[u, f] += g * (1 - g) * error * i_f + params["lambda_u"] * u_f
            dV[i, f] += g * (1 - g) * error * u_f + params["lambda_v"] * i_f
            loss += params["lambda_u"] * u_f ** 2 + params["lambda_v"] * i_f ** 2

    for u, v, w in edges:
        if w == 0:
            continue
        social = sum(U[u, f] * Z[v, f] for f in range(k))
        g = 1.0 / (1.0 + math.exp(-social))
        weight = math.sqrt(in_degree[v] / (out_degree[u] + in_degree[v]))
        error = g - weight * w
        loss += params["reg_rate"] * error ** 2
        for f in range(k):
            u_f, s_f = U[u, f], Z[v, f]
            dU[u, f] += params["reg_rate"] * g * (1 - g) * error * s_f
            dZ[v, f] += params["reg_rate"] * g * (1 - g) * error * u_f + params["reg_social"] * s_f
            loss += params["reg_social"] * s_f ** 2

    lr = params["learning_rate"]
    return U - lr * dU, V - lr * dV, Z - lr * dZ, 0.5 * loss


class TestDegreeIndex(unittest.TestCase):
    def test_degree_sums(self):
        trustor = np.asarray([0, 1, 0, 2, 3, 3])
        trustee = np.asarray([1, 0, 2, 3, 0, 1])
        trust = np.asarray([1.0, 0.5, 0.0, 1.0, 1.0, 0.8])
        degree = DegreeIndex.from_triplet(trustor, trustee, trust, n_users=5)

        nonzero = np.count_nonzero(trust)
        self.assertEqual(degree.in_degree.sum(), nonzero)
        self.assertEqual(degree.out_degree.sum(), nonzero)
        npt.assert_array_equal(degree.in_degree, [2, 2, 0, 1, 0])
        npt.assert_array_equal(degree.out_degree, [1, 1, 1, 2, 0])

    def test_idempotent(self):
        args = (np.asarray([0, 2, 1]), np.asarray([1, 1, 0]), np.asarray([1.0, 1.0, 1.0]), 3)
        first = DegreeIndex.from_triplet(*args)
        second = DegreeIndex.from_triplet(*args)
        npt.assert_array_equal(first.in_degree, second.in_degree)
        npt.assert_array_equal(first.out_degree, second.out_degree)

    def test_immutable(self):
        degree = DegreeIndex([0, 1], [1, 0])
        with self.assertRaises(ValueError):
            degree.in_degree[0] = 5

    def test_confidence(self):
        degree = DegreeIndex(in_degree=[0, 2], out_degree=[3, 0])
        npt.assert_allclose(degree.confidence(np.asarray([0]), np.asarray([1])), [math.sqrt(2 / 5)])
        self.assertAlmostEqual(float(degree.confidence(np.asarray([0]), np.asarray([1]))[0]), 0.6325, places=4)

    def test_confidence_zero_degrees(self):
        degree = DegreeIndex(in_degree=[0, 0], out_degree=[0, 0])
        npt.assert_array_equal(degree.confidence(np.asarray([0]), np.asarray([1])), [0.0])


class TestInitFactors(unittest.TestCase):
    def test_shapes_and_range(self):
        U, V, Z = init_factors(4, 3, 2, seed=1)
        self.assertEqual(U.shape, (4, 2))
        self.assertEqual(V.shape, (3, 2))
        self.assertEqual(Z.shape, (4, 2))
        for m in (U, V, Z):
            self.assertEqual(m.dtype, np.float32)
            self.assertTrue(np.all(m >= 0) and np.all(m < 1))

    def test_draw_order(self):
        U, V, Z = init_factors(2, 3, 2, seed=7)
        rng = np.random.RandomState(7)
        npt.assert_array_equal(U, rng.uniform(0, 1, (2, 2)).astype(np.float32))
        npt.assert_array_equal(V, rng.uniform(0, 1, (3, 2)).astype(np.float32))
        npt.assert_array_equal(Z, rng.uniform(0, 1, (2, 2)).astype(np.float32))

    def test_init_params(self):
        V0 = np.ones((3, 2))
        U, V, Z = init_factors(2, 3, 2, init_params={"V": V0}, seed=1)
        npt.assert_array_equal(V, V0)
        self.assertIsNot(V, V0)

        with self.assertRaises(ValueError):
            init_factors(2, 3, 2, init_params={"Z": np.ones((3, 2))})


class TestGradientEngine(unittest.TestCase):
    def test_rating_pass_regularizes_per_observation(self):
        U = np.zeros((1, 2), dtype=np.float32) + 1.0
        V = np.zeros((2, 2), dtype=np.float32)
        ctx = EpochContext(U, V, np.zeros((1, 2), dtype=np.float32))

        # sigmoid(0) = 0.5 matches the normalized rating, only regularization remains
        rat = np.asarray([0, 0]), np.asarray([0, 1]), np.asarray([0.5, 0.5], dtype=np.float32)
        rating_pass(ctx, U, V, *rat, lambda_u=0.1, lambda_v=0.1, base_predict=dot_product)

        npt.assert_allclose(ctx.dU, [[0.2, 0.2]])
        npt.assert_allclose(ctx.dV, np.zeros((2, 2)))
        self.assertAlmostEqual(ctx.loss, 0.4, places=6)


class TestUpdates(unittest.TestCase):
    def test_apply_update(self):
        factors = np.ones((3, 2), dtype=np.float32)
        deltas = np.arange(6, dtype=np.float32).reshape(3, 2)
        apply_update(factors, deltas, 0.5)
        npt.assert_allclose(factors, 1 - 0.5 * deltas)

    def test_parallel_equals_serial(self):
        rng = np.random.RandomState(3)
        factors = rng.rand(101, 4).astype(np.float32)
        deltas = rng.rand(101, 4).astype(np.float32)

        serial = apply_update(factors.copy(), deltas, 0.1)
        with ThreadPoolExecutor(max_workers=4) as executor:
            parallel = apply_update(factors.copy(), deltas, 0.1, executor, n_blocks=4)
        npt.assert_array_equal(serial, parallel)

    def test_adapt_learning_rate(self):
        self.assertEqual(adapt_learning_rate(0.1, 1, 1.0, np.inf, bold_driver=True), 0.1)
        self.assertAlmostEqual(adapt_learning_rate(0.1, 2, 1.0, 2.0, bold_driver=True), 0.105)
        self.assertAlmostEqual(adapt_learning_rate(0.1, 2, 2.0, 1.0, bold_driver=True), 0.05)
        self.assertAlmostEqual(adapt_learning_rate(0.1, 2, 1.0, 2.0, decay=0.9), 0.09)
        self.assertEqual(adapt_learning_rate(0.1, 2, 1.0, 2.0, decay=1.0), 0.1)
        self.assertEqual(
            adapt_learning_rate(0.1, 2, 1.0, 2.0, bold_driver=True, max_learning_rate=0.1), 0.1
        )


class TestSoRecLoop(unittest.TestCase):
    def setUp(self):
        self.rat = _triplets(RATINGS)
        self.net = _triplets(EDGES)
        self.params = dict(
            k=2,
            n_users=3,
            n_items=2,
            min_rating=1.0,
            max_rating=5.0,
            learning_rate=0.01,
            lambda_u=0.01,
            lambda_v=0.01,
            reg_rate=0.01,
            reg_social=0.01,
        )

    def _run(self, *, rat=None, net=None, **kwargs):
        params = dict(self.params, **kwargs)
        rat = self.rat if rat is None else rat
        net = self.net if net is None else net
        return sorec(*rat, *net, **params)

    def test_one_epoch_against_reference(self):
        rng = np.random.RandomState(2024)
        U0, V0, Z0 = rng.rand(3, 2), rng.rand(2, 2), rng.rand(3, 2)
        init = {"U": U0, "V": V0, "Z": Z0}

        res = self._run(n_epochs=1, init_params=init)

        U32, V32, Z32 = (m.astype(np.float32) for m in (U0, V0, Z0))
        U1, V1, Z1, loss = _reference_epoch(
            U32, V32, Z32, RATINGS, EDGES, in_degree=[0, 1, 0], out_degree=[1, 0, 0], params=self.params
        )

        npt.assert_allclose(res["U"], U1, rtol=1e-5, atol=1e-6)
        npt.assert_allclose(res["V"], V1, rtol=1e-5, atol=1e-6)
        npt.assert_allclose(res["Z"], Z1, rtol=1e-5, atol=1e-6)
        self.assertEqual(len(res["losses"]), 1)
        self.assertAlmostEqual(res["losses"][0], loss, places=5)

        # user 2 has no observation, its factors stay untouched
        npt.assert_array_equal(res["U"][2], U32[2])
        npt.assert_array_equal(res["Z"][0], Z32[0])

    def test_loss_decreases(self):
        res = self._run(n_epochs=2, seed=123)
        self.assertEqual(len(res["losses"]), 2)
        self.assertLess(res["losses"][1], res["losses"][0])

    def test_deterministic(self):
        first = self._run(n_epochs=5, seed=42)
        second = self._run(n_epochs=5, seed=42)
        for name in ("U", "V", "Z"):
            npt.assert_array_equal(first[name], second[name])
        self.assertListEqual(first["losses"], second["losses"])

    def test_zero_edges_skipped(self):
        with_zero = _triplets(EDGES + [(2, 0, 0.0), (1, 2, 0.0)])
        first = self._run(n_epochs=3, seed=5)
        second = self._run(n_epochs=3, seed=5, net=with_zero)
        for name in ("U", "V", "Z"):
            npt.assert_array_equal(first[name], second[name])
        self.assertListEqual(first["losses"], second["losses"])

    def test_early_stop(self):
        res = self._run(n_epochs=10, seed=1, early_stop=True, tol=1e3)
        self.assertEqual(res["state"], CONVERGED)
        self.assertEqual(len(res["losses"]), 2)

        res = self._run(n_epochs=4, seed=1, early_stop=False, tol=1e3)
        self.assertEqual(res["state"], EPOCH_EXHAUSTED)
        self.assertEqual(len(res["losses"]), 4)

    def test_bold_driver(self):
        res = self._run(n_epochs=3, seed=9, bold_driver=True)
        self.assertLess(res["losses"][2], res["losses"][1])
        self.assertAlmostEqual(res["learning_rate"], 0.01 * 1.05 ** 2)

        res = self._run(n_epochs=3, seed=9, bold_driver=True, max_learning_rate=0.01)
        self.assertAlmostEqual(res["learning_rate"], 0.01)

    def test_divergence(self):
        with np.errstate(over="ignore", invalid="ignore"):
            with self.assertRaises(DivergenceException):
                self._run(n_epochs=5, seed=1, learning_rate=1e30)

    def test_parallel_matches_serial(self):
        serial = self._run(n_epochs=3, seed=11, num_threads=1)
        parallel = self._run(n_epochs=3, seed=11, num_threads=3)
        for name in ("U", "V", "Z"):
            npt.assert_array_equal(serial[name], parallel[name])
        self.assertListEqual(serial["losses"], parallel["losses"])

    def test_custom_base_predict(self):
        def biased(U, V, u, i):
            return dot_product(U, V, u, i) - 1.0

        default = self._run(n_epochs=2, seed=3)
        custom = self._run(n_epochs=2, seed=3, base_predict=biased)
        self.assertNotEqual(default["losses"][0], custom["losses"][0])

    def test_one_epoch_pinned_values(self):
        # every initial prediction is 0, so sigmoid = 0.5 and sigmoid_grad = 0.25
        init = {
            "U": [[1.0, 0.0], [1.0, 0.0], [0.0, 0.0]],
            "V": [[0.0, 1.0], [0.0, 1.0]],
            "Z": [[0.0, 0.0], [0.0, 1.0], [0.0, 0.0]],
        }
        res = self._run(n_epochs=1, init_params=init)

        self.assertAlmostEqual(res["losses"][0], 0.191464466, places=6)
        npt.assert_allclose(res["U"][0], [0.9999, 0.00125517767], rtol=1e-5, atol=1e-8)
        npt.assert_allclose(res["U"][1], [0.9998, 0.000625], rtol=1e-5, atol=1e-8)
        npt.assert_allclose(res["V"], [[0.00125, 0.9998], [0.000625, 0.9999]], rtol=1e-5, atol=1e-8)
        npt.assert_allclose(res["Z"][1], [5.17767e-6, 0.9999], rtol=1e-4, atol=1e-9)

    def test_given_degree(self):
        # another trustor of u1, unknown to the rating data, raises in_degree[1] to 2
        init = {
            "U": [[1.0, 0.0], [1.0, 0.0], [0.0, 0.0]],
            "V": [[0.0, 1.0], [0.0, 1.0]],
            "Z": [[0.0, 0.0], [0.0, 1.0], [0.0, 0.0]],
        }
        degree = DegreeIndex(in_degree=[0, 2, 0], out_degree=[1, 0, 0])
        res = self._run(n_epochs=1, init_params=init, degree=degree)

        # trust target sqrt(2/3) instead of sqrt(1/2)
        self.assertAlmostEqual(res["losses"][0], 0.19175085, places=6)
        npt.assert_allclose(res["Z"][1], [7.91241e-6, 0.9999], rtol=1e-4, atol=1e-9)

        with self.assertRaises(ValueError):
            self._run(n_epochs=1, degree=DegreeIndex([0, 1], [1, 0]))

    def test_invalid_inputs(self):
        with self.assertRaises(ValueError):
            self._run(n_epochs=1, k=0)
        with self.assertRaises(ValueError):
            self._run(n_epochs=0)
        with self.assertRaises(ValueError):
            self._run(n_epochs=1, min_rating=5.0, max_rating=5.0)
        with self.assertRaises(ValueError):
            self._run(n_epochs=1, rat=_triplets(RATINGS + [(3, 0, 1.0)]))
        with self.assertRaises(ValueError):
            self._run(n_epochs=1, rat=_triplets(RATINGS + [(0, -1, 1.0)]))
        with self.assertRaises(ValueError):
            self._run(n_epochs=1, net=_triplets(EDGES + [(0, 3, 1.0)]))
        with self.assertRaises(ValueError):
            self._run(n_epochs=1, rat=(np.asarray([0, 1]), np.asarray([0]), np.asarray([1.0])))
        with self.assertRaises(ValueError):
            self._run(n_epochs=1, init_params={"U": np.ones((2, 2))})


if __name__ == "__main__":
    unittest.main()
