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

import unittest

import numpy as np
import numpy.testing as npt

from trustrec.utils.init_utils import zeros, uniform


class TestInitUtils(unittest.TestCase):

    def setUp(self):
        self.shape = (2, 3)

    def test_zeros(self):
        npt.assert_array_equal(zeros(self.shape), np.zeros(self.shape, dtype=np.float32))

    def test_uniform(self):
        x = uniform(self.shape, random_state=123)
        self.assertEqual(x.shape, self.shape)
        self.assertEqual(x.dtype, np.float32)
        self.assertTrue(np.all(x >= 0.0))
        self.assertTrue(np.all(x < 1.0))

        np.random.seed(123)
        npt.assert_array_equal(x, np.random.uniform(0.0, 1.0, self.shape).astype(np.float32))

    def test_uniform_upper_bound(self):
        x = uniform((1000, 50), low=0.0, high=1.0, random_state=1)
        self.assertLess(np.max(x), 1.0)

    def test_uniform_scalar(self):
        x = uniform(random_state=7)
        self.assertEqual(x.shape, ())


if __name__ == '__main__':
    unittest.main()
