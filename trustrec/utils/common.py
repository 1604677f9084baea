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

import numbers

import numpy as np

# exp(30) is far below the float32 overflow point, sigmoid(30) already rounds to 1.0
SIGMOID_CLIP = 30.0


def sigmoid(x):
    """Logistic function, the input is clamped to [-SIGMOID_CLIP, SIGMOID_CLIP]"""
    x = np.clip(x, -SIGMOID_CLIP, SIGMOID_CLIP)
    return 1.0 / (1.0 + np.exp(-x))


def sigmoid_grad(x):
    """Derivative of the logistic function evaluated at x"""
    s = sigmoid(x)
    return s * (1.0 - s)


def clip(values, lower_bound, upper_bound):
    """Bound scalars or arrays to [lower_bound, upper_bound]"""
    return np.clip(values, lower_bound, upper_bound)


def dot_product(user_factors, item_factors, user_idx, item_idx):
    """Default base prediction: inner product of the indexed factor rows.

    Works for scalar indices as well as for aligned index arrays, in which
    case one score per (user_idx[n], item_idx[n]) pair is returned.
    """
    return np.sum(user_factors[user_idx] * item_factors[item_idx], axis=-1)


def safe_indexing(X, indices):
    """Rows of a numpy array, or elements of a list, at `indices`"""
    if hasattr(X, "shape"):
        return X[indices]
    return [X[idx] for idx in indices]


def validate_format(input_format, valid_formats):
    """Return `input_format`, or raise ValueError when it is not in `valid_formats`"""
    if input_format not in valid_formats:
        raise ValueError(
            "{} data format is not in valid formats ({})".format(
                input_format, valid_formats
            )
        )
    return input_format


def get_rng(seed):
    """numpy RandomState built from `seed`.

    None gives the global numpy RandomState, an integer seeds a new one
    and a RandomState is returned as is.
    """
    if seed is None:
        return np.random.mtrand._rand
    if isinstance(seed, np.random.RandomState):
        return seed
    if isinstance(seed, (numbers.Integral, np.integer)):
        return np.random.RandomState(seed)
    raise ValueError("{} cannot seed a numpy.random.RandomState".format(seed))
