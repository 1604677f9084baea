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

import numpy as np

from .common import get_rng


def zeros(shape, dtype=np.float32):
    return np.zeros(shape, dtype=dtype)


def uniform(shape=None, low=0.0, high=1.0, random_state=None, dtype=np.float32):
    """Samples drawn uniformly in [low, high).

    Parameters
    ----------
    shape: int or tuple of ints, optional
        Output shape, a single value is drawn if None.

    random_state: int or np.random.RandomState, optional
        Seed or random state used for the draws.

    dtype: str or dtype, default: np.float32
        Data type of the output.
    """
    out = np.asarray(get_rng(random_state).uniform(low, high, shape)).astype(dtype)
    # rounding to a narrower dtype may land a draw exactly on `high`
    cast = np.dtype(dtype).type
    return np.minimum(out, np.nextafter(cast(high), cast(low)))
