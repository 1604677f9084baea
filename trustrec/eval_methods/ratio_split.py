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

from math import ceil

import numpy as np

from .base_method import BaseMethod
from ..utils.common import safe_indexing


class RatioSplit(BaseMethod):
    """Shuffle the ratings once, then cut them into train, validation and test sets.

    Parameters
    ----------
    data: array-like, required
        Raw rating data in the triplet format [(user_id, item_id, rating_value)].

    test_size: float, optional, default: 0.2
        Share of the ratings held out for testing, or their count when >= 1.

    val_size: float, optional, default: 0.0
        Share of the ratings held out for validation, or their count when >= 1.

    seed: int, optional, default: None
        Random seed for reproducibility.

    exclude_unknowns: bool, optional, default: True
        Drop held-out ratings of users or items absent from the training set.

    verbose: bool, optional, default: False
        Output running log.

    user_graph: :obj:`trustrec.data.GraphModality`, optional, default: None
        Trust network among users.
    """

    def __init__(
        self,
        data,
        test_size=0.2,
        val_size=0.0,
        seed=None,
        exclude_unknowns=True,
        verbose=False,
        **kwargs
    ):
        super().__init__(
            data=data,
            seed=seed,
            exclude_unknowns=exclude_unknowns,
            verbose=verbose,
            **kwargs
        )

        self.train_size, self.val_size, self.test_size = self.validate_size(
            val_size, test_size, len(self._data)
        )
        self._split()

    @staticmethod
    def validate_size(val_size, test_size, num_ratings):
        """Turn proportions into sizes, returning (train_size, val_size, test_size)"""
        sizes = []
        for name, size in (("val_size", val_size), ("test_size", test_size)):
            if size is None:
                size = 0.0
            elif size < 0:
                raise ValueError("{}={} should be greater than zero".format(name, size))
            elif size >= num_ratings:
                raise ValueError(
                    "{}={} should be less than the number of ratings {}".format(
                        name, size, num_ratings
                    )
                )
            sizes.append(ceil(size * num_ratings) if size < 1 else size)
        val_size, test_size = sizes

        if val_size + test_size >= num_ratings:
            raise ValueError(
                "The sum of val_size and test_size ({}) should be smaller "
                "than the number of ratings {}".format(val_size + test_size, num_ratings)
            )

        train_size = num_ratings - (val_size + test_size)

        return int(train_size), int(val_size), int(test_size)

    def _split(self):
        # one permutation cut at the train and validation boundaries
        data_idx = self.rng.permutation(len(self._data))
        bounds = [self.train_size, self.train_size + self.val_size]
        train_data, val_data, test_data = [
            safe_indexing(self._data, idx) for idx in np.split(data_idx, bounds)
        ]
        self.build(train_data=train_data, test_data=test_data, val_data=val_data)
