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

import warnings
from collections import OrderedDict

import numpy as np
from scipy.sparse import csr_matrix


class Dataset:
    """Rating observations mapped to contiguous user and item indices.

    Parameters
    ----------
    num_users: int, required
        Number of users known when the dataset was built.

    num_items: int, required
        Number of items known when the dataset was built.

    uid_map: :obj:`OrderedDict`, required
        Mapping from raw user ids to indices, shared by the datasets of one split.

    iid_map: :obj:`OrderedDict`, required
        Mapping from raw item ids to indices, shared by the datasets of one split.

    uir_tuple: tuple, required
        Tuple of 3 numpy arrays (user_indices, item_indices, rating_values).

    Attributes
    ----------
    user_graph: :obj:`trustrec.data.GraphModality`
        Trust network among users, set by `add_modalities()`.
    """

    def __init__(self, num_users, num_items, uid_map, iid_map, uir_tuple):
        self.num_users = num_users
        self.num_items = num_items
        self.uid_map = uid_map
        self.iid_map = iid_map
        self.uir_tuple = uir_tuple
        self.user_graph = None

        ratings = uir_tuple[2]
        self.num_ratings = len(ratings)
        self.min_rating = float(np.min(ratings))
        self.max_rating = float(np.max(ratings))
        self.global_mean = float(np.mean(ratings))

        self._csr_matrix = None

    @property
    def user_indices(self):
        """Sorted indices of the users having ratings in this dataset"""
        return np.unique(self.uir_tuple[0])

    @property
    def item_indices(self):
        """Sorted indices of the items having ratings in this dataset"""
        return np.unique(self.uir_tuple[1])

    @property
    def csr_matrix(self):
        """User-item rating matrix in scipy csr format"""
        if self._csr_matrix is None:
            users, items, ratings = self.uir_tuple
            self._csr_matrix = csr_matrix(
                (ratings, (users, items)), shape=(self.num_users, self.num_items)
            )
        return self._csr_matrix

    @classmethod
    def build(cls, data, global_uid_map=None, global_iid_map=None, exclude_unknowns=False):
        """Map (user, item, rating) triplets to indices.

        New users and items are appended to the global maps unless
        `exclude_unknowns` is set, in which case their ratings are skipped.
        Repeated (user, item) pairs keep their first rating.
        """
        uid_map = OrderedDict() if global_uid_map is None else global_uid_map
        iid_map = OrderedDict() if global_iid_map is None else global_iid_map

        seen = set()
        n_duplicates = 0
        users, items, ratings = [], [], []
        for uid, iid, rating, *_ in data:
            if exclude_unknowns and (uid not in uid_map or iid not in iid_map):
                continue
            if (uid, iid) in seen:
                n_duplicates += 1
                continue
            seen.add((uid, iid))
            users.append(uid_map.setdefault(uid, len(uid_map)))
            items.append(iid_map.setdefault(iid, len(iid_map)))
            ratings.append(float(rating))

        if not ratings:
            raise ValueError("data is empty after being filtered!")

        if n_duplicates > 0:
            warnings.warn("%d duplicated ratings are removed" % n_duplicates)

        uir_tuple = (
            np.asarray(users, dtype="int"),
            np.asarray(items, dtype="int"),
            np.asarray(ratings, dtype="float"),
        )
        return cls(len(uid_map), len(iid_map), uid_map, iid_map, uir_tuple)

    @classmethod
    def from_uir(cls, data):
        return cls.build(data)

    def add_modalities(self, user_graph=None):
        self.user_graph = user_graph
