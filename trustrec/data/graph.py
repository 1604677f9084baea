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
from collections import Counter, OrderedDict

import numpy as np
import scipy.sparse as sp

from .modality import Modality


class GraphModality(Modality):
    """Directed user-user trust network.

    Parameters
    ----------
    data: List[tuple], required
        Trust relations in the sparse triplet format (trustor, trustee, trust_value),
        e.g., data=[('user1', 'user4', 1.0)].
    """

    def __init__(self, data=None, **kwargs):
        super().__init__(**kwargs)
        self.raw_data = data
        self.map_rid = None
        self.map_cid = None
        self.val = None
        self._in_degree = None
        self._out_degree = None
        self._num_nodes = None
        self._matrix = None

    @property
    def matrix(self):
        """Adjacency matrix of the mapped users in scipy csr format"""
        if self._matrix is None:
            if self._num_nodes is None:
                raise ValueError("GraphModality has to be built first")
            self._matrix = sp.csr_matrix(
                (self.val, (self.map_rid, self.map_cid)),
                shape=(self._num_nodes, self._num_nodes),
            )
        return self._matrix

    def _unique_relations(self):
        relations = OrderedDict()
        for trustor, trustee, value in self.raw_data:
            relations.setdefault((trustor, trustee), float(value))

        n_duplicates = len(self.raw_data) - len(relations)
        if n_duplicates > 0:
            warnings.warn("%d duplicated trust relations are removed" % n_duplicates)
        return relations

    def build(self, id_map=None, **kwargs):
        """Map the relations between users of `id_map` to their indices.

        Relations whose trustor or trustee is not in `id_map` are left out of
        the mapped triplets but still count in the node degrees.
        """
        super().build(id_map=id_map)
        if id_map is None:
            return self
        if self.raw_data is None:
            raise ValueError("data is required to build a GraphModality")

        relations = self._unique_relations()
        nonzero = [pair for pair, value in relations.items() if value != 0]
        self._out_degree = Counter(trustor for trustor, _ in nonzero)
        self._in_degree = Counter(trustee for _, trustee in nonzero)

        mapped = [
            (id_map[trustor], id_map[trustee], value)
            for (trustor, trustee), value in relations.items()
            if trustor in id_map and trustee in id_map
        ]
        rid, cid, val = zip(*mapped) if mapped else ((), (), ())
        self.map_rid = np.asarray(rid, dtype="int")
        self.map_cid = np.asarray(cid, dtype="int")
        self.val = np.asarray(val, dtype="float")

        self._num_nodes = int(max(id_map.values()) + 1) if id_map else 0
        self._matrix = None
        return self

    def get_train_triplet(self, train_row_ids, train_col_ids):
        """Mapped relations from a user of `train_row_ids` to a user of `train_col_ids`.

        Returns
        -------
        (trustor_indices, trustee_indices, trust_values): tuple of numpy arrays
        """
        picked = np.isin(self.map_rid, np.asarray(list(train_row_ids))) & np.isin(
            self.map_cid, np.asarray(list(train_col_ids))
        )
        return self.map_rid[picked], self.map_cid[picked], self.val[picked]

    def get_node_degree(self, id_map, num_nodes):
        """In-degree and out-degree of the users mapped to an index below `num_nodes`.

        Degrees count every nonzero relation of the network, including the
        relations with users missing from `id_map`.

        Returns
        -------
        (in_degree, out_degree): tuple of integer numpy arrays of shape (num_nodes,)
        """
        if self._in_degree is None:
            raise ValueError("GraphModality has to be built first")

        in_degree = np.zeros(num_nodes, dtype="int")
        out_degree = np.zeros(num_nodes, dtype="int")
        for raw_id, idx in id_map.items():
            if idx < num_nodes:
                in_degree[idx] = self._in_degree[raw_id]
                out_degree[idx] = self._out_degree[raw_id]
        return in_degree, out_degree
