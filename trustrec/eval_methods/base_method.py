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

import time
from collections import OrderedDict

import numpy as np
from tqdm.auto import tqdm

from ..data import Dataset, GraphModality
from ..experiment.result import Result
from ..metrics import RatingMetric
from ..utils import get_rng


def rating_eval(model, metrics, test_set, user_based=False, verbose=False):
    """Compare the predicted ratings of `model` with the ratings of `test_set`.

    Parameters
    ----------
    model: :obj:`trustrec.models.Recommender`, required
        Fitted model.

    metrics: list of :obj:`trustrec.metrics.RatingMetric`, required

    test_set: :obj:`trustrec.data.Dataset`, required

    user_based: bool, optional, default: False
        If True, each metric is first computed per user then averaged over users,
        otherwise it is computed over all ratings at once.

    verbose: bool, optional, default: False
        Show a progress bar while rating.

    Returns
    -------
    (avg_results, user_results): tuple of lists
        One average value and one {user_idx: value} dictionary per metric,
        the dictionaries being empty when `user_based` is False.
    """
    if len(metrics) == 0:
        return [], []

    users, items, ratings = test_set.uir_tuple
    pairs = tqdm(
        zip(users, items), desc="Rating", total=len(users), disable=not verbose
    )
    preds = np.asarray([float(model.rate(u, i)) for u, i in pairs], dtype="float")

    avg_results, user_results = [], []
    for mt in metrics:
        if not user_based:
            avg_results.append(mt.compute(gt_ratings=ratings, pd_ratings=preds))
            user_results.append({})
            continue

        per_user = {}
        for user_idx in np.unique(users):
            mask = users == user_idx
            per_user[user_idx] = float(
                mt.compute(gt_ratings=ratings[mask], pd_ratings=preds[mask])
            )
        avg_results.append(float(np.mean(list(per_user.values()))))
        user_results.append(per_user)

    return avg_results, user_results


class BaseMethod:
    """Builds train/test(/validation) datasets sharing the id maps and the
    trust network, then fits and evaluates models on them.

    Parameters
    ----------
    data: array-like, required
        Raw rating data in the triplet format [(user_id, item_id, rating_value)].

    seed: int, optional, default: None
        Random seed for reproducibility.

    exclude_unknowns: bool, optional, default: True
        If True, test and validation ratings of users or items unseen in
        training are dropped.

    verbose: bool, optional, default: False
        Output running log.

    user_graph: :obj:`trustrec.data.GraphModality`, optional, default: None
        Trust network among users, in the triplet format (trustor, trustee, value).
    """

    def __init__(self, data=None, seed=None, exclude_unknowns=True, verbose=False, **kwargs):
        self._data = data
        self.seed = seed
        self.rng = get_rng(seed)
        self.exclude_unknowns = exclude_unknowns
        self.verbose = verbose
        self.train_set = None
        self.test_set = None
        self.val_set = None
        self.rating_metrics = []
        self.global_uid_map = OrderedDict()
        self.global_iid_map = OrderedDict()
        self.user_graph = kwargs.get("user_graph", None)

    @property
    def user_graph(self):
        return self._user_graph

    @user_graph.setter
    def user_graph(self, graph):
        if graph is not None and not isinstance(graph, GraphModality):
            raise ValueError("user_graph has to be a GraphModality, got {}".format(type(graph)))
        self._user_graph = graph

    def _organize_metrics(self, metrics):
        """Keep the rating metrics, sorted by name"""
        if isinstance(metrics, dict):
            metrics = metrics.get("rating", [])
        if not isinstance(metrics, list):
            raise ValueError("metrics has to be a list or a dict, got {}".format(type(metrics)))

        for mt in metrics:
            if not isinstance(mt, RatingMetric):
                raise ValueError("{} is not a rating metric".format(type(mt).__name__))
        self.rating_metrics = sorted(metrics, key=lambda mt: mt.name)

    def _build_dataset(self, data, exclude_unknowns):
        return Dataset.build(
            data,
            global_uid_map=self.global_uid_map,
            global_iid_map=self.global_iid_map,
            exclude_unknowns=exclude_unknowns,
        )

    def _build_datasets(self, train_data, test_data, val_data=None):
        self.train_set = self._build_dataset(train_data, exclude_unknowns=False)
        self.test_set = self._build_dataset(test_data, self.exclude_unknowns)
        if val_data is not None and len(val_data) > 0:
            self.val_set = self._build_dataset(val_data, self.exclude_unknowns)

        if self.verbose:
            print("Training data: {} users, {} items, {} ratings in [{:.1f}, {:.1f}]".format(
                self.train_set.num_users,
                self.train_set.num_items,
                self.train_set.num_ratings,
                self.train_set.min_rating,
                self.train_set.max_rating,
            ))
            print("Test data: {} ratings".format(self.test_set.num_ratings))
            if self.val_set is not None:
                print("Validation data: {} ratings".format(self.val_set.num_ratings))
            print("Known users = {}, known items = {}".format(
                len(self.global_uid_map), len(self.global_iid_map)))

    def _build_modalities(self):
        if self.user_graph is not None:
            self.user_graph.build(id_map=self.global_uid_map)
            if self.verbose:
                print("Trust relations among known users = {}".format(len(self.user_graph.val)))

        for data_set in (self.train_set, self.test_set, self.val_set):
            if data_set is not None:
                data_set.add_modalities(user_graph=self.user_graph)

    def build(self, train_data, test_data, val_data=None):
        for name, data in (("train_data", train_data), ("test_data", test_data)):
            if data is None or len(data) == 0:
                raise ValueError("%s is missing or empty" % name)

        self.global_uid_map.clear()
        self.global_iid_map.clear()
        self.val_set = None

        self._build_datasets(train_data, test_data, val_data)
        self._build_modalities()
        return self

    def _eval(self, model, test_set, user_based):
        avg_results, user_results = rating_eval(
            model, self.rating_metrics, test_set, user_based=user_based, verbose=self.verbose
        )
        names = [mt.name for mt in self.rating_metrics]
        return Result(
            model.name,
            OrderedDict(zip(names, avg_results)),
            OrderedDict(zip(names, user_results)),
        )

    def evaluate(self, model, metrics, user_based, show_validation=True):
        """Fit `model` on the training set, then evaluate it on the test set
        and on the validation set if there is one.

        Returns
        -------
        (test_result, val_result): tuple of :obj:`trustrec.experiment.Result`
            `val_result` is None without validation set.
        """
        if self.train_set is None or self.test_set is None:
            raise ValueError("call build() before evaluate()")

        self._organize_metrics(metrics)

        if self.verbose:
            print("\n[{}] Fitting...".format(model.name))
        start = time.time()
        model.fit(self.train_set, self.val_set)
        train_time = time.time() - start

        if self.verbose:
            print("[{}] Rating the held-out sets...".format(model.name))
        start = time.time()
        test_result = self._eval(model, self.test_set, user_based)
        test_result.metric_avg_results["Train (s)"] = train_time
        test_result.metric_avg_results["Test (s)"] = time.time() - start

        val_result = None
        if show_validation and self.val_set is not None:
            start = time.time()
            val_result = self._eval(model, self.val_set, user_based)
            val_result.metric_avg_results["Time (s)"] = time.time() - start

        return test_result, val_result

    @classmethod
    def from_splits(cls, train_data, test_data, val_data=None, exclude_unknowns=False,
                    seed=None, verbose=False, **kwargs):
        """Build an evaluation method from already split rating data"""
        method = cls(exclude_unknowns=exclude_unknowns, seed=seed, verbose=verbose, **kwargs)
        return method.build(train_data=train_data, test_data=test_data, val_data=val_data)
