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

import os

import numpy as np

from ..recommender import Recommender
from ...exception import ScoreException
from ...utils.common import sigmoid, clip, dot_product


class SoRec(Recommender):
    """Social recommendation using probabilistic matrix factorization.

    Parameters
    ----------
    k: int, optional, default: 10
        The dimension of the latent factors.

    max_iter: int, optional, default: 100
        Maximum number of epochs of full-batch gradient descent.

    learning_rate: float, optional, default: 0.01
        The learning rate.

    lambda_u: float, optional, default: 0.01
        The regularization weight of the user factors U.

    lambda_v: float, optional, default: 0.01
        The regularization weight of the item factors V.

    reg_rate: float, optional, default: 0.01
        The weight of the trust reconstruction loss.

    reg_social: float, optional, default: 0.01
        The regularization weight of the social factors Z.

    early_stop: boolean, optional, default: False
        When True, training stops once the absolute change of the loss
        between two consecutive epochs falls below `tol`.

    tol: float, optional, default: 1e-5
        Convergence threshold on the loss change.

    bold_driver: boolean, optional, default: False
        When True, the learning rate grows by 5% after each loss decrease
        and is halved after each loss increase.

    decay: float, optional, default: 1.0
        Multiplicative learning rate decay applied after each epoch
        when in (0, 1) and `bold_driver` is off.

    max_learning_rate: float, optional, default: None
        Upper bound of the adapted learning rate.

    base_predict: callable, optional, default: None
        Function `(U, V, user_idx, item_idx)` computing the raw prediction before
        the logistic squash. Its gradient w.r.t. the user (item) factors must be
        the item (user) factors, e.g., the inner product plus constant terms.
        If None, the inner product is used.

    user_dim: int, optional, default: 0
        Position of the user index in the features given to `predict`.

    item_dim: int, optional, default: 1
        Position of the item index in the features given to `predict`.

    num_threads: int, optional, default: 1
        Number of threads applying the parameter updates.
        If 0, all available CPUs are used.

    name: string, optional, default: 'SoRec'
        The name of the recommender model.

    trainable: boolean, optional, default: True
        When False, the model is not trained and the factors given
        in `init_params` are used for prediction.

    verbose: boolean, optional, default: False
        When True, some running logs are displayed.

    init_params: dictionary, optional, default: None
        List of initial parameters, e.g., init_params = {'U':U, 'V':V, 'Z':Z}.
        U: ndarray of shape (n_users, k), user latent factors.
        V: ndarray of shape (n_items, k), item latent factors.
        Z: ndarray of shape (n_users, k), social (trustee) latent factors.

    seed: int, optional, default: None
        Random seed for parameter initialization.

    References
    ----------
    * H. Ma, H. Yang, M. R. Lyu, and I. King. SoRec: Social recommendation using probabilistic matrix factorization. \
    In CIKM, pp. 931-940, 2008.
    """

    def __init__(
        self,
        name="SoRec",
        k=10,
        max_iter=100,
        learning_rate=0.01,
        lambda_u=0.01,
        lambda_v=0.01,
        reg_rate=0.01,
        reg_social=0.01,
        early_stop=False,
        tol=1e-5,
        bold_driver=False,
        decay=1.0,
        max_learning_rate=None,
        base_predict=None,
        user_dim=0,
        item_dim=1,
        num_threads=1,
        trainable=True,
        verbose=False,
        init_params=None,
        seed=None,
    ):
        Recommender.__init__(self, name=name, trainable=trainable, verbose=verbose)
        self.k = k
        self.max_iter = max_iter
        self.learning_rate = learning_rate
        self.lambda_u = lambda_u
        self.lambda_v = lambda_v
        self.reg_rate = reg_rate
        self.reg_social = reg_social
        self.early_stop = early_stop
        self.tol = tol
        self.bold_driver = bold_driver
        self.decay = decay
        self.max_learning_rate = max_learning_rate
        self.base_predict = base_predict
        self.user_dim = user_dim
        self.item_dim = item_dim
        self.seed = seed

        if 0 < num_threads < os.cpu_count():
            self.num_threads = num_threads
        else:
            self.num_threads = os.cpu_count()

        # Init params if provided
        self.init_params = {} if init_params is None else init_params
        self.U = self.init_params.get("U", None)
        self.V = self.init_params.get("V", None)
        self.Z = self.init_params.get("Z", None)

        self.losses = []
        self.state = None

    def _predict_fn(self):
        return dot_product if self.base_predict is None else self.base_predict

    def _rating_range(self):
        # a constant rating scale is mapped from 0
        if self.min_rating == self.max_rating:
            return 0.0, self.max_rating
        return self.min_rating, self.max_rating

    def fit(self, train_set, val_set=None):
        """Fit the model to observations.

        Parameters
        ----------
        train_set: :obj:`trustrec.data.Dataset`, required
            User-Item rating data, with the trust network as `user_graph` modality.

        val_set: :obj:`trustrec.data.Dataset`, optional, default: None
            User-Item rating data for model selection purposes.

        Returns
        -------
        self : object
        """
        Recommender.fit(self, train_set, val_set)

        if not self.trainable:
            if self.verbose:
                print("%s is trained already (trainable = False)" % self.name)
            return self

        from .sorec import DegreeIndex, sorec

        if train_set.user_graph is None:
            raise ValueError(
                "SoRec requires a trust network, "
                "train_set has no user_graph modality"
            )

        (rat_uid, rat_iid, rat_val) = train_set.uir_tuple
        map_uid = train_set.user_indices
        (net_uid, net_jid, net_val) = train_set.user_graph.get_train_triplet(
            map_uid, map_uid
        )
        # degrees come from the whole network, trust-only users included
        degree = DegreeIndex(
            *train_set.user_graph.get_node_degree(train_set.uid_map, train_set.num_users)
        )
        min_rating, max_rating = self._rating_range()

        if self.verbose:
            print("Learning...")

        res = sorec(
            rat_uid,
            rat_iid,
            rat_val,
            net_uid,
            net_jid,
            net_val,
            k=self.k,
            n_users=train_set.num_users,
            n_items=train_set.num_items,
            min_rating=min_rating,
            max_rating=max_rating,
            n_epochs=self.max_iter,
            learning_rate=self.learning_rate,
            lambda_u=self.lambda_u,
            lambda_v=self.lambda_v,
            reg_rate=self.reg_rate,
            reg_social=self.reg_social,
            early_stop=self.early_stop,
            tol=self.tol,
            bold_driver=self.bold_driver,
            decay=self.decay,
            max_learning_rate=self.max_learning_rate,
            base_predict=self.base_predict,
            degree=degree,
            init_params={"U": self.U, "V": self.V, "Z": self.Z},
            num_threads=self.num_threads,
            verbose=self.verbose,
            seed=self.seed,
        )

        self.U = res["U"]
        self.V = res["V"]
        self.Z = res["Z"]
        self.losses = res["losses"]
        self.state = res["state"]

        if self.verbose:
            print("Learning completed")

        return self

    def score(self, user_idx, item_idx=None):
        """Predict the ratings of a user for an item.

        Parameters
        ----------
        user_idx: int, required
            The index of the user for whom to perform score prediction.

        item_idx: int, optional, default: None
            The index of the item for which to perform score prediction.
            If None, scores for all known items will be returned.

        Returns
        -------
        res : A scalar or a Numpy array
            Predicted ratings within the training rating range
        """
        if not self.knows_user(user_idx):
            raise ScoreException("Can't make score prediction for (user_id=%d)" % user_idx)

        if item_idx is None:
            item_idx = np.arange(self.num_items)
            user_idx = np.full(self.num_items, user_idx)
        elif not self.knows_item(item_idx):
            raise ScoreException(
                "Can't make score prediction for (user_id=%d, item_id=%d)"
                % (user_idx, item_idx)
            )

        base = self._predict_fn()(self.U, self.V, user_idx, item_idx)
        min_rating, max_rating = self._rating_range()
        return min_rating + sigmoid(base) * (max_rating - min_rating)

    def predict(self, discrete_features, continuous_features=None):
        """Predict the rating of the (user, item) pair found in `discrete_features`.

        Parameters
        ----------
        discrete_features: array-like, required
            Features holding the user index at position `user_dim`
            and the item index at position `item_dim`.

        continuous_features: array-like, optional, default: None
            Not used by SoRec.

        Returns
        -------
        res: float
            Predicted rating within [min_rating, max_rating].
        """
        user_idx = int(discrete_features[self.user_dim])
        item_idx = int(discrete_features[self.item_dim])
        score = self.score(user_idx, item_idx)
        return float(clip(score, self.min_rating, self.max_rating))
