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

import copy
import inspect
import warnings

from ..exception import ScoreException
from ..utils.common import clip

# statistics of the training data, copied from the Dataset by `fit`
TRAIN_ATTRS = (
    "num_users",
    "num_items",
    "uid_map",
    "iid_map",
    "min_rating",
    "max_rating",
    "global_mean",
)


class Recommender:
    """Base class of rating prediction models.

    Parameters
    ----------
    name: str, required
        Name of the recommender model.

    trainable: boolean, optional, default: True
        When False, `fit` only records the training data statistics.

    verbose: boolean, optional, default: False
        When True, running logs are displayed.

    Attributes
    ----------
    num_users, num_items: int
        Number of users and items of the training data.

    uid_map, iid_map: dict
        Mappings of raw user and item ids to indices.

    min_rating, max_rating, global_mean: float
        Statistics of the training ratings.
    """

    def __init__(self, name, trainable=True, verbose=False):
        self.name = name
        self.trainable = trainable
        self.verbose = verbose
        self.is_fitted = False
        for attr in TRAIN_ATTRS:
            setattr(self, attr, None)

    @classmethod
    def _get_init_params(cls):
        """Sorted names of the constructor arguments"""
        params = inspect.signature(cls.__init__).parameters
        return sorted(name for name in params if name != "self")

    def clone(self, new_params=None):
        """Create a new, unfitted model with the same constructor arguments.

        Parameters
        ----------
        new_params: dict, optional, default: None
            Constructor arguments overriding the current ones.
        """
        new_params = {} if new_params is None else new_params
        init_params = {
            name: new_params[name] if name in new_params else copy.deepcopy(getattr(self, name))
            for name in self._get_init_params()
        }
        return self.__class__(**init_params)

    def fit(self, train_set, val_set=None):
        """Record the id maps and rating statistics of `train_set`.

        Parameters
        ----------
        train_set: :obj:`trustrec.data.Dataset`, required
            User-Item rating data as well as the trust network.

        val_set: :obj:`trustrec.data.Dataset`, optional, default: None
            User-Item rating data for model selection purposes.

        Returns
        -------
        self : object
        """
        if self.is_fitted:
            warnings.warn("%s is already fitted, fitting again overwrites it" % self.name)

        for attr in TRAIN_ATTRS:
            setattr(self, attr, getattr(train_set, attr))
        self.is_fitted = True
        return self

    def knows_user(self, user_idx):
        return user_idx is not None and 0 <= user_idx < self.num_users

    def knows_item(self, item_idx):
        return item_idx is not None and 0 <= item_idx < self.num_items

    def score(self, user_idx, item_idx=None):
        """Predict the rating of a user for an item, or for all known items
        when `item_idx` is None. Raises :obj:`ScoreException` for unknowns.
        """
        raise NotImplementedError("%s does not implement score()" % type(self).__name__)

    def default_score(self):
        """Prediction used for unknown users or items"""
        return self.global_mean

    def rate(self, user_idx, item_idx, clipping=True):
        """Rating of a user for an item, the global mean for unknown ones.

        Parameters
        ----------
        user_idx: int, required
            The index of the user.

        item_idx: int, required
            The index of the item.

        clipping: bool, default: True
            Whether to clip the prediction into the training rating range.

        Returns
        -------
        A scalar
        """
        try:
            rating_pred = self.score(user_idx, item_idx)
        except ScoreException:
            rating_pred = self.default_score()

        if clipping:
            rating_pred = clip(rating_pred, self.min_rating, self.max_rating)
        return rating_pred
