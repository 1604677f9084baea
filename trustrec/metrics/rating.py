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


class RatingMetric:
    """Metric comparing predicted ratings with ground-truth ratings.

    Attributes
    ----------
    name: string,
        Name of the measure.

    type: string, value: 'rating'
        Type of the metric.

    higher_better: bool
        Whether a larger value means a better model.
    """

    def __init__(self, name=None, higher_better=False):
        self.type = "rating"
        self.name = name
        self.higher_better = higher_better

    @staticmethod
    def _errors(gt_ratings, pd_ratings):
        gt_ratings = np.asarray(gt_ratings, dtype="float")
        pd_ratings = np.asarray(pd_ratings, dtype="float")
        if gt_ratings.shape != pd_ratings.shape:
            raise ValueError(
                "shape mismatch: {} ground-truth vs. {} predicted ratings".format(
                    gt_ratings.shape, pd_ratings.shape
                )
            )
        return gt_ratings - pd_ratings

    def compute(self, gt_ratings, pd_ratings, weights=None, **kwargs):
        """Compute the metric value.

        Parameters
        ----------
        gt_ratings: Numpy array
            Ground-truth rating values.

        pd_ratings: Numpy array
            Predicted rating values.

        weights: Numpy array, optional, default: None
            Weights for rating values.

        **kwargs: For compatibility

        Returns
        -------
        res: A scalar.
        """
        raise NotImplementedError()


class MAE(RatingMetric):
    """Mean Absolute Error"""

    def __init__(self):
        RatingMetric.__init__(self, name="MAE")

    def compute(self, gt_ratings, pd_ratings, weights=None, **kwargs):
        errors = self._errors(gt_ratings, pd_ratings)
        return np.average(np.abs(errors), axis=0, weights=weights)


class MSE(RatingMetric):
    """Mean Squared Error"""

    def __init__(self):
        RatingMetric.__init__(self, name="MSE")

    def compute(self, gt_ratings, pd_ratings, weights=None, **kwargs):
        errors = self._errors(gt_ratings, pd_ratings)
        return np.average(errors ** 2, axis=0, weights=weights)


class RMSE(MSE):
    """Root Mean Squared Error"""

    def __init__(self):
        RatingMetric.__init__(self, name="RMSE")

    def compute(self, gt_ratings, pd_ratings, weights=None, **kwargs):
        return np.sqrt(MSE.compute(self, gt_ratings, pd_ratings, weights=weights))
