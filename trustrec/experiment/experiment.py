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
from datetime import datetime

from .result import ExperimentResult
from ..metrics.rating import RatingMetric
from ..models.recommender import Recommender


class Experiment:
    """Fit and evaluate several models with one evaluation method.

    Parameters
    ----------
    eval_method: :obj:`<trustrec.eval_methods.BaseMethod>`, required
        The evaluation method (e.g., RatioSplit).

    models: list of :obj:`<trustrec.models.Recommender>`, required
        Models to compare, e.g., [SoRec(k=5), SoRec(k=10)]. Other entries are ignored.

    metrics: list of :obj:`<trustrec.metrics.RatingMetric>`, required
        Metrics to report, e.g., [MAE(), RMSE()]. Other entries are ignored.

    user_based: bool, optional, default: True
        Average the metrics over users instead of over ratings.

    show_validation: bool, optional, default: True
        Also report the results on the validation set, if there is one.

    save_dir: str, optional, default: None
        Directory of the experiment log, the current directory if None.
    """

    def __init__(
        self,
        eval_method,
        models,
        metrics,
        user_based=True,
        show_validation=True,
        verbose=False,
        save_dir=None,
    ):
        self.eval_method = eval_method
        self.models = self._keep_instances("models", models, Recommender)
        self.metrics = self._keep_instances("metrics", metrics, RatingMetric)
        self.user_based = user_based
        self.show_validation = show_validation
        self.verbose = verbose
        self.save_dir = save_dir
        self.result = None
        self.val_result = None

    @staticmethod
    def _keep_instances(name, inputs, valid_type):
        if not hasattr(inputs, "__len__"):
            raise ValueError("{} have to be a list, got {}".format(name, type(inputs)))
        return [x for x in inputs if isinstance(x, valid_type)]

    def _write_log(self, output):
        log_dir = "." if self.save_dir is None else self.save_dir
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S-%f")
        log_file = os.path.join(log_dir, "TrustRecExp-{}.log".format(timestamp))
        with open(log_file, "w") as f:
            f.write(output)
        if self.verbose:
            print("Results are written to {}".format(log_file))
        return log_file

    def run(self):
        """Evaluate every model, print the result tables and write them to a log file"""
        with_validation = self.show_validation and self.eval_method.val_set is not None
        self.result = ExperimentResult()
        self.val_result = ExperimentResult() if with_validation else None

        for model in self.models:
            test_result, val_result = self.eval_method.evaluate(
                model=model,
                metrics=self.metrics,
                user_based=self.user_based,
                show_validation=self.show_validation,
            )
            self.result.append(test_result)
            if with_validation:
                self.val_result.append(val_result)

        output = ""
        if with_validation:
            output += "\nVALIDATION:\n...\n{}".format(self.val_result)
        output += "\nTEST:\n...\n{}".format(self.result)
        print(output)

        self._write_log(output)
        return self.result
