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

from collections import OrderedDict

NUM_FMT = "{:.4f}"


def _table_format(data, headers, index, h_bars=None):
    """Render rows of strings as a text table with a leading index column.
    A separator line is drawn before every row position listed in `h_bars`.
    """
    rows = [[""] + list(headers)] + [[idx] + list(row) for idx, row in zip(index, data)]
    widths = [max(len(str(row[c])) for row in rows) for c in range(len(rows[0]))]

    row_fmt = "{:<%d} | " % widths[0] + " | ".join("{:>%d}" % w for w in widths[1:]) + "\n"
    bar = row_fmt.format(*["-" * w for w in widths]).replace("|", "+")

    h_bars = set() if h_bars is None else set(h_bars)
    output = ""
    for i, row in enumerate(rows):
        if i in h_bars:
            output += bar
        output += row_fmt.format(*row)
    return output


class Result:
    """Metric values of one model on one evaluation set.

    `metric_avg_results` maps metric names (and timings) to averages,
    `metric_user_results` maps metric names to {user_idx: value} dictionaries.
    """

    def __init__(self, model_name, metric_avg_results, metric_user_results):
        self.model_name = model_name
        self.metric_avg_results = OrderedDict(metric_avg_results)
        self.metric_user_results = metric_user_results

    def __str__(self):
        headers = list(self.metric_avg_results.keys())
        data = [[NUM_FMT.format(v) for v in self.metric_avg_results.values()]]
        return _table_format(data, headers, index=[self.model_name], h_bars=[1])


class ExperimentResult(list):
    """Results of several models, printed as one table"""

    def __str__(self):
        headers = []
        for r in self:
            headers.extend(m for m in r.metric_avg_results if m not in headers)

        data = [
            [
                NUM_FMT.format(r.metric_avg_results[m])
                if m in r.metric_avg_results
                else "N/A"
                for m in headers
            ]
            for r in self
        ]
        index = [r.model_name for r in self]
        return _table_format(data, headers, index, h_bars=[1])
