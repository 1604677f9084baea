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
"""Fit to and evaluate SoRec on rating and trust files (e.g., FilmTrust)"""

import sys

from trustrec.data import GraphModality, Reader
from trustrec.eval_methods import RatioSplit
from trustrec.experiment import Experiment
from trustrec import metrics
from trustrec.models import SoRec

# usage: python sorec_trust.py ratings.txt trust.txt
rating_file, trust_file = sys.argv[1], sys.argv[2]

# both files hold whitespace separated triplets,
# (user, item, rating) and (trustor, trustee, trust_value)
reader = Reader()
ratings = reader.read(rating_file, fmt="UIR", sep=" ")
trust = reader.read(trust_file, fmt="UIR", sep=" ")

# SoRec jointly factorizes the user-item and user-user (trust) matrices
user_graph_modality = GraphModality(data=trust)

ratio_split = RatioSplit(
    data=ratings,
    test_size=0.2,
    exclude_unknowns=True,
    verbose=True,
    user_graph=user_graph_modality,
    seed=123,
)

sorec = SoRec(
    k=10,
    max_iter=50,
    learning_rate=0.001,
    bold_driver=True,
    early_stop=True,
    verbose=True,
    seed=123,
)

Experiment(
    eval_method=ratio_split, models=[sorec], metrics=[metrics.MAE(), metrics.RMSE()]
).run()

print("Final training loss = {:.4f} ({})".format(sorec.losses[-1], sorec.state))
