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
"""Full-batch gradient descent for SoRec.

Every epoch accumulates the gradients of the rating loss and of the
trust loss against the factors as they were at the start of the epoch,
then applies all of them at once.
"""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
from tqdm.auto import trange

from ...exception import DivergenceException
from ...utils import get_rng
from ...utils.common import sigmoid, sigmoid_grad, dot_product
from ...utils.init_utils import uniform, zeros

DTYPE = np.float32

INITIALIZED = "initialized"
TRAINING = "training"
CONVERGED = "converged"
EPOCH_EXHAUSTED = "epoch_exhausted"


def init_factors(n_users, n_items, k, init_params=None, seed=None):
    """Create the user (U), item (V) and social (Z) factor matrices.

    Missing matrices are drawn uniformly in [0, 1), in the order U, V, Z,
    from the random state built with `seed`. Given matrices are copied.

    Returns
    -------
    (U, V, Z): tuple of ndarray
        Shapes (n_users, k), (n_items, k) and (n_users, k).
    """
    rng = get_rng(seed)
    init_params = {} if init_params is None else init_params

    factors = []
    for name, n_rows in (("U", n_users), ("V", n_items), ("Z", n_users)):
        param = init_params.get(name, None)
        if param is None:
            param = uniform((n_rows, k), random_state=rng, dtype=DTYPE)
        else:
            param = np.array(param, dtype=DTYPE)
            if param.shape != (n_rows, k):
                raise ValueError(
                    "initial parameters {} dimension error: expected {}, got {}".format(
                        name, (n_rows, k), param.shape
                    )
                )
        factors.append(param)
    return tuple(factors)


class DegreeIndex:
    """In-degree and out-degree of every user over the nonzero trust edges.

    Parameters
    ----------
    in_degree: ndarray, shape (n_users,)
        Number of nonzero incoming edges (users trusting this user).

    out_degree: ndarray, shape (n_users,)
        Number of nonzero outgoing edges (users this user trusts).
    """

    def __init__(self, in_degree, out_degree):
        self.in_degree = np.asarray(in_degree, dtype="int")
        self.out_degree = np.asarray(out_degree, dtype="int")
        self.in_degree.setflags(write=False)
        self.out_degree.setflags(write=False)

    @classmethod
    def from_triplet(cls, trustor, trustee, trust, n_users):
        """Count degrees from a trust network in the sparse triplet format"""
        trustor = np.asarray(trustor, dtype="int")
        trustee = np.asarray(trustee, dtype="int")
        nonzero = np.asarray(trust) != 0
        in_degree = np.bincount(trustee[nonzero], minlength=n_users)
        out_degree = np.bincount(trustor[nonzero], minlength=n_users)
        return cls(in_degree, out_degree)

    def confidence(self, trustor, trustee):
        """Confidence weight sqrt(in[v] / (out[u] + in[v])) of edges u -> v.

        The weight is 0 when both degrees are 0.
        """
        in_v = self.in_degree[trustee].astype(np.float64)
        total = self.out_degree[trustor] + in_v
        ratio = np.divide(in_v, total, out=np.zeros_like(in_v), where=total > 0)
        return np.sqrt(ratio)


class EpochContext:
    """Loss and gradient accumulators of a single epoch"""

    def __init__(self, U, V, Z):
        self.loss = 0.0
        self.dU = zeros(U.shape, dtype=U.dtype)
        self.dV = zeros(V.shape, dtype=V.dtype)
        self.dZ = zeros(Z.shape, dtype=Z.dtype)


def rating_pass(ctx, U, V, rat_uid, rat_iid, rat_val, lambda_u, lambda_v, base_predict):
    """Accumulate loss and gradients of the rating reconstruction term.

    `rat_val` holds ratings already normalized into [0, 1]. Regularization
    is applied once per observation.
    """
    preds = base_predict(U, V, rat_uid, rat_iid)
    errors = sigmoid(preds) - rat_val
    grads = sigmoid_grad(preds) * errors

    u_factors = U[rat_uid]
    i_factors = V[rat_iid]

    np.add.at(ctx.dU, rat_uid, grads[:, None] * i_factors + lambda_u * u_factors)
    np.add.at(ctx.dV, rat_iid, grads[:, None] * u_factors + lambda_v * i_factors)

    ctx.loss += float(np.sum(errors ** 2))
    ctx.loss += float(
        lambda_u * np.sum(u_factors ** 2) + lambda_v * np.sum(i_factors ** 2)
    )
    return ctx


def trust_pass(ctx, U, Z, net_uid, net_jid, net_target, reg_rate, reg_social):
    """Accumulate loss and gradients of the trust reconstruction term.

    `net_target` holds the confidence-weighted trust values of nonzero edges.
    """
    u_factors = U[net_uid]
    s_factors = Z[net_jid]

    preds = np.sum(u_factors * s_factors, axis=1)
    errors = sigmoid(preds) - net_target
    grads = reg_rate * sigmoid_grad(preds) * errors

    np.add.at(ctx.dU, net_uid, grads[:, None] * s_factors)
    np.add.at(ctx.dZ, net_jid, grads[:, None] * u_factors + reg_social * s_factors)

    ctx.loss += float(reg_rate * np.sum(errors ** 2))
    ctx.loss += float(reg_social * np.sum(s_factors ** 2))
    return ctx


def _update_block(factors, deltas, learning_rate):
    factors -= learning_rate * deltas


def apply_update(factors, deltas, learning_rate, executor=None, n_blocks=1):
    """In-place `factors -= learning_rate * deltas`.

    With an executor, the rows are split into `n_blocks` disjoint blocks
    which are updated concurrently.
    """
    if executor is None or n_blocks <= 1:
        _update_block(factors, deltas, learning_rate)
        return factors

    f_blocks = np.array_split(factors, n_blocks)  # views on disjoint rows
    d_blocks = np.array_split(deltas, n_blocks)
    list(
        executor.map(
            _update_block, f_blocks, d_blocks, [learning_rate] * len(f_blocks)
        )
    )
    return factors


def adapt_learning_rate(
    learning_rate,
    epoch,
    loss,
    last_loss,
    bold_driver=False,
    decay=1.0,
    max_learning_rate=None,
):
    """Bold driver or multiplicative decay, capped by `max_learning_rate`"""
    if bold_driver and epoch > 1:
        learning_rate *= 1.05 if abs(last_loss) > abs(loss) else 0.5
    elif 0.0 < decay < 1.0:
        learning_rate *= decay

    if max_learning_rate is not None and 0 < max_learning_rate < learning_rate:
        learning_rate = max_learning_rate
    return learning_rate


def _check_indices(name, indices, upper):
    if len(indices) == 0:
        return
    if np.min(indices) < 0 or np.max(indices) >= upper:
        raise ValueError(
            "{} must lie in [0, {}), got range [{}, {}]".format(
                name, upper, np.min(indices), np.max(indices)
            )
        )


def sorec(
    rat_uid,
    rat_iid,
    rat_val,
    net_uid,
    net_jid,
    net_val,
    k,
    n_users,
    n_items,
    min_rating,
    max_rating,
    n_epochs=100,
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
    degree=None,
    init_params=None,
    num_threads=1,
    verbose=False,
    seed=None,
):
    """Train SoRec factors by full-batch gradient descent.

    Parameters
    ----------
    rat_uid, rat_iid, rat_val: array-like
        Rating matrix in the sparse triplet format (raw rating values).

    net_uid, net_jid, net_val: array-like
        Trust matrix in the sparse triplet format (trustor, trustee, value).
        Entries with a zero value are ignored.

    k: int
        Number of latent factors.

    n_users, n_items: int
        Number of rows of the user/social and item factor matrices.

    min_rating, max_rating: float
        Rating range used to normalize ratings into [0, 1].

    n_epochs: int, default: 100
        Maximum number of epochs.

    early_stop: bool, default: False
        Stop as soon as the absolute loss change between two epochs is below `tol`.

    base_predict: callable, default: None
        `base_predict(U, V, user_idx, item_idx)` returning the raw rating prediction.
        Its gradient w.r.t. U[u] (resp. V[i]) is assumed to be V[i] (resp. U[u]).
        If None, the inner product is used.

    degree: :obj:`DegreeIndex`, default: None
        Degrees of the users over the whole trust network. If None, they are
        counted from the given trust triplets.

    num_threads: int, default: 1
        Number of threads used to apply updates.

    Returns
    -------
    res: dict
        'U', 'V', 'Z' factor matrices, 'losses' per epoch,
        final 'state' and 'learning_rate'.
    """
    if k <= 0:
        raise ValueError("k={} should be a positive integer".format(k))
    if n_epochs <= 0:
        raise ValueError("n_epochs={} should be a positive integer".format(n_epochs))
    if max_rating <= min_rating:
        raise ValueError(
            "max_rating={} should be greater than min_rating={}".format(
                max_rating, min_rating
            )
        )

    rat_uid = np.asarray(rat_uid, dtype="int")
    rat_iid = np.asarray(rat_iid, dtype="int")
    rat_val = np.asarray(rat_val, dtype=np.float64)
    net_uid = np.asarray(net_uid, dtype="int")
    net_jid = np.asarray(net_jid, dtype="int")
    net_val = np.asarray(net_val, dtype=np.float64)

    if not len(rat_uid) == len(rat_iid) == len(rat_val):
        raise ValueError("rating triplet arrays must have the same length")
    if not len(net_uid) == len(net_jid) == len(net_val):
        raise ValueError("trust triplet arrays must have the same length")
    _check_indices("rating user indices", rat_uid, n_users)
    _check_indices("rating item indices", rat_iid, n_items)
    _check_indices("trustor indices", net_uid, n_users)
    _check_indices("trustee indices", net_jid, n_users)

    base_predict = dot_product if base_predict is None else base_predict

    U, V, Z = init_factors(n_users, n_items, k, init_params=init_params, seed=seed)
    if degree is None:
        degree = DegreeIndex.from_triplet(net_uid, net_jid, net_val, n_users)
    elif len(degree.in_degree) != n_users or len(degree.out_degree) != n_users:
        raise ValueError("degree arrays must have n_users={} entries".format(n_users))

    rat_norm = ((rat_val - min_rating) / (max_rating - min_rating)).astype(DTYPE)

    nonzero = net_val != 0
    net_uid, net_jid, net_val = net_uid[nonzero], net_jid[nonzero], net_val[nonzero]
    net_target = (degree.confidence(net_uid, net_jid) * net_val).astype(DTYPE)

    state = INITIALIZED
    losses = []
    last_loss = np.inf

    executor = ThreadPoolExecutor(max_workers=num_threads) if num_threads > 1 else None
    try:
        state = TRAINING
        progress = trange(1, n_epochs + 1, desc="SoRec", disable=not verbose)
        for epoch in progress:
            ctx = EpochContext(U, V, Z)
            rating_pass(
                ctx, U, V, rat_uid, rat_iid, rat_norm, lambda_u, lambda_v, base_predict
            )
            trust_pass(ctx, U, Z, net_uid, net_jid, net_target, reg_rate, reg_social)

            for factors, deltas in ((U, ctx.dU), (V, ctx.dV), (Z, ctx.dZ)):
                apply_update(factors, deltas, learning_rate, executor, num_threads)

            loss = 0.5 * ctx.loss
            if not np.isfinite(loss):
                raise DivergenceException(
                    "Loss = {} at epoch {}: current settings do not fit the data, "
                    "try a smaller learning_rate".format(loss, epoch)
                )
            losses.append(loss)
            progress.set_postfix(loss=loss, lr=learning_rate)

            if early_stop and abs(last_loss - loss) < tol:
                state = CONVERGED
                break

            learning_rate = adapt_learning_rate(
                learning_rate,
                epoch,
                loss,
                last_loss,
                bold_driver=bold_driver,
                decay=decay,
                max_learning_rate=max_learning_rate,
            )
            last_loss = loss
        else:
            state = EPOCH_EXHAUSTED
    finally:
        if executor is not None:
            executor.shutdown()

    if verbose and state == CONVERGED:
        print("Converged at epoch {} (loss = {:.6f})".format(len(losses), losses[-1]))

    return {
        "U": U,
        "V": V,
        "Z": Z,
        "losses": losses,
        "state": state,
        "learning_rate": learning_rate,
    }
