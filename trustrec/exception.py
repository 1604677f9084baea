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


class TrustRecException(Exception):
    """Exception base class to extend from"""

    pass


class ScoreException(TrustRecException):
    """Exception raised in score function when facing unknowns"""

    pass


class DivergenceException(TrustRecException):
    """Exception raised when the training loss becomes NaN or infinite"""

    pass
