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


class Modality:
    """Generic class of Modality to extend from.
    A modality carries auxiliary information (e.g., a trust network) which is
    aligned with the user/item indices of a :obj:`trustrec.data.Dataset`.
    """

    def __init__(self, **kwargs):
        pass

    def build(self, id_map=None, **kwargs):
        """Align the modality with mapped ids, to be extended by subclasses"""
        return self
