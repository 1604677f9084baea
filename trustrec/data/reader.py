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

import itertools

from ..utils import validate_format


def uir_parser(tokens, **kwargs):
    return [(tokens[0], tokens[1], float(tokens[2]))]


class Reader:
    """Read triplets from a delimited text file.

    Each non-empty line holds a rating (user, item, rating_value) or a trust
    relation (trustor, trustee, trust_value). Columns after the third one,
    e.g. timestamps, are ignored.

    Parameters
    ----------
    encoding: str, default: 'utf-8'
        Encoding used to decode the file.
    """

    def __init__(self, encoding="utf-8"):
        self.encoding = encoding

    def read(self, fpath, fmt="UIR", sep="\t", skip_lines=0, parser=None):
        """Parse a file into a list of triplets.

        Parameters
        ----------
        fpath: str
            Path to the data file.

        fmt: str, default: 'UIR'
            Line format, only 'UIR' is supported.

        sep: str, default: '\\t'
            Column delimiter.

        skip_lines: int, default: 0
            Number of header lines to skip.

        parser: function, default: None
            Takes the tokens of a line and returns a list of tuples.
            If None, (user, item, float(rating)) triplets are produced.

        Returns
        -------
        triplets: list of tuples
        """
        validate_format(fmt, ["UIR"])
        parser = uir_parser if parser is None else parser

        triplets = []
        with open(fpath, encoding=self.encoding) as f:
            for line in itertools.islice(f, skip_lines, None):
                line = line.strip()
                if line:
                    triplets.extend(parser(line.split(sep)))
        return triplets
