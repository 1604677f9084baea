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


"""
Release instruction:
    - Check that tests run correctly.
    - Change __version__ in setup.py and trustrec/__init__.py.
    - Build the source distribution and wheel, then upload them to PyPI.
"""


import os
import shutil
from setuptools import Command, setup, find_packages


with open("README.md", "r") as fh:
    long_description = fh.read()


class CleanCommand(Command):
    description = "Remove build artifacts from the source tree"

    user_options = []

    def initialize_options(self):
        pass

    def finalize_options(self):
        pass

    def run(self):
        for path in ["build", "dist", "trustrec.egg-info"]:
            if os.path.exists(path):
                shutil.rmtree(path)
        for dirpath, dirnames, filenames in os.walk("trustrec"):
            for filename in filenames:
                if filename.endswith(".pyc"):
                    os.unlink(os.path.join(dirpath, filename))

            for dirname in dirnames:
                if dirname == "__pycache__":
                    shutil.rmtree(os.path.join(dirpath, dirname))


setup(
    name="trustrec",
    version="0.1.0",
    description="Trust-aware rating prediction with SoRec",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="Apache License 2.0",
    python_requires=">=3.8",
    install_requires=["numpy", "scipy", "tqdm"],
    extras_require={"tests": ["pytest"]},
    cmdclass={"clean": CleanCommand},
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
)
