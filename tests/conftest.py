"""Pytest setup: put ``src`` on the import path.

Lets ``from pso_select ...`` work whether or not the package has been
installed into the environment running the tests.
"""

import os
import sys


def _add_src_to_path() -> None:
    root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    src = os.path.join(root, "src")
    if src not in sys.path:
        sys.path.insert(0, src)


_add_src_to_path()
