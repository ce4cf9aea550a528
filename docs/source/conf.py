# Sphinx configuration for the junction MLP evaluator API docs.
#
# Build from the repository root with:
#   sphinx-build -b html docs/source docs/build

import os
import sys

import sphinx_rtd_dark_mode  # noqa: F401  (registers the dark-mode extension)

# conf.py lives in docs/source; the importable modules live two levels up
sys.path.insert(0, os.path.abspath("../.."))

project = "Junction MLP Evaluator"
author = "Junction MLP Team"
copyright = f"2026, {author}"
release = "0.1.0"

# -- Extensions ---------------------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",   # every docstring here is NumPy style
    "sphinx.ext.viewcode",
    "sphinx_rtd_dark_mode",
]

napoleon_google_docstring = False
napoleon_numpy_docstring = True
autodoc_member_order = "bysource"
autodoc_typehints = "description"

# Server and dataset stacks are not needed to render the evaluator docs
autodoc_mock_imports = ["uvicorn", "fastapi", "pandas"]

exclude_patterns = ["_build"]

# -- HTML ---------------------------------------------------------------------

html_theme = "sphinx_rtd_theme"
default_dark_mode = True
