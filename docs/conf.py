import time

import tomli

with open("../pyproject.toml", "rb") as f:
    toml = tomli.load(f)

project = "pmfir"
author = "pmfir developers"
copyright = "{}, {}".format(time.strftime("%Y"), author)
release = toml["project"]["version"]
version = toml["project"]["version"].split(".")[0]

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.mathjax",
    "sphinx.ext.viewcode",
    "sphinx.ext.intersphinx",
    "sphinx.ext.autosummary",
    "sphinx_multiversion",
]

# One page per pmfir module, members in source order
autosummary_generate = True
autodoc_member_order = "bysource"
autodoc_typehints = "description"
autodoc_default_options = {
    "members": True,
    "show-inheritance": True,
    "exclude-members": "__init__, __post_init__",
}

# Napoleon settings for the NumPy-ish docstrings used across the package
napoleon_google_docstring = True
napoleon_numpy_docstring = True
napoleon_include_init_with_doc = False
napoleon_use_param = True
napoleon_use_rtype = True
napoleon_attr_annotations = True

intersphinx_mapping = {
    "python": ("https://docs.python.org/3/", None),
    "numpy": ("https://numpy.org/doc/stable/", None),
    "matplotlib": ("https://matplotlib.org/stable/", None),
}

templates_path = ["_templates"]

html_sidebars = {
    "**": [
        "about.html",
        "navigation.html",
        "relations.html",
        "searchbox.html",
        "versioning.html",
    ],
}

smv_remote_whitelist = r"^origin$"
smv_branch_whitelist = r"^main$"

html_theme = "alabaster"
html_last_updated_fmt = "%c"
master_doc = "index"
pygments_style = "friendly"
