"""
Command-line interface for wfmserver.

Examples
--------
Serving the simulated instrument:
```bash
$ wfmserver serve -n mock -p 5025
```

Asking a running server who it is:
```bash
$ wfmserver query "*IDN?"
```

CLI Tree
--------

```
$ wfmserver --tree
cli
└── instruments
└── kill
└── list
└── query
└── serve
```
"""

from .base import cli, tree_option

__all__ = ["cli", "tree_option"]
