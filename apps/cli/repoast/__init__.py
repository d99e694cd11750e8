"""repoast CLI Application.

Command-line interface for materializing and inspecting fixture
repositories.

Execution Context:
    CLI application - invoked from terminal

Dependencies:
    - click: CLI framework
    - rich: Terminal formatting
    - repoast_core: Core library

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

__version__ = "0.1.0"
