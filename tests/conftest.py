"""Pytest configuration: add the src directory to sys.path."""

import sys
import os

src_dir = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "src",
)
sys.path.insert(0, src_dir)
