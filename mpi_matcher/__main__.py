# mpi_matcher/__main__.py

"""Entry point for executing mpi_matcher as a module.

This file allows the mpi_matcher package to be executed as a script
using `python -m mpi_matcher`.
"""
import sys

from .main import main

if __name__ == "__main__":
    sys.exit(main())
