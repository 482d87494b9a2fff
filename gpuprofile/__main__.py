# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Allow running gpuprofile as a module: python -m gpuprofile
"""

from gpuprofile.cli import main

if __name__ == "__main__":
    main()
