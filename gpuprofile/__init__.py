# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
gpuprofile: render-pass grouped GPU profiling data from Perfetto traces.
"""
