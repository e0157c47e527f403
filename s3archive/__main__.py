# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Module entrypoint so that `python -m s3archive ...` works without the
console script installed.
"""

from s3archive.cli import run

if __name__ == "__main__":
    run()
