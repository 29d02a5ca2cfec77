# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Epoch-millisecond timestamps, the unit used for invite and audit times."""

import time

MS_PER_HOUR = 3_600_000


def now_ms() -> int:
    return int(time.time() * 1000)
