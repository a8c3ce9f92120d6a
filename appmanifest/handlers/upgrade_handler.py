#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: upgrade_handler.py
    Author: Alex Biddle

    Description:
        Decides whether a newly fetched ApplicationSummary supersedes a
        baseline summary, i.e. whether data derived from the baseline (the
        cached package list) has to be fetched again. Pure functions: they
        read their arguments only and never touch cached state.
"""


import typing
from appmanifest.datagram.manifest_objects import ApplicationSummary



"""
    Compare a candidate summary against a baseline.

    @param before (ApplicationSummary | None): Baseline summary.
    @param after (ApplicationSummary | None): Newly fetched summary.
    @param debug (bool): When True every candidate counts as an upgrade.
    @return bool: True in debug mode, when either side is absent, or when the
                  version strings differ (exact, case-sensitive comparison).
"""
def is_upgrade(before: typing.Optional[ApplicationSummary], after: typing.Optional[ApplicationSummary], debug: bool = False) -> bool:

    if debug:
        return True

    # No baseline to compare against
    if before is None or after is None:
        return True

    return after.version != before.version
