#!/usr/bin/env python3
# -*- coding: utf-8 -*-


from datetime import datetime, timezone
import json
import os
import sys
import typing
import threading

#####################################################################################################################################################################

"""
    Provides structured JSON-lines audit logging for the manifest client.

    The destination is the explicit path, else $APPMANIFEST_AUDIT_LOG. With neither set the log is
    disabled and events are dropped.
"""
class AuditLog:

	def __init__(self, path: typing.Optional[str] = None):
		self._lock = threading.RLock()
		self.path: typing.Optional[str] = path or os.environ.get("APPMANIFEST_AUDIT_LOG") or None


	@property
	def enabled(self) -> bool:
		return self.path is not None


	def event(self, **kv: typing.Any):

		if self.path is None:
			return

		# Construct ISO8601Z timestamp
		ts = datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")

		# Append timestamp to event
		record = {"timestamp": ts}
		record.update(kv)

		with self._lock:
			try:
				with open(self.path, "a", encoding="utf-8") as f:
					json.dump(record, f, ensure_ascii=False, default=str)
					f.write("\n")

			except Exception as e:
				print(f"Audit log write error: {e}", file=sys.stderr)
