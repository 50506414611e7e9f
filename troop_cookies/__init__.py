"""
Troop Cookie Tracker

Cookie-sale inventory for a scouting troop: per-scout box ledger with a
hash-chained audit log, peer-to-peer trades, booth and meeting schedules,
troop chat and notifications.
"""

__version__ = "1.0.0"
