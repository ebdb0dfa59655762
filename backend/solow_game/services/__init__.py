"""Game domain services: economy, ledgers, identity, timers and fanout.

Everything here is transport-agnostic. Socket handlers call into the
coordinator; the coordinator reaches clients only through ``Fanout``.
"""
