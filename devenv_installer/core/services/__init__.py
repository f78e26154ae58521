"""Core services — channel-independent provisioning logic.

Nothing in this package imports Flask or click.  Both transports
(``ui.web`` and ``ui.channel``) call into these modules.
"""
