"""
Chat relay service.

Real-time presence and message relay for a friend-based chat application:
connection authentication, per-user channel membership, live-vs-offline
delivery and the offline store-and-forward mailbox.
"""

__version__ = "0.1.0"
