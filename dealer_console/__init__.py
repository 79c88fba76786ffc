"""
Dealer console: admin back office for dealer onboarding.

Assigns advertising credentials to dealers, works through join
submissions, sends account invitations, manages dealer logos and exports
forecourt stock feeds.
"""

__version__ = "0.1.0"
