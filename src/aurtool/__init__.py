"""
aurtool - command line client for the Arch User Repository.

Searches the AUR RPC interface, downloads build snapshots, checks installed
foreign packages for upgrades and performs authenticated package actions
(submission, votes, flags, comments).
"""

__version__ = "0.2.0"
__author__ = "aurtool contributors"
