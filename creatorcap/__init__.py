"""Creator Cap - market cap comparison for tokens and creator coins.

Resolves heterogeneous token identifiers (ids, contract addresses,
ENS/basenames, creator handles) into one canonical record and projects
what token A would be worth with token B's market cap.
"""

__version__ = "0.1.0"
