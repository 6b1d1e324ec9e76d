"""
zkgroups

Group membership store for anonymous signalling protocols:
- Groups of identity commitments with admin-controlled metadata
- Single-use invites
- Poseidon Merkle trees and inclusion proofs
- SQLite persistence
"""

__version__ = "0.1.0"
